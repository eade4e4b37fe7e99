"""Product detection and rule routing for platform development guidance.

    from productrules import apply_rules, detect_product

    result = detect_product("/path/to/project")
    for match in apply_rules("create a custom content block", "/path/to/project"):
        print(match.rule.id, match.relevance)

Hosts that want structured logs call
`productrules.core.logging.configure_logging()` once at startup.
"""

from productrules.detector.types import DetectionResult, DetectionStatus, EvidenceSignal
from productrules.errors import (
    ExtractionError,
    IndexSourceError,
    InvalidOverrideError,
    ProductRulesError,
)
from productrules.products import ProductId, SignalKind
from productrules.router import (
    ProductRouter,
    apply_rules,
    detect_product,
    get_router,
    refresh_index,
)
from productrules.rules.types import Rule, RuleHints, RuleMatch, RuleSelection

__all__ = [
    "apply_rules",
    "detect_product",
    "get_router",
    "refresh_index",
    "DetectionResult",
    "DetectionStatus",
    "EvidenceSignal",
    "ExtractionError",
    "IndexSourceError",
    "InvalidOverrideError",
    "ProductId",
    "ProductRouter",
    "ProductRulesError",
    "Rule",
    "RuleHints",
    "RuleMatch",
    "RuleSelection",
    "SignalKind",
]
