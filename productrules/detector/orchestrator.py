"""Detector orchestrator: walks the project once, runs every extractor,
and hands the evidence to the scorer.

Detection flow:
1. Validate the override, if any. A valid override short-circuits the rest.
2. Walk the project tree to the configured depth.
3. Run each extractor over the snapshot. An extractor that fails is
   recorded as a diagnostic and contributes zero signals.
4. Score the combined evidence into a DetectionResult.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

from productrules.core.config import ScoringConfig
from productrules.detector.extractors import DEFAULT_EXTRACTORS, Extractor
from productrules.detector.scorer import override_result, score
from productrules.detector.signatures import DEFAULT_SIGNATURES, ProductSignatures
from productrules.detector.types import DetectionResult, EvidenceSignal, ProductId
from productrules.detector.walker import walk_project
from productrules.errors import ExtractionError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def detect(
    project_root: Path | str,
    override: Optional[str | ProductId] = None,
    config: Optional[ScoringConfig] = None,
    signatures: Sequence[ProductSignatures] = DEFAULT_SIGNATURES,
    extractors: Sequence[Extractor] = DEFAULT_EXTRACTORS,
) -> DetectionResult:
    """Run the full detection pipeline on a project directory.

    Raises InvalidOverrideError when override names no selectable product.
    Never raises for missing or unreadable paths.
    """
    root = Path(project_root)
    config = config or ScoringConfig()

    if override is not None:
        product = ProductId.parse_override(override)
        logger.info("Product override applied: %s", product.value)
        return override_result(product, project_root=str(root))

    snapshot = walk_project(root, config.walk_depth)
    diagnostics: list[str] = list(snapshot.diagnostics)
    signals: list[EvidenceSignal] = []

    for extractor in extractors:
        signals.extend(_run_extractor(extractor, snapshot, signatures, config, diagnostics))

    result = score(signals, config, project_root=str(root))
    result.diagnostics = diagnostics
    _log_result(result)
    return result


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _run_extractor(extractor, snapshot, signatures, config, diagnostics) -> list[EvidenceSignal]:
    try:
        return extractor.extract(snapshot, signatures, config, diagnostics)
    except (ExtractionError, OSError) as exc:
        logger.warning("Extractor %s failed on %s: %s", extractor.name, snapshot.root, exc)
        diagnostics.append(f"{extractor.name}: {exc}")
        return []


def _log_result(result: DetectionResult) -> None:
    logger.info(
        "Detection complete: status=%s product=%s confidence=%.2f signals=%d",
        result.status.value,
        result.detected_product.value if result.detected_product else None,
        result.confidence,
        len(result.evidence),
    )
