"""Routing façade: product detection plus rule selection.

The router's only state is the current RuleIndex reference. It is None
until the first build and is replaced, never mutated, by refresh_index.
Readers take the reference without locking; a single lock serialises
rebuilds.

apply_rules flow:
1. Resolve the index, building it from the default sources on first use.
2. Detect the product, or use the override when one is given.
3. Match rules for the scenario under that detection.
"""

import logging
import threading
from pathlib import Path
from typing import Optional, Sequence

from productrules.core.config import MatchWeights, ScoringConfig, Settings, get_settings
from productrules.core.logging import bind_project_root
from productrules.detector.extractors import DEFAULT_EXTRACTORS, Extractor
from productrules.detector.orchestrator import detect
from productrules.detector.signatures import DEFAULT_SIGNATURES, ProductSignatures
from productrules.detector.types import DetectionResult, ProductId
from productrules.rules.index import RefreshReport, RuleIndex, build_index, report_for
from productrules.rules.matcher import match_rules
from productrules.rules.sources import RuleSource
from productrules.rules.types import RuleHints, RuleSelection

logger = logging.getLogger(__name__)


class ProductRouter:
    """Detects a project's product and routes rules scoped to it."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        config: Optional[ScoringConfig] = None,
        signatures: Sequence[ProductSignatures] = DEFAULT_SIGNATURES,
        extractors: Sequence[Extractor] = DEFAULT_EXTRACTORS,
        weights: Optional[MatchWeights] = None,
        default_sources: Optional[Sequence[RuleSource]] = None,
    ):
        self.settings = settings or get_settings()
        self.config = config or self.settings.scoring_config()
        self.signatures = signatures
        self.extractors = extractors
        self.weights = weights or MatchWeights()
        self.default_sources = (
            list(default_sources)
            if default_sources is not None
            else self.settings.default_sources()
        )
        self._index: Optional[RuleIndex] = None
        self._write_lock = threading.Lock()

    @property
    def index(self) -> Optional[RuleIndex]:
        return self._index

    @property
    def is_built(self) -> bool:
        return self._index is not None

    def detect_product(
        self,
        project_root: Path | str,
        override: Optional[str | ProductId] = None,
    ) -> DetectionResult:
        """Detect the product a project targets.

        An explicit override wins over the configured PRODUCTRULES_PRODUCT,
        which wins over evidence. Raises InvalidOverrideError for an
        unknown product id.
        """
        bind_project_root(str(project_root))
        if override is None:
            override = self.settings.product
        return detect(
            project_root,
            override=override,
            config=self.config,
            signatures=self.signatures,
            extractors=self.extractors,
        )

    def apply_rules(
        self,
        scenario: str,
        project_root: Path | str,
        hints: "RuleHints | dict | None" = None,
        override: Optional[str | ProductId] = None,
        limit: Optional[int] = None,
    ) -> RuleSelection:
        """Select and rank rules for a scenario in a project.

        Ambiguous or failed detection never raises: the selection holds
        shared rules only, or nothing, plus a notice.
        """
        # Detection first: a bad override raises before any source is loaded
        detection = self.detect_product(project_root, override=override)
        index = self._ensure_index()
        selection = match_rules(
            index,
            detection,
            scenario,
            hints=RuleHints.from_value(hints),
            limit=limit,
            weights=self.weights,
        )
        if index.degraded:
            logger.warning(
                "Serving rules from a degraded index (%d failed sources)",
                len(index.failed_sources),
            )
        return selection

    def refresh_index(self, sources: Optional[Sequence[RuleSource]] = None) -> RefreshReport:
        """Build a new index from sources and swap it in.

        With no sources, rebuilds from the router's default sources.
        Concurrent readers keep the previous index until the swap.
        """
        sources = list(sources) if sources is not None else self.default_sources
        with self._write_lock:
            index = build_index(sources)
            self._index = index
        return report_for(index)

    def _ensure_index(self) -> RuleIndex:
        index = self._index
        if index is not None:
            return index
        with self._write_lock:
            if self._index is None:
                logger.info("Building rule index from %d default sources", len(self.default_sources))
                self._index = build_index(self.default_sources)
            return self._index


# ---------------------------------------------------------------------------
# Module-level convenience API
# ---------------------------------------------------------------------------

_default_router: Optional[ProductRouter] = None
_default_router_lock = threading.Lock()


def get_router() -> ProductRouter:
    """Return the process-wide router, creating it from settings on first use."""
    global _default_router
    if _default_router is None:
        with _default_router_lock:
            if _default_router is None:
                _default_router = ProductRouter()
    return _default_router


def reset_router() -> None:
    """Drop the process-wide router so the next call rereads settings."""
    global _default_router
    with _default_router_lock:
        _default_router = None


def detect_product(
    project_root: Path | str,
    override: Optional[str | ProductId] = None,
) -> DetectionResult:
    return get_router().detect_product(project_root, override=override)


def apply_rules(
    scenario: str,
    project_root: Path | str,
    hints: "RuleHints | dict | None" = None,
    override: Optional[str | ProductId] = None,
    limit: Optional[int] = None,
) -> RuleSelection:
    return get_router().apply_rules(
        scenario, project_root, hints=hints, override=override, limit=limit
    )


def refresh_index(sources: Optional[Sequence[RuleSource]] = None) -> RefreshReport:
    return get_router().refresh_index(sources)
