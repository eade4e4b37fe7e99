"""Confidence scorer: turns evidence signals into a DetectionResult.

Scoring flow:
1. Group signals by product and sum their weights (raw score).
2. Normalize: confidence(P) = raw(P) / sum of all raw scores.
3. Rank by confidence, ties broken by product id.
4. Accept the top product when it clears the threshold AND its lead over
   the runner-up clears the margin.
5. A top product near or above the threshold that fails the margin is
   AMBIGUOUS, unless every product inside the margin window belongs to
   one co-installable group, in which case the outcome is MULTI_PRODUCT.
6. Anything else is NONE.

The scorer is a pure function of its inputs: no randomness, no clock.
"""

import logging
from typing import Iterable, Optional

from productrules.core.config import ScoringConfig
from productrules.detector.types import (
    Alternate,
    DetectionResult,
    DetectionStatus,
    EvidenceSignal,
    ProductCandidate,
    ProductId,
)

logger = logging.getLogger(__name__)

# Absolute tolerance for threshold and margin comparisons, so that a
# confidence of exactly 6/10 clears a 0.6 threshold.
EPSILON = 1e-9


def build_candidates(signals: Iterable[EvidenceSignal]) -> list[ProductCandidate]:
    """Group signals by product, summing weights. Keeps first-seen order."""
    by_product: dict[ProductId, ProductCandidate] = {}
    for signal in signals:
        candidate = by_product.setdefault(signal.product, ProductCandidate(product=signal.product))
        candidate.signals.append(signal)
        candidate.raw_score += signal.weight
    return list(by_product.values())


def rank_candidates(candidates: list[ProductCandidate]) -> list[ProductCandidate]:
    """Fill in normalized confidences and sort best first."""
    total = sum(c.raw_score for c in candidates)
    if total <= 0:
        return []
    for candidate in candidates:
        candidate.confidence = candidate.raw_score / total
    return sorted(candidates, key=lambda c: (-c.confidence, c.product.value))


def score(
    signals: list[EvidenceSignal],
    config: ScoringConfig,
    project_root: Optional[str] = None,
) -> DetectionResult:
    """Score evidence signals and apply the threshold/margin policy."""
    ranked = rank_candidates(build_candidates(signals))
    if not ranked:
        return DetectionResult(status=DetectionStatus.NONE, project_root=project_root)

    evidence = list(signals)
    top = ranked[0]
    runner_up = ranked[1].confidence if len(ranked) > 1 else 0.0
    clears_margin = top.confidence - runner_up >= config.margin - EPSILON
    clears_threshold = top.confidence >= config.threshold - EPSILON

    if clears_threshold and clears_margin:
        return DetectionResult(
            detected_product=top.product,
            status=DetectionStatus.DETECTED,
            confidence=top.confidence,
            alternates=_alternates(ranked[1:]),
            evidence=evidence,
            products=[top.product],
            project_root=project_root,
        )

    window = [c for c in ranked if top.confidence - c.confidence <= config.margin + EPSILON]

    if not clears_margin and top.confidence >= config.ambiguity_floor - EPSILON:
        group = {c.product for c in window}
        combined = sum(c.confidence for c in window)
        if config.coinstallable(group) and combined >= config.threshold - EPSILON:
            logger.info(
                "Co-installed products detected: %s",
                ", ".join(c.product.value for c in window),
            )
            return DetectionResult(
                detected_product=top.product,
                status=DetectionStatus.MULTI_PRODUCT,
                confidence=combined,
                alternates=_alternates(window),
                evidence=evidence,
                products=[c.product for c in window],
                project_root=project_root,
            )
        return DetectionResult(
            status=DetectionStatus.AMBIGUOUS,
            confidence=top.confidence,
            alternates=_alternates(window),
            evidence=evidence,
            project_root=project_root,
        )

    return DetectionResult(
        status=DetectionStatus.NONE,
        confidence=top.confidence,
        alternates=_alternates(ranked),
        evidence=evidence,
        project_root=project_root,
    )


def override_result(product: ProductId, project_root: Optional[str] = None) -> DetectionResult:
    """Result for an explicit product selection: full confidence, no evidence."""
    return DetectionResult(
        detected_product=product,
        status=DetectionStatus.DETECTED,
        confidence=1.0,
        products=[product],
        overridden=True,
        project_root=project_root,
    )


def _alternates(candidates: list[ProductCandidate]) -> list[Alternate]:
    return [Alternate(product=c.product, confidence=c.confidence) for c in candidates]
