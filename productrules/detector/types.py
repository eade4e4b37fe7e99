"""Shared types for the detector module.

All detector outputs conform to DetectionResult, which carries the
detected product along with confidence, alternates and evidence.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Optional

from productrules.products import ProductId, SignalKind


class DetectionStatus(StrEnum):
    """Outcome of a detection run.

    DETECTED: one product cleared threshold and margin.
    MULTI_PRODUCT: products within the margin are declared co-installable.
    AMBIGUOUS: products within the margin are mutually incompatible.
    NONE: no evidence, or no candidate near the threshold.
    """

    DETECTED = "detected"
    MULTI_PRODUCT = "multi_product"
    AMBIGUOUS = "ambiguous"
    NONE = "none"


@dataclass(frozen=True)
class EvidenceSignal:
    """One weighted observation supporting a product.

    matched_value is the project-relative path or dependency name that hit.
    pattern is the signature table entry that produced it. source names the
    manifest for dependency hits.
    """

    kind: SignalKind
    product: ProductId
    matched_value: str
    weight: float
    pattern: str = ""
    source: str = ""

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "product": self.product.value,
            "matched_value": self.matched_value,
            "weight": round(self.weight, 4),
            "pattern": self.pattern,
            "source": self.source,
        }


@dataclass
class ProductCandidate:
    """Signals grouped under one product, with their summed weight."""

    product: ProductId
    signals: list[EvidenceSignal] = field(default_factory=list)
    raw_score: float = 0.0
    confidence: float = 0.0


@dataclass(frozen=True)
class Alternate:
    product: ProductId
    confidence: float

    def to_dict(self) -> dict:
        return {"product": self.product.value, "confidence": round(self.confidence, 4)}


@dataclass
class DetectionResult:
    """Complete detection output for a project.

    detected_product is set only for DETECTED and MULTI_PRODUCT outcomes.
    products lists every product rules may be routed to. It holds the
    detected product alone, or the co-installed group for MULTI_PRODUCT.
    """

    detected_product: Optional[ProductId] = None
    status: DetectionStatus = DetectionStatus.NONE
    confidence: float = 0.0
    alternates: list[Alternate] = field(default_factory=list)
    evidence: list[EvidenceSignal] = field(default_factory=list)
    products: list[ProductId] = field(default_factory=list)
    overridden: bool = False
    diagnostics: list[str] = field(default_factory=list)
    project_root: Optional[str] = None

    @property
    def is_ambiguous(self) -> bool:
        return self.status is DetectionStatus.AMBIGUOUS

    @property
    def is_resolved(self) -> bool:
        return self.status in (DetectionStatus.DETECTED, DetectionStatus.MULTI_PRODUCT)

    def to_dict(self) -> dict:
        return {
            "detected_product": self.detected_product.value if self.detected_product else None,
            "status": self.status.value,
            "confidence": round(self.confidence, 4),
            "alternates": [a.to_dict() for a in self.alternates],
            "evidence": [s.to_dict() for s in self.evidence],
            "products": [p.value for p in self.products],
            "overridden": self.overridden,
            "diagnostics": self.diagnostics,
            "project_root": self.project_root,
        }
