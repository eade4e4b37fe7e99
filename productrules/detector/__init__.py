"""Detector module for inferring which platform product a project targets.

Public API:
    detect(project_root, override=None) -> DetectionResult
"""

from productrules.detector.orchestrator import detect
from productrules.detector.types import (
    Alternate,
    DetectionResult,
    DetectionStatus,
    EvidenceSignal,
    ProductId,
    SignalKind,
)

__all__ = [
    "detect",
    "Alternate",
    "DetectionResult",
    "DetectionStatus",
    "EvidenceSignal",
    "ProductId",
    "SignalKind",
]
