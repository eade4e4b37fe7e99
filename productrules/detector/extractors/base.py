"""Extractor protocol and helpers shared by the built-in extractors."""

from fnmatch import fnmatchcase
from pathlib import PurePosixPath
from typing import Protocol, Sequence, runtime_checkable

from productrules.core.config import ScoringConfig
from productrules.detector.signatures import ProductSignatures
from productrules.detector.types import EvidenceSignal, SignalKind
from productrules.detector.walker import ProjectSnapshot


@runtime_checkable
class Extractor(Protocol):
    """A stateless probe over a project snapshot.

    Implementations never raise for missing paths: absence means zero
    signals. Per-subpath failures raise ExtractionError only inside the
    extractor, where they are caught and turned into diagnostics.
    """

    name: str

    def extract(
        self,
        snapshot: ProjectSnapshot,
        signatures: Sequence[ProductSignatures],
        config: ScoringConfig,
        diagnostics: list[str],
    ) -> list[EvidenceSignal]:
        ...  # noqa: PLR6301


def decayed_weight(base: float, hit_index: int, config: ScoringConfig) -> float:
    """Weight of the hit_index-th (0-based) repeated hit of one pattern."""
    return base * (config.repeat_decay ** hit_index)


def repeated_signals(
    kind: SignalKind,
    signatures: ProductSignatures,
    pattern: str,
    values: list[str],
    config: ScoringConfig,
    source: str = "",
) -> list[EvidenceSignal]:
    """One decayed signal per matched value, capped at config.max_repeats."""
    base = config.weight_for(kind)
    return [
        EvidenceSignal(
            kind=kind,
            product=signatures.product,
            matched_value=value,
            weight=decayed_weight(base, i, config),
            pattern=pattern,
            source=source,
        )
        for i, value in enumerate(values[: config.max_repeats])
    ]


def glob_match(path: PurePosixPath, pattern: str) -> bool:
    """Case-insensitive glob match on the file name, or on the whole
    relative path when the pattern contains a slash."""
    pattern = pattern.lower()
    if "/" in pattern:
        return fnmatchcase(path.as_posix().lower(), pattern) or fnmatchcase(
            path.as_posix().lower(), f"*/{pattern}"
        )
    return fnmatchcase(path.name.lower(), pattern)
