"""Directory-structure extractor.

Directory conventions are stronger signals than individual files, so
each table entry yields at most one signal, for its shallowest match.
"""

from pathlib import PurePosixPath
from typing import Optional, Sequence

from productrules.core.config import ScoringConfig
from productrules.detector.signatures import ProductSignatures
from productrules.detector.types import EvidenceSignal, SignalKind
from productrules.detector.walker import ProjectSnapshot, path_depth


class DirectoryExtractor:
    name = "directory"

    def extract(
        self,
        snapshot: ProjectSnapshot,
        signatures: Sequence[ProductSignatures],
        config: ScoringConfig,
        diagnostics: list[str],
    ) -> list[EvidenceSignal]:
        candidates = [
            d for d in snapshot.directories if path_depth(d) <= config.directory_depth
        ]
        weight = config.weight_for(SignalKind.DIRECTORY)

        signals: list[EvidenceSignal] = []
        for entry in signatures:
            for pattern in entry.directories:
                hit = _first_match(candidates, pattern)
                if hit is not None:
                    signals.append(
                        EvidenceSignal(
                            kind=SignalKind.DIRECTORY,
                            product=entry.product,
                            matched_value=hit.as_posix(),
                            weight=weight,
                            pattern=pattern,
                        )
                    )
        return signals


def _first_match(directories: list[PurePosixPath], pattern: str) -> Optional[PurePosixPath]:
    wanted = tuple(part.lower() for part in PurePosixPath(pattern).parts)
    matches = [
        d for d in directories
        if tuple(p.lower() for p in d.parts[-len(wanted):]) == wanted
    ]
    if not matches:
        return None
    return min(matches, key=lambda d: (path_depth(d), d.as_posix()))
