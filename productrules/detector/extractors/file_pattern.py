"""File-pattern extractor.

Matches file names against each product's glob table. Repeated hits of
one pattern decay geometrically so a project with two hundred handlers
does not outweigh a single explicit dependency.
"""

from typing import Sequence

from productrules.core.config import ScoringConfig
from productrules.detector.extractors.base import glob_match, repeated_signals
from productrules.detector.signatures import ProductSignatures
from productrules.detector.types import EvidenceSignal, SignalKind
from productrules.detector.walker import ProjectSnapshot


class FilePatternExtractor:
    name = "file_pattern"

    def extract(
        self,
        snapshot: ProjectSnapshot,
        signatures: Sequence[ProductSignatures],
        config: ScoringConfig,
        diagnostics: list[str],
    ) -> list[EvidenceSignal]:
        signals: list[EvidenceSignal] = []
        for entry in signatures:
            for pattern in entry.file_patterns:
                hits = [f.as_posix() for f in snapshot.files if glob_match(f, pattern)]
                if hits:
                    signals.extend(
                        repeated_signals(SignalKind.FILE_PATTERN, entry, pattern, hits, config)
                    )
        return signals
