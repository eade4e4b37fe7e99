"""Config-file extractor: known configuration file names per product."""

from typing import Sequence

from productrules.core.config import ScoringConfig
from productrules.detector.signatures import ProductSignatures
from productrules.detector.types import EvidenceSignal, SignalKind
from productrules.detector.walker import ProjectSnapshot


class ConfigFileExtractor:
    name = "config_file"

    def extract(
        self,
        snapshot: ProjectSnapshot,
        signatures: Sequence[ProductSignatures],
        config: ScoringConfig,
        diagnostics: list[str],
    ) -> list[EvidenceSignal]:
        weight = config.weight_for(SignalKind.CONFIG_FILE)
        signals: list[EvidenceSignal] = []
        for entry in signatures:
            for filename in entry.config_files:
                hits = snapshot.files_named(filename)
                if not hits:
                    continue
                # Shallowest first: the walk output is sorted by path, not depth
                hit = min(hits, key=lambda f: (len(f.parts), f.as_posix()))
                signals.append(
                    EvidenceSignal(
                        kind=SignalKind.CONFIG_FILE,
                        product=entry.product,
                        matched_value=hit.as_posix(),
                        weight=weight,
                        pattern=filename,
                    )
                )
        return signals
