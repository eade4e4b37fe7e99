"""Dependency extractor.

Parses every supported manifest in the snapshot and matches declared
dependency names against each product's prefix table. An explicit
dependency is the strongest evidence there is, so it carries the
highest base weight.
"""

import logging
from dataclasses import replace
from typing import Sequence

from productrules.core.config import ScoringConfig
from productrules.detector import manifests
from productrules.detector.extractors.base import repeated_signals
from productrules.detector.signatures import ProductSignatures
from productrules.detector.types import EvidenceSignal, SignalKind
from productrules.detector.walker import ProjectSnapshot
from productrules.errors import ExtractionError

logger = logging.getLogger(__name__)


class DependencyExtractor:
    name = "dependency"

    def extract(
        self,
        snapshot: ProjectSnapshot,
        signatures: Sequence[ProductSignatures],
        config: ScoringConfig,
        diagnostics: list[str],
    ) -> list[EvidenceSignal]:
        # dependency name -> manifest it was first declared in
        declared: dict[str, str] = {}

        for rel_path in snapshot.files:
            parser = manifests.parser_for(rel_path.name)
            if parser is None:
                continue
            try:
                names = parser(snapshot.absolute(rel_path))
            except ExtractionError as exc:
                logger.warning("Skipping manifest %s: %s", rel_path, exc)
                diagnostics.append(str(exc))
                continue
            for name in names:
                declared.setdefault(name, rel_path.as_posix())

        signals: list[EvidenceSignal] = []
        for entry in signatures:
            for prefix in entry.dependency_prefixes:
                lowered = prefix.lower()
                hits = [name for name in declared if name.lower().startswith(lowered)]
                # Each dependency counts once per product, under its first prefix
                claimed = {s.matched_value for s in signals if s.product is entry.product}
                hits = [h for h in hits if h not in claimed]
                for signal in repeated_signals(
                    SignalKind.DEPENDENCY, entry, prefix, hits, config
                ):
                    signals.append(replace(signal, source=declared[signal.matched_value]))
        return signals
