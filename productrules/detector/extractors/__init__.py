"""Built-in evidence extractors.

DEFAULT_EXTRACTORS runs in this order; the order only affects the order
of evidence in the result, never the scores.
"""

from productrules.detector.extractors.base import Extractor
from productrules.detector.extractors.config_file import ConfigFileExtractor
from productrules.detector.extractors.dependency import DependencyExtractor
from productrules.detector.extractors.directory import DirectoryExtractor
from productrules.detector.extractors.file_pattern import FilePatternExtractor

DEFAULT_EXTRACTORS: tuple[Extractor, ...] = (
    DirectoryExtractor(),
    FilePatternExtractor(),
    DependencyExtractor(),
    ConfigFileExtractor(),
)

__all__ = [
    "DEFAULT_EXTRACTORS",
    "ConfigFileExtractor",
    "DependencyExtractor",
    "DirectoryExtractor",
    "Extractor",
    "FilePatternExtractor",
]
