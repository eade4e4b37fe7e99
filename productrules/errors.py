"""Exception taxonomy for product detection and rule routing.

Only caller-input errors propagate out of the public API. Extraction and
source failures are recovered where they happen and reported as data
(DetectionResult.diagnostics, RefreshReport.failed).
"""

from typing import Any, Optional


class ProductRulesError(Exception):
    """Base class for every error raised by productrules."""


class ExtractionError(ProductRulesError):
    """An evidence extractor failed on one subpath.

    Recovered locally: the subpath contributes zero signals and the
    message is kept as a diagnostic on the detection result.
    """

    def __init__(self, extractor: str, path: str, message: str):
        self.extractor = extractor
        self.path = path
        super().__init__(f"[{extractor}] {path}: {message}")


class IndexSourceError(ProductRulesError):
    """A rule source failed to load.

    Carries the source and original error for the refresh report.
    """

    def __init__(self, source: Any, message: str, cause: Optional[Exception] = None):
        self.source = source
        self.cause = cause
        super().__init__(f"[{getattr(source, 'location', source)}] {message}")


class InvalidOverrideError(ProductRulesError, ValueError):
    """The caller supplied a product id that is unknown or not selectable."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Unknown product override: {value!r}")
