"""Product and signal enumerations shared by the detector and the rules index."""

from enum import StrEnum

from productrules.errors import InvalidOverrideError


class ProductId(StrEnum):
    """Closed set of platform products a project can target.

    SHARED is reserved for rules that apply to every product. It is never
    a detection outcome and never a valid override.
    """

    COMMERCE = "commerce-platform"
    CONTENT_ONPREM = "content-platform-onprem"
    CONTENT_CLOUD = "content-platform-cloud"
    EXPERIMENTATION = "experimentation-platform"
    DATA = "data-platform"
    MARKETING = "marketing-platform"
    SEARCH = "search-platform"
    SHARED = "shared"

    @classmethod
    def detectable(cls) -> list["ProductId"]:
        return [p for p in cls if p is not cls.SHARED]

    @classmethod
    def parse_override(cls, value: "str | ProductId") -> "ProductId":
        """Resolve a caller-supplied product id.

        Raises InvalidOverrideError for unknown ids and for the shared
        sentinel.
        """
        try:
            product = cls(str(value).strip().lower())
        except ValueError as exc:
            raise InvalidOverrideError(value) from exc
        if product is cls.SHARED:
            raise InvalidOverrideError(value)
        return product


class SignalKind(StrEnum):
    FILE_PATTERN = "file_pattern"
    DIRECTORY = "directory"
    DEPENDENCY = "dependency"
    CONFIG_FILE = "config_file"
