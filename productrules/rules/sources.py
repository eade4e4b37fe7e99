"""Rule sources: where rule documents come from.

Every source is a frozen dataclass with a `kind`, a `location` string and a
`load()` method returning Rule objects. A source that cannot be read as a
whole raises IndexSourceError; a single bad document inside an otherwise
readable source is skipped with a warning.

Directory layout shared by local and remote sources:

    rules/
      commerce-platform/handler-chains.mdc    -> scoped to commerce-platform
      shared/naming.mdc                       -> shared rule
      experimentation-platform/flags/*.mdc    -> nested files keep the scope

A source constructed with `product=` scopes every document to that product.
Frontmatter `products:` always wins over both.

A document's rule id is its path inside the source without the suffix
(`commerce-platform/handler-chains`), unless the frontmatter sets `id:`.
Same-named files under different product directories stay distinct rules.
"""

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path, PurePosixPath
from typing import ClassVar, Optional, Protocol, runtime_checkable

import httpx

from productrules.errors import IndexSourceError
from productrules.products import ProductId
from productrules.rules.frontmatter import parse_rule_document
from productrules.rules.types import Rule, RuleCategory, RulePriority

logger = logging.getLogger(__name__)

RULE_SUFFIXES = (".mdc", ".md")

# Local directory scans stop this many levels below the source root
MAX_RULE_DEPTH = 4

GITHUB_API_BASE = "https://api.github.com"
GITHUB_RAW_BASE = "https://raw.githubusercontent.com"


class SourceType(StrEnum):
    LOCAL_DIRECTORY = "local-directory"
    REMOTE_REPOSITORY = "remote-repository"
    DOCUMENTATION_API = "documentation-api"


@runtime_checkable
class RuleSource(Protocol):
    """Protocol for rule source implementations.

    Callers interact only with this interface; the index never inspects
    a concrete source type.
    """

    kind: ClassVar[SourceType]

    @property
    def location(self) -> str:
        ...  # noqa: PLR6301

    def load(self) -> list[Rule]:
        """Load every rule this source provides.

        Raises:
            IndexSourceError: when the source as a whole cannot be read.
        """
        ...  # noqa: PLR6301


# ---------------------------------------------------------------------------
# Local directory
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LocalDirectorySource:
    path: str
    product: Optional[ProductId] = None

    kind: ClassVar[SourceType] = SourceType.LOCAL_DIRECTORY

    @property
    def location(self) -> str:
        return self.path

    def load(self) -> list[Rule]:
        root = Path(self.path)
        if not root.is_dir():
            raise IndexSourceError(self, "rules directory not found")

        try:
            files = _collect_rule_files(root)
        except OSError as exc:
            raise IndexSourceError(self, f"cannot scan rules directory: {exc}", exc) from exc

        rules: list[Rule] = []
        for file_path in files:
            rel_path = PurePosixPath(file_path.relative_to(root).as_posix())
            try:
                text = file_path.read_text(encoding="utf-8")
                rule = parse_rule_document(
                    text,
                    rule_id=rule_id_for(rel_path),
                    default_products=scope_for(rel_path, self.product),
                    source=self.location,
                )
            except (OSError, UnicodeDecodeError, ValueError) as exc:
                logger.warning("Skipping rule file %s: %s", file_path, exc)
                continue
            rules.append(rule)

        logger.info("Loaded %d rules from %s", len(rules), self.location)
        return rules


def _collect_rule_files(root: Path) -> list[Path]:
    files: list[Path] = []
    for path in root.rglob("*"):
        rel_parts = path.relative_to(root).parts
        if any(part.startswith(".") for part in rel_parts):
            continue
        if len(rel_parts) > MAX_RULE_DEPTH + 1:
            continue
        if path.suffix.lower() in RULE_SUFFIXES and path.is_file():
            if path.name.lower() == "readme.md":
                continue
            files.append(path)
    return sorted(files)


# ---------------------------------------------------------------------------
# Remote repository (GitHub)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RemoteRepositorySource:
    """Rule documents stored under `path` in a GitHub repository.

    The tree is listed through the REST API in one recursive call, then
    each document is fetched from the raw content host.
    """

    repository: str
    ref: str = "main"
    path: str = "rules"
    product: Optional[ProductId] = None
    token: str = field(default="", repr=False, compare=False)
    api_base: str = GITHUB_API_BASE
    raw_base: str = GITHUB_RAW_BASE
    timeout: float = 10.0
    transport: Optional[httpx.BaseTransport] = field(default=None, repr=False, compare=False)

    kind: ClassVar[SourceType] = SourceType.REMOTE_REPOSITORY

    @property
    def location(self) -> str:
        return f"https://github.com/{self.repository}/tree/{self.ref}/{self.path.strip('/')}"

    def load(self) -> list[Rule]:
        base = PurePosixPath(self.path.strip("/"))
        try:
            with httpx.Client(
                timeout=self.timeout,
                headers=_auth_headers(self.token),
                transport=self.transport,
            ) as client:
                paths = self._list_rule_paths(client, base)
                documents = [(p, self._fetch(client, p)) for p in paths]
        except httpx.HTTPError as exc:
            raise IndexSourceError(self, f"request failed: {exc}", exc) from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise IndexSourceError(self, f"unexpected API response: {exc}", exc) from exc

        rules: list[Rule] = []
        for rel_path, text in documents:
            try:
                rule = parse_rule_document(
                    text,
                    rule_id=rule_id_for(rel_path),
                    default_products=scope_for(rel_path, self.product),
                    source=self.location,
                )
            except ValueError as exc:
                logger.warning("Skipping remote rule %s: %s", rel_path, exc)
                continue
            rules.append(rule)

        logger.info("Loaded %d rules from %s", len(rules), self.location)
        return rules

    def _list_rule_paths(self, client: httpx.Client, base: PurePosixPath) -> list[PurePosixPath]:
        response = client.get(
            f"{self.api_base}/repos/{self.repository}/git/trees/{self.ref}",
            params={"recursive": "1"},
        )
        response.raise_for_status()
        tree = response.json()["tree"]

        paths: list[PurePosixPath] = []
        for entry in tree:
            if entry.get("type") != "blob":
                continue
            full = PurePosixPath(entry["path"])
            if base.parts and full.parts[: len(base.parts)] != base.parts:
                continue
            if full.suffix.lower() not in RULE_SUFFIXES or full.name.lower() == "readme.md":
                continue
            paths.append(full.relative_to(base) if base.parts else full)
        return sorted(paths)

    def _fetch(self, client: httpx.Client, rel_path: PurePosixPath) -> str:
        full = PurePosixPath(self.path.strip("/")) / rel_path
        response = client.get(f"{self.raw_base}/{self.repository}/{self.ref}/{full.as_posix()}")
        response.raise_for_status()
        return response.text


# ---------------------------------------------------------------------------
# Documentation API
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DocumentationApiSource:
    """Rules served as JSON records by a documentation service.

    GET {base_url}/rules returns either a list of records or an object
    with a "rules" list. Record keys mirror the frontmatter keys plus
    "id" and "content".
    """

    base_url: str
    product: Optional[ProductId] = None
    token: str = field(default="", repr=False, compare=False)
    timeout: float = 10.0
    transport: Optional[httpx.BaseTransport] = field(default=None, repr=False, compare=False)

    kind: ClassVar[SourceType] = SourceType.DOCUMENTATION_API

    @property
    def location(self) -> str:
        return f"{self.base_url.rstrip('/')}/rules"

    def load(self) -> list[Rule]:
        try:
            with httpx.Client(
                timeout=self.timeout,
                headers=_auth_headers(self.token),
                transport=self.transport,
            ) as client:
                response = client.get(self.location)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as exc:
            raise IndexSourceError(self, f"request failed: {exc}", exc) from exc
        except ValueError as exc:
            raise IndexSourceError(self, f"response is not JSON: {exc}", exc) from exc

        records = payload.get("rules") if isinstance(payload, dict) else payload
        if not isinstance(records, list):
            raise IndexSourceError(self, "response holds no rule list")

        rules: list[Rule] = []
        for record in records:
            try:
                rules.append(self._rule_from_record(record))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping documentation record from %s: %s", self.location, exc)
        logger.info("Loaded %d rules from %s", len(rules), self.location)
        return rules

    def _rule_from_record(self, record: dict) -> Rule:
        raw_products = (
            record.get("products")
            or record.get("applicableProducts")
            or record.get("product")
            or ([self.product.value] if self.product else [])
        )
        if isinstance(raw_products, str):
            raw_products = [raw_products]
        products = tuple(dict.fromkeys(ProductId(str(p).lower()) for p in raw_products))

        content = str(record.get("content") or "")
        return Rule(
            id=str(record["id"]),
            title=str(record.get("title") or record["id"]),
            content=content,
            applicable_products=products,
            category=RuleCategory.parse(record.get("category")) or RuleCategory.GENERAL,
            priority=RulePriority.parse(record.get("priority")) or RulePriority.MEDIUM,
            globs=tuple(record.get("globs") or ()),
            description=str(record.get("description") or ""),
            tags=tuple(record.get("tags") or ()),
            source=self.location,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def scope_for(rel_path: PurePosixPath, product: Optional[ProductId]) -> tuple[ProductId, ...]:
    """Default product scope for a document at rel_path inside a source.

    A source-level product wins; otherwise the first path segment is
    used when it names a product or the shared bucket.
    """
    if product is not None:
        return (product,)
    if len(rel_path.parts) < 2:
        return ()
    try:
        return (ProductId(rel_path.parts[0].lower()),)
    except ValueError:
        return ()


def rule_id_for(rel_path: PurePosixPath) -> str:
    return rel_path.with_suffix("").as_posix()


def _auth_headers(token: str) -> dict[str, str]:
    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers
