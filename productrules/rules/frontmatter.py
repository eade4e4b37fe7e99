"""Rule document parser: YAML frontmatter followed by a markdown body.

    ---
    description: Handler chain conventions
    globs: ["**/*Handler.cs"]
    products: [commerce-platform]
    category: backend
    priority: high
    ---
    # Handler chains
    ...

Every frontmatter key is optional. Missing values are inferred:
  id:        caller-supplied, usually the source-relative path
  title:     first "# " heading, else the file name with dashes as spaces
  category:  keywords in the file name (blueprint -> frontend, ...)
  priority:  keywords in the body (must, critical -> high, ...)
  products:  caller-supplied defaults (directory or source scope)

A products key whose values are all unknown is an error, never a fallback
to the default scope.
"""

import logging
import re
from typing import Any, Iterable, Optional

import yaml

from productrules.products import ProductId
from productrules.rules.types import Rule, RuleCategory, RulePriority

logger = logging.getLogger(__name__)

_FRONTMATTER = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)(.*)\Z", re.DOTALL)
_TITLE = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_LINK = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
# Unquoted glob values ("globs: **/*.cs") would otherwise parse as YAML aliases
_BARE_GLOB = re.compile(r"^(\s*globs\s*:\s*)(\*[^\n]*)$", re.MULTILINE)

# Ordered: first keyword group found in the rule id wins
CATEGORY_KEYWORDS: list[tuple[tuple[str, ...], RuleCategory]] = [
    (("blueprint", "frontend", "widget", "component"), RuleCategory.FRONTEND),
    (("extension", "handler", "pipeline", "backend"), RuleCategory.BACKEND),
    (("perfection", "quality", "testing", "review"), RuleCategory.QUALITY),
]

HIGH_PRIORITY_KEYWORDS = ("critical", "must", "required", "important", "never modify")
LOW_PRIORITY_KEYWORDS = ("optional", "consider", "might", "could")

TECH_KEYWORDS = (
    "react", "redux", "typescript", "c#", ".net", "graphql", "next.js",
    "razor", "ssr", "spire", "mobius",
)
PATTERN_KEYWORDS = ("handler", "pipeline", "widget", "extension", "blueprint", "block", "flag")

_PRODUCT_KEYS = ("products", "applicableProducts", "applicable_products", "product")


def parse_rule_document(
    text: str,
    rule_id: str,
    default_products: Iterable[ProductId] = (),
    source: str = "",
) -> Rule:
    """Parse one rule document.

    Raises ValueError when the frontmatter is malformed, names only
    unknown products, or the rule ends up with no products.
    """
    meta, body = split_frontmatter(text)
    body = body.strip()
    rule_id = str(meta.get("id") or rule_id)
    name = rule_id.rsplit("/", 1)[-1]

    products = _products_from_meta(meta, rule_id) or tuple(default_products)
    if not products:
        raise ValueError(f"Rule {rule_id!r} declares no products and has no default scope")

    return Rule(
        id=rule_id,
        title=str(meta.get("title") or extract_title(body) or name.replace("-", " ").replace("_", " ")),
        content=body,
        applicable_products=products,
        category=RuleCategory.parse(meta.get("category")) or infer_category(name),
        priority=RulePriority.parse(meta.get("priority")) or infer_priority(body),
        globs=_as_tuple(meta.get("globs")),
        description=str(meta.get("description") or ""),
        tags=_as_tuple(meta.get("tags")) or extract_tags(body),
        violations=extract_violations(body),
        references=extract_references(body),
        source=source,
    )


def split_frontmatter(text: str) -> tuple[dict, str]:
    """Split a document into (frontmatter mapping, body).

    Documents without a frontmatter block are all body.
    """
    text = text.lstrip("\ufeff")
    match = _FRONTMATTER.match(text)
    if not match:
        return {}, text

    raw_meta, body = match.groups()
    try:
        meta = yaml.safe_load(_BARE_GLOB.sub(_quote_glob, raw_meta)) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid frontmatter: {exc}") from exc
    if not isinstance(meta, dict):
        raise ValueError("frontmatter is not a mapping")
    return meta, body


def _quote_glob(match: re.Match) -> str:
    value = match.group(2).strip().replace("\"", "\\\"")
    return f"{match.group(1)}\"{value}\""


def extract_title(body: str) -> Optional[str]:
    match = _TITLE.search(body)
    return match.group(1).strip() if match else None


def infer_category(rule_id: str) -> RuleCategory:
    lowered = rule_id.lower()
    for keywords, category in CATEGORY_KEYWORDS:
        if any(k in lowered for k in keywords):
            return category
    return RuleCategory.GENERAL


def infer_priority(body: str) -> RulePriority:
    lowered = body.lower()
    if any(k in lowered for k in HIGH_PRIORITY_KEYWORDS):
        return RulePriority.HIGH
    if any(k in lowered for k in LOW_PRIORITY_KEYWORDS):
        return RulePriority.LOW
    return RulePriority.MEDIUM


def extract_tags(body: str) -> tuple[str, ...]:
    lowered = body.lower()
    return tuple(k for k in TECH_KEYWORDS + PATTERN_KEYWORDS if k in lowered)


def extract_violations(body: str) -> tuple[str, ...]:
    """Bullet lines that forbid something ("Never modify", "**Important**:")."""
    violations: list[str] = []
    for line in body.splitlines():
        stripped = line.strip()
        lowered = stripped.lower()
        if not stripped.startswith(("-", "*")):
            continue
        if (
            lowered.startswith(("- **important**", "* **important**"))
            or "never modify" in lowered
            or "do not modify" in lowered
            or ("don't" in lowered and "modify" in lowered)
        ):
            violations.append(re.sub(r"^[-*]\s*(\*\*[^*]+\*\*:?\s*)?", "", stripped))
    return tuple(violations)


def extract_references(body: str) -> tuple[str, ...]:
    return tuple(
        f"{text}: {url}"
        for text, url in _LINK.findall(body)
        if url.startswith(("http://", "https://", "mdc:"))
    )


def _products_from_meta(meta: dict, rule_id: str) -> tuple[ProductId, ...]:
    for key in _PRODUCT_KEYS:
        if key not in meta:
            continue
        values = _as_tuple(meta[key])
        products: list[ProductId] = []
        for value in values:
            try:
                product = ProductId(value.lower())
            except ValueError:
                logger.warning("Rule %s names unknown product %r; ignored", rule_id, value)
                continue
            if product not in products:
                products.append(product)
        if values and not products:
            raise ValueError(f"Rule {rule_id!r} names no known product in {key!r}: {', '.join(values)}")
        return tuple(products)
    return ()


def _as_tuple(value: Any) -> tuple[str, ...]:
    """Normalise a YAML scalar, comma-separated string or list to a tuple."""
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    if isinstance(value, (list, tuple)):
        return tuple(str(v).strip() for v in value if str(v).strip())
    return (str(value),)
