"""Types for the rules module.

A Rule is one guidance document scoped to one or more products, or to
the shared sentinel. Rules are immutable once loaded; the index owns them
and the matcher only reads them.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Iterator, Optional

from productrules.detector.types import DetectionResult
from productrules.products import ProductId


class RuleCategory(StrEnum):
    FRONTEND = "frontend"
    BACKEND = "backend"
    GENERAL = "general"
    QUALITY = "quality"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["RuleCategory"]:
        """Lenient parse for hints and frontmatter. Unknown values give None."""
        if not value:
            return None
        normalized = str(value).strip().lower()
        if normalized == "project-structure":
            return cls.GENERAL
        try:
            return cls(normalized)
        except ValueError:
            return None


class RulePriority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort key: 0 for high, 2 for low."""
        return {"high": 0, "medium": 1, "low": 2}[self.value]

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["RulePriority"]:
        if not value:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class Rule:
    """A development guidance document.

    applicable_products must hold at least one product; a rule listing
    ProductId.SHARED is a shared rule and is offered for every product.
    source is the location string of the RuleSource that loaded it.
    """

    id: str
    title: str
    content: str
    applicable_products: tuple[ProductId, ...]
    category: RuleCategory = RuleCategory.GENERAL
    priority: RulePriority = RulePriority.MEDIUM
    globs: tuple[str, ...] = ()
    description: str = ""
    tags: tuple[str, ...] = ()
    violations: tuple[str, ...] = ()
    references: tuple[str, ...] = ()
    source: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Rule id must not be empty")
        if not self.applicable_products:
            raise ValueError(f"Rule {self.id!r} has no applicable products")

    @property
    def is_shared(self) -> bool:
        return ProductId.SHARED in self.applicable_products

    def applies_to(self, product: ProductId) -> bool:
        return self.is_shared or product in self.applicable_products

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "applicable_products": [p.value for p in self.applicable_products],
            "category": self.category.value,
            "priority": self.priority.value,
            "globs": list(self.globs),
            "tags": list(self.tags),
            "source": self.source,
        }


@dataclass(frozen=True)
class RuleHints:
    """Optional caller hints that sharpen ranking.

    category: expected rule category ("backend", "frontend", ...).
    glob: file path or glob the caller is working on.
    technologies: technology names matched against rule tags.
    """

    category: Optional[str] = None
    glob: Optional[str] = None
    technologies: tuple[str, ...] = ()

    @classmethod
    def from_value(cls, value: "RuleHints | dict | None") -> "RuleHints":
        if value is None:
            return cls()
        if isinstance(value, RuleHints):
            return value
        return cls(
            category=value.get("category"),
            glob=value.get("glob"),
            technologies=tuple(value.get("technologies") or ()),
        )


@dataclass(frozen=True)
class RuleMatch:
    """A rule selected for a scenario, with its explainable relevance.

    matched_product is the routed product whose bucket admitted the rule,
    or ProductId.SHARED for shared rules.
    """

    rule: Rule
    relevance: float
    matched_product: ProductId
    reasons: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "rule": self.rule.to_dict(),
            "relevance": round(self.relevance, 4),
            "matched_product": self.matched_product.value,
            "reasons": list(self.reasons),
            "suggestions": list(self.suggestions),
        }


@dataclass
class RuleSelection:
    """Ranked matches for one apply_rules call.

    Iterating a selection yields its RuleMatch objects in rank order.
    notice explains why the selection was restricted to shared rules or
    left empty.
    """

    matches: list[RuleMatch] = field(default_factory=list)
    detection: Optional[DetectionResult] = None
    notice: Optional[str] = None

    def __iter__(self) -> Iterator[RuleMatch]:
        return iter(self.matches)

    def __len__(self) -> int:
        return len(self.matches)

    def __getitem__(self, index: int) -> RuleMatch:
        return self.matches[index]

    def to_dict(self) -> dict:
        return {
            "matches": [m.to_dict() for m in self.matches],
            "detection": self.detection.to_dict() if self.detection else None,
            "notice": self.notice,
        }
