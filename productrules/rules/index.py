"""In-memory rule index.

A RuleIndex is an immutable snapshot: built once from an ordered list of
sources, then only read. Refreshing means building a new index and
swapping the reference (see productrules.router).

Build flow:
1. Load each source in order. A later source overrides an earlier one
   by rule id (last wins), so local overrides can shadow shared defaults.
2. A source that fails is recorded in failed_sources and the build goes
   on; the resulting index is marked degraded.
3. Group rules into (product, category) buckets, with a separate shared
   bucket keyed by category.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from productrules.errors import IndexSourceError
from productrules.products import ProductId
from productrules.rules.sources import RuleSource
from productrules.rules.types import Rule, RuleCategory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleIndex:
    by_id: dict[str, Rule] = field(default_factory=dict)
    product_buckets: dict[tuple[ProductId, RuleCategory], tuple[Rule, ...]] = field(
        default_factory=dict
    )
    shared_buckets: dict[RuleCategory, tuple[Rule, ...]] = field(default_factory=dict)
    failed_sources: tuple[RuleSource, ...] = ()
    errors: tuple[IndexSourceError, ...] = ()

    @property
    def degraded(self) -> bool:
        """True when at least one source failed to load."""
        return bool(self.failed_sources)

    @property
    def size(self) -> int:
        return len(self.by_id)

    def get(self, rule_id: str) -> Optional[Rule]:
        return self.by_id.get(rule_id)

    def all_rules(self) -> list[Rule]:
        return [self.by_id[rule_id] for rule_id in sorted(self.by_id)]

    def rules_for(self, product: ProductId, category: Optional[RuleCategory] = None) -> list[Rule]:
        """Product-scoped rules only; shared rules come from shared_rules()."""
        if product is ProductId.SHARED:
            return self.shared_rules(category)
        categories = [category] if category else list(RuleCategory)
        rules: list[Rule] = []
        for cat in categories:
            rules.extend(self.product_buckets.get((product, cat), ()))
        return rules

    def shared_rules(self, category: Optional[RuleCategory] = None) -> list[Rule]:
        categories = [category] if category else list(RuleCategory)
        rules: list[Rule] = []
        for cat in categories:
            rules.extend(self.shared_buckets.get(cat, ()))
        return rules


@dataclass(frozen=True)
class RefreshReport:
    """Outcome of building an index from a list of sources."""

    loaded: int
    failed: list[RuleSource] = field(default_factory=list)
    errors: list[IndexSourceError] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "loaded": self.loaded,
            "failed": [
                {"kind": s.kind.value, "location": s.location} for s in self.failed
            ],
            "errors": [str(e) for e in self.errors],
        }


def build_index(sources: Sequence[RuleSource]) -> RuleIndex:
    """Build a fresh index from sources in precedence order.

    Never raises for source failures; they are recorded on the index.
    """
    by_id: dict[str, Rule] = {}
    failed: list[RuleSource] = []
    errors: list[IndexSourceError] = []

    for source in sources:
        try:
            rules = source.load()
        except IndexSourceError as exc:
            _record_failure(source, exc, failed, errors)
            continue
        except Exception as exc:
            # Any other escape from a source is still that source's failure
            _record_failure(source, IndexSourceError(source, str(exc), exc), failed, errors)
            continue

        seen: set[str] = set()
        for rule in rules:
            if rule.id in seen:
                logger.warning("Duplicate rule id %s in %s; last one kept", rule.id, source.location)
            elif rule.id in by_id:
                logger.debug(
                    "Rule %s from %s overrides %s", rule.id, source.location, by_id[rule.id].source
                )
            seen.add(rule.id)
            by_id[rule.id] = rule

    product_buckets, shared_buckets = _bucket(by_id.values())
    index = RuleIndex(
        by_id=by_id,
        product_buckets=product_buckets,
        shared_buckets=shared_buckets,
        failed_sources=tuple(failed),
        errors=tuple(errors),
    )
    logger.info(
        "Rule index built: %d rules, %d/%d sources failed",
        index.size,
        len(failed),
        len(sources),
    )
    return index


def report_for(index: RuleIndex) -> RefreshReport:
    return RefreshReport(
        loaded=index.size,
        failed=list(index.failed_sources),
        errors=list(index.errors),
    )


def _record_failure(source, exc, failed, errors) -> None:
    logger.warning("Rule source %s (%s) failed: %s", source.location, source.kind.value, exc)
    failed.append(source)
    errors.append(exc)


def _bucket(rules):
    product_lists: dict[tuple[ProductId, RuleCategory], list[Rule]] = {}
    shared_lists: dict[RuleCategory, list[Rule]] = {}

    for rule in sorted(rules, key=lambda r: r.id):
        if rule.is_shared:
            shared_lists.setdefault(rule.category, []).append(rule)
            continue
        for product in rule.applicable_products:
            product_lists.setdefault((product, rule.category), []).append(rule)

    return (
        {key: tuple(value) for key, value in product_lists.items()},
        {key: tuple(value) for key, value in shared_lists.items()},
    )
