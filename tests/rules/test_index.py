"""Tests for building and querying the rule index."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar

import httpx

from productrules.errors import IndexSourceError
from productrules.products import ProductId
from productrules.rules.index import build_index, report_for
from productrules.rules.sources import LocalDirectorySource, RemoteRepositorySource, SourceType
from productrules.rules.types import Rule, RuleCategory


@dataclass(frozen=True)
class StaticSource:
    name: str
    rules: tuple = field(default=(), compare=False)
    error: Exception | None = field(default=None, compare=False)

    kind: ClassVar[SourceType] = SourceType.DOCUMENTATION_API

    @property
    def location(self) -> str:
        return f"static://{self.name}"

    def load(self) -> list[Rule]:
        if self.error is not None:
            raise self.error
        return list(self.rules)


def _rule(rule_id: str, *products: ProductId, category=RuleCategory.GENERAL, title="") -> Rule:
    return Rule(
        id=rule_id,
        title=title or rule_id,
        content=f"{rule_id} body",
        applicable_products=products,
        category=category,
    )


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _unreachable_remote() -> RemoteRepositorySource:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    return RemoteRepositorySource(repository="acme/rules", transport=httpx.MockTransport(handler))


class TestBuildIndex:
    def test_buckets_by_product_and_category(self):
        index = build_index([StaticSource("a", rules=(
            _rule("handlers", ProductId.COMMERCE, category=RuleCategory.BACKEND),
            _rule("blueprints", ProductId.COMMERCE, category=RuleCategory.FRONTEND),
            _rule("blocks", ProductId.CONTENT_ONPREM, category=RuleCategory.BACKEND),
            _rule("naming", ProductId.SHARED),
        ))])

        assert index.size == 4
        assert [r.id for r in index.rules_for(ProductId.COMMERCE)] == ["blueprints", "handlers"]
        assert [r.id for r in index.rules_for(ProductId.COMMERCE, RuleCategory.BACKEND)] == ["handlers"]
        assert [r.id for r in index.rules_for(ProductId.CONTENT_ONPREM)] == ["blocks"]
        assert [r.id for r in index.shared_rules()] == ["naming"]
        assert index.rules_for(ProductId.DATA) == []
        assert not index.degraded

    def test_shared_rules_are_not_in_product_buckets(self):
        index = build_index([StaticSource("a", rules=(_rule("naming", ProductId.SHARED),))])
        assert index.rules_for(ProductId.COMMERCE) == []
        assert index.rules_for(ProductId.SHARED) == index.shared_rules()

    def test_multi_product_rule_is_in_each_bucket(self):
        rule = _rule("sdk-setup", ProductId.COMMERCE, ProductId.EXPERIMENTATION)
        index = build_index([StaticSource("a", rules=(rule,))])

        assert index.rules_for(ProductId.COMMERCE) == [rule]
        assert index.rules_for(ProductId.EXPERIMENTATION) == [rule]

    def test_later_source_wins_by_id(self):
        index = build_index([
            StaticSource("defaults", rules=(_rule("naming", ProductId.SHARED, title="Default"),)),
            StaticSource("local", rules=(_rule("naming", ProductId.SHARED, title="Override"),)),
        ])
        assert index.size == 1
        assert index.get("naming").title == "Override"

    def test_override_can_rescope_a_rule(self):
        index = build_index([
            StaticSource("defaults", rules=(_rule("caching", ProductId.SHARED),)),
            StaticSource("local", rules=(_rule("caching", ProductId.COMMERCE),)),
        ])
        assert index.shared_rules() == []
        assert [r.id for r in index.rules_for(ProductId.COMMERCE)] == ["caching"]

    def test_build_is_idempotent(self):
        sources = [StaticSource("a", rules=(_rule("x", ProductId.SHARED), _rule("y", ProductId.DATA)))]
        assert build_index(sources).by_id == build_index(sources).by_id

    def test_no_sources_gives_empty_index(self):
        index = build_index([])
        assert index.size == 0
        assert index.all_rules() == []
        assert not index.degraded


class TestDegradedIndex:
    def test_one_of_three_sources_failing(self, tmp_path):
        _write(tmp_path / "first" / "shared" / "naming.mdc", "# Naming\n")
        _write(tmp_path / "second" / "commerce-platform" / "handlers.mdc", "# Handlers\n")
        remote = _unreachable_remote()

        index = build_index([
            LocalDirectorySource(str(tmp_path / "first")),
            remote,
            LocalDirectorySource(str(tmp_path / "second")),
        ])

        assert index.degraded
        assert index.failed_sources == (remote,)
        assert {r.id for r in index.all_rules()} == {"shared/naming", "commerce-platform/handlers"}

        report = report_for(index)
        assert report.loaded == 2
        assert report.failed == [remote]
        assert len(report.errors) == 1
        assert isinstance(report.errors[0], IndexSourceError)

    def test_unexpected_exception_is_wrapped(self):
        broken = StaticSource("broken", error=RuntimeError("disk on fire"))
        index = build_index([broken, StaticSource("ok", rules=(_rule("x", ProductId.SHARED),))])

        assert index.failed_sources == (broken,)
        assert isinstance(index.errors[0], IndexSourceError)
        assert index.errors[0].cause is not None
        assert "disk on fire" in str(index.errors[0])
        assert index.size == 1

    def test_report_to_dict(self):
        broken = StaticSource("broken", error=IndexSourceError("static://broken", "down"))
        report = report_for(build_index([broken]))
        assert report.to_dict() == {
            "loaded": 0,
            "failed": [{"kind": "documentation-api", "location": "static://broken"}],
            "errors": ["[static://broken] down"],
        }
