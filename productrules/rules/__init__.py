"""Rules module: rule sources, the in-memory index and the matcher.

Public API:
    build_index(sources) -> RuleIndex
    match_rules(index, detection, scenario, hints=None) -> RuleSelection
"""

from productrules.rules.index import RefreshReport, RuleIndex, build_index
from productrules.rules.matcher import match_rules
from productrules.rules.sources import (
    DocumentationApiSource,
    LocalDirectorySource,
    RemoteRepositorySource,
    RuleSource,
    SourceType,
)
from productrules.rules.types import (
    Rule,
    RuleCategory,
    RuleHints,
    RuleMatch,
    RulePriority,
    RuleSelection,
)

__all__ = [
    "build_index",
    "match_rules",
    "DocumentationApiSource",
    "LocalDirectorySource",
    "RefreshReport",
    "RemoteRepositorySource",
    "Rule",
    "RuleCategory",
    "RuleHints",
    "RuleIndex",
    "RuleMatch",
    "RulePriority",
    "RuleSelection",
    "RuleSource",
    "SourceType",
]
