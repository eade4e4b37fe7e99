"""Rule matcher: selects and ranks rules for a scenario.

Selection flow:
1. Candidates come only from the buckets of the routed products plus the
   shared bucket. An ambiguous detection restricts candidates to shared
   rules; no detection yields no candidates. Both add a notice.
2. Each candidate is scored: keyword overlap with the scenario, category,
   glob and technology hint bonuses, and a priority bonus.
3. Candidates with no scenario or hint match are dropped; priority alone
   never qualifies a rule.
4. Sort by relevance, then priority, then id, and truncate to limit.

Ranking is deterministic and every score part is reported in
RuleMatch.reasons.
"""

import logging
import re
from fnmatch import fnmatchcase
from typing import Optional

from productrules.core.config import MatchWeights
from productrules.detector.types import DetectionResult, DetectionStatus
from productrules.products import ProductId
from productrules.rules.index import RuleIndex
from productrules.rules.types import Rule, RuleCategory, RuleHints, RuleMatch, RulePriority, RuleSelection

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"[a-z0-9][a-z0-9#.+-]*")

STOP_WORDS = frozenset({
    "the", "and", "for", "with", "that", "this", "from", "into", "how", "what",
    "when", "where", "which", "should", "would", "could", "can", "need", "want",
    "use", "using", "make", "create", "add", "new", "get", "set", "are", "was",
    "you", "your", "our", "all", "any", "not", "but", "about", "have", "has",
})


def match_rules(
    index: RuleIndex,
    detection: DetectionResult,
    scenario: str,
    hints: "RuleHints | dict | None" = None,
    limit: Optional[int] = None,
    weights: MatchWeights = MatchWeights(),
) -> RuleSelection:
    """Select rules for a scenario under a detection result."""
    hints = RuleHints.from_value(hints)
    candidates, notice = _candidates(index, detection)

    scenario_tokens = tokenize(scenario)
    category_hint = RuleCategory.parse(hints.category)

    matches: list[RuleMatch] = []
    for rule, admitted_by in candidates:
        scored = score_rule(rule, scenario_tokens, category_hint, hints, weights)
        if scored is None:
            continue
        relevance, reasons = scored
        matches.append(
            RuleMatch(
                rule=rule,
                relevance=relevance,
                matched_product=admitted_by,
                reasons=tuple(reasons),
                suggestions=suggestions_for(rule),
            )
        )

    matches.sort(key=lambda m: (-m.relevance, m.rule.priority.rank, m.rule.id))
    if limit is not None:
        matches = matches[: max(limit, 0)]

    logger.info(
        "Matched %d/%d candidate rules (status=%s)",
        len(matches),
        len(candidates),
        detection.status.value,
    )
    return RuleSelection(matches=matches, detection=detection, notice=notice)


def score_rule(
    rule: Rule,
    scenario_tokens: set[str],
    category_hint: Optional[RuleCategory],
    hints: RuleHints,
    weights: MatchWeights,
) -> Optional[tuple[float, list[str]]]:
    """Relevance of one rule, or None when nothing but priority matched."""
    reasons: list[str] = []
    relevance = 0.0

    overlap = scenario_tokens & rule_tokens(rule)
    if overlap:
        relevance += weights.keyword * len(overlap)
        reasons.append(f"keywords: {', '.join(sorted(overlap))}")

    if category_hint is not None and rule.category is category_hint:
        relevance += weights.category_bonus
        reasons.append(f"category: {rule.category.value}")

    if hints.glob and _glob_intersects(hints.glob, rule.globs):
        relevance += weights.glob_bonus
        reasons.append(f"glob: {hints.glob}")

    tech_hits = _technology_hits(hints.technologies, rule.tags)
    if tech_hits:
        relevance += weights.technology_bonus * len(tech_hits)
        reasons.append(f"technologies: {', '.join(tech_hits)}")

    if not reasons:
        return None

    relevance += _priority_bonus(rule.priority, weights)
    reasons.append(f"priority: {rule.priority.value}")
    return relevance, reasons


def tokenize(text: str) -> set[str]:
    """Lowercase word tokens of at least three characters, minus stop words."""
    return {
        token.strip(".-")
        for token in _TOKEN.findall(text.lower())
        if len(token.strip(".-")) >= 3 and token.strip(".-") not in STOP_WORDS
    }


def rule_tokens(rule: Rule) -> set[str]:
    return tokenize(" ".join((rule.title, rule.description, rule.content, " ".join(rule.tags))))


def suggestions_for(rule: Rule) -> tuple[str, ...]:
    """Up to three short pointers derived from the rule body."""
    suggestions: list[str] = []
    if rule.violations:
        suggestions.append(f"Avoid: {rule.violations[0]}")
    if rule.globs:
        suggestions.append(f"Applies to: {', '.join(rule.globs)}")
    if rule.references:
        suggestions.append(f"Reference: {rule.references[0]}")
    return tuple(suggestions[:3])


# ---------------------------------------------------------------------------
# Candidate selection
# ---------------------------------------------------------------------------

def _candidates(
    index: RuleIndex,
    detection: DetectionResult,
) -> tuple[list[tuple[Rule, ProductId]], Optional[str]]:
    shared = [(rule, ProductId.SHARED) for rule in index.shared_rules()]

    if detection.status is DetectionStatus.AMBIGUOUS:
        return shared, ambiguity_notice(detection)

    if detection.status is DetectionStatus.NONE or not detection.products:
        return [], no_product_notice()

    seen: set[str] = set()
    candidates: list[tuple[Rule, ProductId]] = []
    for product in detection.products:
        for rule in index.rules_for(product):
            if rule.id not in seen:
                seen.add(rule.id)
                candidates.append((rule, product))
    for rule, bucket in shared:
        if rule.id not in seen:
            seen.add(rule.id)
            candidates.append((rule, bucket))
    return candidates, None


def ambiguity_notice(detection: DetectionResult) -> str:
    listed = ", ".join(
        f"{a.product.value} ({a.confidence:.0%})" for a in detection.alternates
    )
    return (
        f"Product detection is ambiguous between {listed}. Only shared rules are "
        "returned; pass an explicit product override to get product-specific rules."
    )


def no_product_notice() -> str:
    return (
        "No platform product was detected for this project. Pass an explicit "
        "product override to get product-specific rules."
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _glob_intersects(hint: str, globs: tuple[str, ...]) -> bool:
    """True when the hint equals a rule glob or either one matches the other."""
    hint_l = hint.lower().lstrip("./")
    for glob in globs:
        glob_l = glob.lower().lstrip("./")
        if hint_l == glob_l or fnmatchcase(hint_l, glob_l) or fnmatchcase(glob_l, hint_l):
            return True
        # "**/*.cs" should also match a bare "Foo.cs"
        if glob_l.startswith("**/") and fnmatchcase(hint_l, glob_l[3:]):
            return True
    return False


def _technology_hits(technologies: tuple[str, ...], tags: tuple[str, ...]) -> list[str]:
    lowered_tags = {t.lower() for t in tags}
    return sorted({t.lower() for t in technologies if t.lower() in lowered_tags})


def _priority_bonus(priority: RulePriority, weights: MatchWeights) -> float:
    return {
        RulePriority.HIGH: weights.high_priority_bonus,
        RulePriority.MEDIUM: weights.medium_priority_bonus,
        RulePriority.LOW: weights.low_priority_bonus,
    }[priority]
