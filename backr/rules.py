"""Rule engine for collaboration scoring.

Four independent rules are evaluated in a fixed order against a
(source, candidate) pair. Each returns its own points, reason and whether it
qualifies to set the dominant match type; a final reduction sums the points
and keeps the match type of the last qualifying rule.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from backr.config import CollaborationSettings, settings
from backr.keywords import get_keyword_extractor
from backr.models import EntityType

logger = logging.getLogger(__name__)


class MatchType(str, Enum):
    """Dominant signal tag of a suggestion."""
    TYPE = "type"
    DESCRIPTION = "description"
    BACKERS = "backers"
    COMPLEMENTARY = "complementary"


class RuleStatus(str, Enum):
    """Rule evaluation status."""
    PASS = "PASS"
    SKIP = "SKIP"


@dataclass
class EntityProfile:
    """Entity data the scorer and the public projection need."""
    id: str
    type: EntityType
    name: str
    description: str | None = None
    logo_url: str | None = None
    website: str | None = None
    party_id: str = ""
    backer_ids: set[str] = field(default_factory=set)


@dataclass
class RuleTrace:
    """Audit trace for a single rule evaluation."""
    rule_id: str
    status: RuleStatus
    score_delta: int = 0
    reason: str | None = None
    match_type: MatchType | None = None  # set when the rule may claim the dominant tag


@dataclass
class MatchScore:
    """Reduced result of all rules for one candidate."""
    score: int
    reasons: list[str]
    match_type: MatchType
    traces: list[RuleTrace] = field(default_factory=list)


def _type_label(entity_type: EntityType) -> str:
    return "Featured Apps" if entity_type == EntityType.FEATURED_APP else "Validators"


def type_match_rule(
    source: EntityProfile,
    candidate: EntityProfile,
    config: CollaborationSettings,
) -> RuleTrace:
    """Same entity type."""
    if source.type != candidate.type:
        return RuleTrace(rule_id="type_match", status=RuleStatus.SKIP)

    return RuleTrace(
        rule_id="type_match",
        status=RuleStatus.PASS,
        score_delta=config.type_match_points,
        reason=f"Both are {_type_label(source.type)}",
        match_type=MatchType.TYPE,
    )


def complementary_rule(
    source: EntityProfile,
    candidate: EntityProfile,
    config: CollaborationSettings,
) -> RuleTrace:
    """Different entity types: an app can use a validator and vice versa."""
    if source.type == candidate.type:
        return RuleTrace(rule_id="complementary", status=RuleStatus.SKIP)

    if source.type == EntityType.FEATURED_APP:
        reason = "Could use their validation services"
    else:
        reason = "Could integrate with their application"

    return RuleTrace(
        rule_id="complementary",
        status=RuleStatus.PASS,
        score_delta=config.complementary_points,
        reason=reason,
        match_type=MatchType.COMPLEMENTARY,
    )


def keyword_overlap_score(
    desc1: str | None,
    desc2: str | None,
    config: CollaborationSettings,
) -> int:
    """Points for shared description keywords, capped at keyword_max_points."""
    if not desc1 or not desc2:
        return 0

    extractor = get_keyword_extractor()
    words1 = extractor.extract(desc1)
    words2 = extractor.extract(desc2)

    if not words1 or not words2:
        return 0

    match_count = len(words1 & words2)
    return min(match_count * config.keyword_points_per_match, config.keyword_max_points)


def keyword_overlap_rule(
    source: EntityProfile,
    candidate: EntityProfile,
    config: CollaborationSettings,
) -> RuleTrace:
    """Overlapping business focus from descriptions."""
    points = keyword_overlap_score(source.description, candidate.description, config)
    if points <= 0:
        return RuleTrace(rule_id="keyword_overlap", status=RuleStatus.SKIP)

    return RuleTrace(
        rule_id="keyword_overlap",
        status=RuleStatus.PASS,
        score_delta=points,
        reason="Similar business focus based on description",
        match_type=MatchType.DESCRIPTION if points >= config.description_override_min else None,
    )


def shared_backers_rule(
    source: EntityProfile,
    candidate: EntityProfile,
    config: CollaborationSettings,
) -> RuleTrace:
    """Users actively backing both entities."""
    shared = len(source.backer_ids & candidate.backer_ids)
    if shared == 0:
        return RuleTrace(rule_id="shared_backers", status=RuleStatus.SKIP)

    points = min(shared * config.backer_points_per_match, config.backer_max_points)
    plural = "" if shared == 1 else "s"

    return RuleTrace(
        rule_id="shared_backers",
        status=RuleStatus.PASS,
        score_delta=points,
        reason=f"{shared} shared backer{plural}",
        match_type=MatchType.BACKERS if shared >= config.backers_override_min else None,
    )


Rule = Callable[[EntityProfile, EntityProfile, CollaborationSettings], RuleTrace]

# Evaluation order matters: the last qualifying rule names the match type
DEFAULT_RULES: tuple[Rule, ...] = (
    type_match_rule,
    complementary_rule,
    keyword_overlap_rule,
    shared_backers_rule,
)


def reduce_traces(traces: list[RuleTrace]) -> MatchScore:
    """Combine rule traces into a MatchScore.

    Points are summed; reasons are kept in evaluation order; the match type
    comes from the last rule that qualified, not from the rule that
    contributed the most points.
    """
    score = 0
    reasons: list[str] = []
    match_type = MatchType.DESCRIPTION

    for trace in traces:
        if trace.status != RuleStatus.PASS:
            continue
        score += trace.score_delta
        if trace.reason:
            reasons.append(trace.reason)
        if trace.match_type is not None:
            match_type = trace.match_type

    return MatchScore(score=score, reasons=reasons, match_type=match_type, traces=traces)


class CollaborationScorer:
    """Runs the collaboration rules for source/candidate pairs.

    Holds no per-request state, so one instance can serve concurrent calls.
    """

    def __init__(
        self,
        config: CollaborationSettings | None = None,
        rules: tuple[Rule, ...] = DEFAULT_RULES,
    ):
        self.config = config or settings.collaboration
        self.rules = rules

    def score(self, source: EntityProfile, candidate: EntityProfile) -> MatchScore:
        """Score one candidate against the source entity."""
        traces = [rule(source, candidate, self.config) for rule in self.rules]
        result = reduce_traces(traces)

        logger.debug(
            f"Scored {candidate.id} against {source.id}: "
            f"{result.score} ({result.match_type.value})"
        )
        return result
