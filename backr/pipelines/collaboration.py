"""Collaboration pipeline: Entity → ranked partner suggestions.

Loads the source entity and the candidate pool, scores every candidate with
the rule engine, then filters, sorts and truncates.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Literal

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backr import models
from backr.config import settings
from backr.rules import CollaborationScorer, EntityProfile, MatchType, RuleTrace

logger = logging.getLogger(__name__)

Strategy = Literal["rules", "ai"]


@dataclass
class Suggestion:
    """Single collaboration suggestion."""
    entity: EntityProfile
    score: int
    reasons: list[str]
    match_type: MatchType
    traces: list[RuleTrace] = field(default_factory=list)


@dataclass
class CollaborationResult:
    """Ranked suggestions for one source entity."""
    suggestions: list[Suggestion] = field(default_factory=list)
    strategy: Strategy = "rules"


class CollaborationError(Exception):
    """Raised when the collaboration pipeline fails."""
    pass


def _to_profile(entity: models.Entity, backer_ids: set[str]) -> EntityProfile:
    return EntityProfile(
        id=entity.id,
        type=entity.type,
        name=entity.name,
        description=entity.description,
        logo_url=entity.logo_url,
        website=entity.website,
        party_id=entity.party_id,
        backer_ids=backer_ids,
    )


async def load_active_backer_ids(
    session: AsyncSession,
    entity_ids: list[str],
) -> dict[str, set[str]]:
    """Load user ids of active (pledged or locked) backings per entity.

    Args:
        session: Database session
        entity_ids: Entities to load backers for

    Returns:
        Dictionary mapping entity_id to the set of backer user ids
    """
    if not entity_ids:
        return {}

    query = select(models.Backing.entity_id, models.Backing.user_id).where(
        models.Backing.entity_id.in_(entity_ids),
        models.Backing.status.in_(models.ACTIVE_BACKING_STATUSES),
    )
    result = await session.execute(query)

    backers: dict[str, set[str]] = defaultdict(set)
    for entity_id, user_id in result.all():
        backers[entity_id].add(user_id)
    return backers


async def load_entity(
    session: AsyncSession,
    entity_id: str,
) -> EntityProfile | None:
    """Load one entity with its active backers.

    Returns:
        EntityProfile, or None when the entity does not exist
    """
    try:
        result = await session.execute(
            select(models.Entity).where(models.Entity.id == entity_id)
        )
        entity = result.scalar_one_or_none()
        if entity is None:
            return None

        backers = await load_active_backer_ids(session, [entity.id])
        return _to_profile(entity, backers.get(entity.id, set()))

    except Exception as e:
        logger.error(f"Failed to load entity {entity_id}: {e}")
        raise CollaborationError(f"Failed to load entity {entity_id}: {e}") from e


async def load_candidate_entities(
    session: AsyncSession,
    exclude_id: str,
) -> list[EntityProfile]:
    """Load every other entity that discloses some profile data.

    An entity qualifies when it has a description, a website, or at least
    one campaign.

    Args:
        session: Database session
        exclude_id: Source entity id, never part of its own candidate pool

    Returns:
        List of EntityProfile objects
    """
    try:
        query = select(models.Entity).where(
            models.Entity.id != exclude_id,
            or_(
                models.Entity.description.is_not(None),
                models.Entity.website.is_not(None),
                models.Entity.campaigns.any(),
            ),
        )
        result = await session.execute(query)
        entities = result.scalars().all()

        backers = await load_active_backer_ids(session, [e.id for e in entities])
        return [_to_profile(e, backers.get(e.id, set())) for e in entities]

    except Exception as e:
        logger.error(f"Failed to load candidate pool for {exclude_id}: {e}")
        raise CollaborationError(f"Failed to load candidates: {e}") from e


def rank_suggestions(suggestions: list[Suggestion], limit: int) -> list[Suggestion]:
    """Drop non-positive scores, sort by score DESC then entity id ASC, take limit."""
    positive = [s for s in suggestions if s.score > 0]
    positive.sort(key=lambda s: (-s.score, s.entity.id))
    return positive[:limit]


def score_candidates(
    source: EntityProfile,
    candidates: list[EntityProfile],
    scorer: CollaborationScorer,
) -> list[Suggestion]:
    """Score every candidate against the source entity."""
    suggestions = []
    for candidate in candidates:
        result = scorer.score(source, candidate)
        suggestions.append(
            Suggestion(
                entity=candidate,
                score=result.score,
                reasons=result.reasons,
                match_type=result.match_type,
                traces=result.traces,
            )
        )
    return suggestions


async def find_collaborations(
    session: AsyncSession,
    entity_id: str,
    limit: int | None = None,
    *,
    scorer: CollaborationScorer | None = None,
) -> CollaborationResult:
    """Execute the collaboration pipeline for a single entity.

    Workflow:
    1. Load the source entity (missing entity → empty result)
    2. Load the candidate pool
    3. Score each candidate with the rule engine
    4. Drop scores <= 0, sort, truncate to limit

    Args:
        session: Database session
        entity_id: Source entity id
        limit: Maximum suggestions (default from config)
        scorer: Rule engine to use (default rules and config)

    Returns:
        CollaborationResult with strategy "rules"

    Raises:
        CollaborationError: If loading fails
    """
    if limit is None:
        limit = settings.collaboration.default_limit
    scorer = scorer or CollaborationScorer()

    source = await load_entity(session, entity_id)
    if source is None:
        logger.info(f"Entity {entity_id} not found, no suggestions")
        return CollaborationResult(suggestions=[], strategy="rules")

    candidates = await load_candidate_entities(session, entity_id)
    logger.info(f"Scoring {len(candidates)} candidates for entity {entity_id}")

    scored = score_candidates(source, candidates, scorer)
    suggestions = rank_suggestions(scored, limit)

    logger.info(
        f"Matched {sum(1 for s in scored if s.score > 0)} candidates for {entity_id}, "
        f"returning top {len(suggestions)}"
    )
    return CollaborationResult(suggestions=suggestions, strategy="rules")


async def get_collaboration_suggestions(
    session: AsyncSession,
    entity_id: str,
    limit: int | None = None,
    *,
    scorer: CollaborationScorer | None = None,
) -> CollaborationResult:
    """Collaboration suggestions for display.

    Suggestions are a supplementary feature: any failure is logged and
    reported as an empty result so the calling page keeps working.
    """
    try:
        return await find_collaborations(session, entity_id, limit, scorer=scorer)
    except Exception as e:
        logger.error(f"Error finding collaborations for {entity_id}: {e}", exc_info=True)
        return CollaborationResult(suggestions=[], strategy="rules")
