"""FastAPI app with health, entity and collaboration endpoints.

The ledger client is created once at startup from configuration and handed
to routes through a dependency, so tests can swap it out.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ledger import LedgerClient, LedgerError, create_ledger_client

from .config import settings
from .db import get_session
from .logging_config import setup_logging
from .pipelines.collaboration import (
    CollaborationError,
    Suggestion,
    get_collaboration_suggestions,
    load_entity,
)
from .rules import EntityProfile

logger = logging.getLogger(__name__)


# Pydantic response models
class LedgerHealthDTO(BaseModel):
    """Ledger connectivity."""
    connected: bool
    offset: str | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    ledger: LedgerHealthDTO


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    detail: str | None = None


class EntityDTO(BaseModel):
    """Public projection of an entity."""
    id: str
    name: str
    type: str
    description: str | None = None
    logo_url: str | None = None
    website: str | None = None
    party_id: str

    @classmethod
    def from_profile(cls, profile: EntityProfile) -> EntityDTO:
        return cls(
            id=profile.id,
            name=profile.name,
            type=getattr(profile.type, "value", profile.type),
            description=profile.description,
            logo_url=profile.logo_url,
            website=profile.website,
            party_id=profile.party_id,
        )


class EntityResponse(EntityDTO):
    """Entity detail response."""
    active_backers: int


class RuleTraceDTO(BaseModel):
    """Rule trace data transfer object."""
    rule_id: str
    status: str
    score_delta: int = 0
    reason: str | None = None
    match_type: str | None = None


class SuggestionDTO(BaseModel):
    """Single collaboration suggestion."""
    entity: EntityDTO
    score: int
    reasons: list[str]
    match_type: str
    rule_trace: list[RuleTraceDTO] | None = None

    @classmethod
    def from_suggestion(cls, suggestion: Suggestion, *, explain: bool = False) -> SuggestionDTO:
        trace = None
        if explain:
            trace = [
                RuleTraceDTO(
                    rule_id=t.rule_id,
                    status=t.status.value,
                    score_delta=t.score_delta,
                    reason=t.reason,
                    match_type=t.match_type.value if t.match_type else None,
                )
                for t in suggestion.traces
            ]
        return cls(
            entity=EntityDTO.from_profile(suggestion.entity),
            score=suggestion.score,
            reasons=suggestion.reasons,
            match_type=suggestion.match_type.value,
            rule_trace=trace,
        )


class CollaborationResponse(BaseModel):
    """Collaboration suggestions response."""
    suggestions: list[SuggestionDTO] = Field(default_factory=list)
    strategy: str


class PartyResponse(BaseModel):
    """Ledger party lookup response."""
    party_id: str
    valid: bool
    balance: int | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown logic."""
    # Startup
    setup_logging()
    app.state.ledger = create_ledger_client(settings.ledger)
    logger.info("Application starting up")

    yield

    # Shutdown
    await app.state.ledger.aclose()
    logger.info("Application shutting down")


app = FastAPI(
    title="Backr Collaboration Service",
    version=settings.version,
    description="Rule-based collaboration suggestions between Featured Apps and Validators",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_ledger_client(request: Request) -> LedgerClient:
    """Ledger client created at startup."""
    return request.app.state.ledger


def clamp_limit(raw: str | None) -> int:
    """Parse a limit query value and clamp it to 1..max_limit.

    Missing or non-numeric values fall back to the configured default.
    """
    cfg = settings.collaboration
    try:
        value = int(raw) if raw is not None else cfg.default_limit
    except ValueError:
        value = cfg.default_limit
    return min(max(1, value), cfg.max_limit)


# Exception handlers
@app.exception_handler(LedgerError)
async def ledger_error_handler(request, exc: LedgerError):
    """Handle ledger failures."""
    logger.error(f"Ledger error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=ErrorResponse(
            error="ledger_error",
            detail=str(exc),
        ).model_dump(),
    )


@app.exception_handler(CollaborationError)
async def collaboration_error_handler(request, exc: CollaborationError):
    """Handle entity loading errors."""
    logger.error(f"Collaboration error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="collaboration_error",
            detail=str(exc),
        ).model_dump(),
    )


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.version,
        "endpoints": {
            "health": "/health",
            "entity": "/entities/{entity_id}",
            "collaborations": "/entities/{entity_id}/collaborations",
            "party": "/ledger/parties/{party_id}",
            "docs": "/docs",
        },
    }


@app.get("/health", response_model=HealthResponse)
async def health(ledger: LedgerClient = Depends(get_ledger_client)) -> HealthResponse:
    """Health check endpoint."""
    ledger_health = await ledger.check_health()

    return HealthResponse(
        status="ok",
        version=settings.version,
        ledger=LedgerHealthDTO(
            connected=ledger_health.connected,
            offset=ledger_health.offset,
            error=ledger_health.error,
        ),
    )


@app.get(
    "/entities/{entity_id}",
    response_model=EntityResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_entity(
    entity_id: str,
    session: AsyncSession = Depends(get_session),
):
    """Retrieve an entity's public profile."""
    profile = await load_entity(session, entity_id)
    if profile is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=ErrorResponse(
                error="not_found",
                detail=f"Entity {entity_id} not found",
            ).model_dump(),
        )

    return EntityResponse(
        **EntityDTO.from_profile(profile).model_dump(),
        active_backers=len(profile.backer_ids),
    )


@app.get(
    "/entities/{entity_id}/collaborations",
    response_model=CollaborationResponse,
)
async def get_collaborations(
    entity_id: str,
    limit: str | None = None,
    explain: bool = False,
    session: AsyncSession = Depends(get_session),
) -> CollaborationResponse:
    """Suggest collaboration partners for an entity.

    Always answers 200: failures inside the pipeline come back as an empty
    suggestion list.

    Args:
        entity_id: Source entity
        limit: Number of suggestions, clamped to 1..10 (default 5)
        explain: Include per-rule traces
        session: Database session (injected)
    """
    valid_limit = clamp_limit(limit)
    logger.info(f"Collaboration suggestions for {entity_id} (limit={valid_limit})")

    result = await get_collaboration_suggestions(session, entity_id, valid_limit)

    return CollaborationResponse(
        suggestions=[SuggestionDTO.from_suggestion(s, explain=explain) for s in result.suggestions],
        strategy=result.strategy,
    )


@app.get("/ledger/parties/{party_id}", response_model=PartyResponse)
async def get_party(
    party_id: str,
    ledger: LedgerClient = Depends(get_ledger_client),
) -> PartyResponse:
    """Validate a party id on the ledger and report its balance."""
    try:
        valid = await ledger.validate_party_id(party_id)
        balance = await ledger.get_party_balance(party_id) if valid else None
    except LedgerError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error looking up party {party_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Internal server error: {str(e)}",
        )

    return PartyResponse(party_id=party_id, valid=valid, balance=balance)
