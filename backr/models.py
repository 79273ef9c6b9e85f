"""Core SQLAlchemy models (2.x style) for the Backr schema.

Entities (Featured Apps / Validators) run campaigns; users back them.
Only the columns the collaboration service reads or projects are modelled.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import BigInteger, Enum as SAEnum, ForeignKey, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def new_id() -> str:
    return str(uuid.uuid4())


class EntityType(str, Enum):
    """Kind of registered entity."""
    FEATURED_APP = "FEATURED_APP"
    VALIDATOR = "VALIDATOR"


class ClaimStatus(str, Enum):
    """Ownership claim state of an entity."""
    UNCLAIMED = "UNCLAIMED"
    PENDING_CLAIM = "PENDING_CLAIM"
    CLAIMED = "CLAIMED"
    SELF_REGISTERED = "SELF_REGISTERED"


class CampaignStatus(str, Enum):
    """Campaign lifecycle state."""
    DRAFT = "DRAFT"
    OPEN = "OPEN"
    SELECTING = "SELECTING"
    FUNDED = "FUNDED"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


class BackingStatus(str, Enum):
    """Backing lifecycle state."""
    PLEDGED = "PLEDGED"
    LOCKED = "LOCKED"
    UNLOCKING = "UNLOCKING"
    WITHDRAWN = "WITHDRAWN"


# Backings in these states count as a live relationship between backer and entity
ACTIVE_BACKING_STATUSES = (BackingStatus.PLEDGED, BackingStatus.LOCKED)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class User(Base):
    """Platform users (backers and entity owners)."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(255))
    party_id: Mapped[str | None] = mapped_column(String(255), index=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)

    backings: Mapped[list[Backing]] = relationship("Backing", back_populates="user")


class Entity(Base):
    """Registered Featured Apps and Validators."""
    __tablename__ = "entities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    type: Mapped[EntityType] = mapped_column(SAEnum(EntityType, name="entity_type"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text)
    logo_url: Mapped[str | None] = mapped_column(String(1024))
    website: Mapped[str | None] = mapped_column(String(1024))
    party_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    claim_status: Mapped[ClaimStatus] = mapped_column(
        SAEnum(ClaimStatus, name="claim_status"),
        default=ClaimStatus.UNCLAIMED,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    campaigns: Mapped[list[Campaign]] = relationship("Campaign", back_populates="entity")
    backings: Mapped[list[Backing]] = relationship("Backing", back_populates="entity")


class Campaign(Base):
    """Funding campaigns run by entities."""
    __tablename__ = "campaigns"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    entity_id: Mapped[str] = mapped_column(ForeignKey("entities.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[CampaignStatus] = mapped_column(
        SAEnum(CampaignStatus, name="campaign_status"),
        default=CampaignStatus.DRAFT,
        nullable=False,
    )
    target_amount: Mapped[int | None] = mapped_column(BigInteger)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)

    entity: Mapped[Entity] = relationship("Entity", back_populates="campaigns")


class Backing(Base):
    """Pledges of CC by users toward an entity (optionally a campaign)."""
    __tablename__ = "backings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    entity_id: Mapped[str] = mapped_column(ForeignKey("entities.id", ondelete="CASCADE"), nullable=False, index=True)
    campaign_id: Mapped[str | None] = mapped_column(ForeignKey("campaigns.id", ondelete="SET NULL"))
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    status: Mapped[BackingStatus] = mapped_column(
        SAEnum(BackingStatus, name="backing_status"),
        default=BackingStatus.PLEDGED,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)

    # Relationships
    user: Mapped[User] = relationship("User", back_populates="backings")
    entity: Mapped[Entity] = relationship("Entity", back_populates="backings")

    __table_args__ = (
        Index("ix_backings_entity_status", "entity_id", "status"),
    )
