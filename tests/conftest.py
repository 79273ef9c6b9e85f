"""
Pytest configuration and shared fixtures.
"""

import os

# Must be set before backr.config builds its settings
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("LEDGER_MODE", "mock")

import asyncio

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from backr.models import Backing, BackingStatus, Base, Campaign, Entity, EntityType, User
from backr.rules import EntityProfile


@pytest.fixture
def session_factory(tmp_path):
    """Async session factory bound to a fresh SQLite database."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    asyncio.run(engine.dispose())


@pytest.fixture
def add_rows(session_factory):
    """Insert ORM objects and commit."""
    def _add(*rows):
        async def insert():
            async with session_factory() as session:
                session.add_all(rows)
                await session.commit()

        asyncio.run(insert())

    return _add


@pytest.fixture
def make_entity():
    """Build an Entity with a unique party id."""
    def _make(entity_id, entity_type=EntityType.FEATURED_APP, description=None, website=None, name=None):
        return Entity(
            id=entity_id,
            type=entity_type,
            name=name or f"Entity {entity_id}",
            description=description,
            website=website,
            party_id=f"party-{entity_id}",
        )

    return _make


@pytest.fixture
def make_backing():
    """Build a Backing (and its User) for an entity."""
    users = {}

    def _make(user_id, entity_id, status=BackingStatus.PLEDGED):
        rows = []
        if user_id not in users:
            users[user_id] = User(id=user_id, email=f"{user_id}@example.com", name=user_id)
            rows.append(users[user_id])
        rows.append(Backing(user_id=user_id, entity_id=entity_id, amount=100, status=status))
        return rows

    return _make


@pytest.fixture
def make_campaign():
    """Build a Campaign for an entity."""
    def _make(entity_id, title="Campaign"):
        return Campaign(entity_id=entity_id, title=title)

    return _make


@pytest.fixture
def app_profile():
    """Featured App profile factory for scorer tests."""
    def _make(entity_id="app-1", description=None, backers=()):
        return EntityProfile(
            id=entity_id,
            type=EntityType.FEATURED_APP,
            name=f"App {entity_id}",
            description=description,
            party_id=f"party-{entity_id}",
            backer_ids=set(backers),
        )

    return _make


@pytest.fixture
def validator_profile():
    """Validator profile factory for scorer tests."""
    def _make(entity_id="val-1", description=None, backers=()):
        return EntityProfile(
            id=entity_id,
            type=EntityType.VALIDATOR,
            name=f"Validator {entity_id}",
            description=description,
            party_id=f"party-{entity_id}",
            backer_ids=set(backers),
        )

    return _make
