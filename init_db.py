"""Initialize the database schema for the collaboration service.

Creates all tables; with --seed, also inserts a handful of sample entities,
users and backings so the suggestions endpoint has something to rank.
Run this before starting the API server.
"""

import argparse
import asyncio
import sys

from backr.config import settings
from backr.db import AsyncSessionMaker, engine
from backr.models import (
    Backing,
    BackingStatus,
    Base,
    Campaign,
    CampaignStatus,
    Entity,
    EntityType,
    User,
)


def sample_rows() -> list:
    """Sample users, entities, campaigns and backings."""
    alice = User(email="alice@example.com", name="Alice")
    bob = User(email="bob@example.com", name="Bob")
    carol = User(email="carol@example.com", name="Carol")

    lendy = Entity(
        type=EntityType.FEATURED_APP,
        name="Lendy",
        description="We provide DeFi lending and staking services",
        party_id="lendy::1220aa",
    )
    stakehouse = Entity(
        type=EntityType.FEATURED_APP,
        name="Stakehouse",
        description="DeFi staking and yield protocol",
        party_id="stakehouse::1220bb",
    )
    nodeworks = Entity(
        type=EntityType.VALIDATOR,
        name="NodeWorks",
        description="Institutional validator infrastructure with compliance reporting",
        website="https://nodeworks.example.com",
        party_id="nodeworks::1220cc",
    )
    quiet = Entity(
        type=EntityType.VALIDATOR,
        name="Quiet Node",
        party_id="quiet::1220dd",
    )

    campaign = Campaign(entity=quiet, title="Genesis", status=CampaignStatus.OPEN)

    backings = [
        Backing(user=alice, entity=lendy, amount=100, status=BackingStatus.LOCKED),
        Backing(user=bob, entity=lendy, amount=50, status=BackingStatus.PLEDGED),
        Backing(user=bob, entity=stakehouse, amount=75, status=BackingStatus.PLEDGED),
        Backing(user=carol, entity=stakehouse, amount=20, status=BackingStatus.WITHDRAWN),
        Backing(user=alice, entity=nodeworks, amount=10, status=BackingStatus.UNLOCKING),
    ]

    return [alice, bob, carol, lendy, stakehouse, nodeworks, quiet, campaign, *backings]


async def init_database(drop: bool, seed: bool) -> None:
    """Create all database tables."""
    print(f"Initializing database: {settings.db.url}")

    async with engine.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
            print("✓ Dropped existing tables")

        await conn.run_sync(Base.metadata.create_all)
        print("✓ Created all tables")

    if seed:
        async with AsyncSessionMaker() as session:
            session.add_all(sample_rows())
            await session.commit()
        print("✓ Inserted sample data")

    await engine.dispose()
    print("\n✅ Database initialization complete!")
    print(f"Tables created: {', '.join(Base.metadata.tables.keys())}")


async def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    parser.add_argument("--seed", action="store_true", help="insert sample data")
    args = parser.parse_args(argv)

    try:
        await init_database(drop=args.drop, seed=args.seed)
    except Exception as e:
        print(f"\n❌ Error initializing database: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
