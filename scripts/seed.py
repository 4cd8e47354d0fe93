#!/usr/bin/env python3
"""
Database seed script for the user lookup service.

Creates the schema and a small forum (users, trust level groups, a private
category and a topic) for trying out user search locally.
Can be run with: python -m scripts.seed
"""

import asyncio
import sys
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError

from user_lookup.database import Base, get_async_engine, get_async_session_factory
from user_lookup.models.category import Category, CategoryGroup
from user_lookup.models.group import Group, GroupUser
from user_lookup.models.topic import Post, Topic
from user_lookup.models.user import User
from user_lookup.services.search_data import refresh_user_search_data

NOW = datetime.now(timezone.utc)

# username, name, minutes since last seen, extra flags
SAMPLE_USERS = [
    ("admin", "Site Admin", 2, {"admin": True}),
    ("moderator", "Morgan Moderator", 15, {"moderator": True}),
    ("anna", "Anna Lee", 5, {}),
    ("annie", "Annie Park", 45, {}),
    ("bob", "Bob Stone", 120, {}),
    ("carol", "Carol Bobby", 10, {}),
    ("dave", "Dave Banned", 30, {"suspended_till": NOW + timedelta(days=30)}),
    ("mailing_list", "Staged Sender", 600, {"staged": True}),
]

# Trust level groups keep their reserved ids
TRUST_LEVEL_GROUPS = [(10, "trust_level_0"), (11, "trust_level_1"), (12, "trust_level_2")]


async def seed_database() -> None:
    engine = get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = get_async_session_factory()
    async with session_factory() as session:
        users = {}
        for username, name, minutes, flags in SAMPLE_USERS:
            user = User(
                username=username,
                name=name,
                last_seen_at=NOW - timedelta(minutes=minutes),
                **flags,
            )
            session.add(user)
            users[username] = user
        await session.flush()
        for user in users.values():
            await refresh_user_search_data(session, user)
        print(f"✓ Created {len(users)} users")

        for group_id, name in TRUST_LEVEL_GROUPS:
            session.add(Group(id=group_id, name=name))
        await session.flush()
        for user in users.values():
            session.add(GroupUser(group_id=10, user_id=user.id))

        editors = Group(name="editors", visibility_level="members")
        session.add(editors)
        await session.flush()
        for username in ("anna", "carol"):
            session.add(GroupUser(group_id=editors.id, user_id=users[username].id))

        private = Category(name="Editorial", read_restricted=True)
        session.add(private)
        await session.flush()
        session.add(CategoryGroup(category_id=private.id, group_id=editors.id))
        session.add(CategoryGroup(category_id=private.id, group_id=10))

        topic = Topic(title="Next issue planning", category_id=private.id)
        session.add(topic)
        await session.flush()
        for username in ("anna", "bob"):
            session.add(Post(topic_id=topic.id, user_id=users[username].id))

        await session.commit()
        print("✓ Created groups, a private category and a topic")

    await engine.dispose()
    print("\n✅ Database seeding complete!")


async def main() -> None:
    print("🌱 User Lookup Database Seeder")
    print("=" * 40)

    try:
        await seed_database()
    except (SQLAlchemyError, ValueError) as e:
        print(f"\n❌ Error seeding database: {e}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
