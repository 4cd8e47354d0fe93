"""Visibility filter: which users a caller may discover at all."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from opentelemetry import trace
from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.category import Category, CategoryGroup
from ..models.group import GroupUser
from ..models.topic import Topic
from ..models.user import User
from ..schemas.user_search import SearchRequest

logger = logging.getLogger(__name__)
tracer = trace.get_tracer("user-lookup.visibility")


async def caller_is_staff(db: AsyncSession, searching_user_id: UUID | None) -> bool:
    """Read the caller's admin/moderator flags straight from the store."""
    if searching_user_id is None:
        return False
    result = await db.execute(
        select(User.admin, User.moderator).where(User.id == searching_user_id)
    )
    row = result.one_or_none()
    return bool(row and (row.admin or row.moderator))


async def restricted_topic_category_id(
    db: AsyncSession, topic_id: UUID
) -> UUID | None:
    """Return the topic's category id if that category is read-restricted."""
    result = await db.execute(
        select(Category.id)
        .join(Topic, Topic.category_id == Category.id)
        .where(Topic.id == topic_id, Category.read_restricted.is_(True))
    )
    return result.scalar_one_or_none()


async def restricted_category_id(db: AsyncSession, category_id: UUID) -> UUID | None:
    """Return *category_id* if it names a read-restricted category."""
    result = await db.execute(
        select(Category.id).where(
            Category.id == category_id, Category.read_restricted.is_(True)
        )
    )
    return result.scalar_one_or_none()


def category_readers(category_id: UUID) -> Select:
    """Users holding a group grant on *category_id*."""
    return (
        select(GroupUser.user_id)
        .join(CategoryGroup, CategoryGroup.group_id == GroupUser.group_id)
        .where(CategoryGroup.category_id == category_id)
    )


async def scoped_users(db: AsyncSession, request: SearchRequest) -> Select:
    """Build the eligible-user set for *request*.

    The result is a ``SELECT users.id`` carrying every visibility rule in its
    WHERE clause; tiers narrow it further with ``.where()``. Group
    authorization has already been checked when the request was accepted.

    Args:
        db: Database session
        request: The search being run

    Returns:
        Select over ``User.id`` restricted to users the caller may discover
    """
    with tracer.start_as_current_span("visibility.scoped_users") as span:
        users = select(User.id).where(User.active.is_(True))

        if not request.include_staged_users:
            users = users.where(User.staged.is_(False))

        if request.groups:
            users = users.where(
                User.id.in_(
                    select(GroupUser.user_id).where(
                        GroupUser.group_id.in_(sorted(request.groups))
                    )
                )
            )

        staff = await caller_is_staff(db, request.searching_user_id)
        span.set_attribute("caller_is_staff", staff)
        if not staff:
            now = datetime.now(timezone.utc)
            users = users.where(
                or_(User.suspended_till.is_(None), User.suspended_till <= now)
            )

        # Only offer users who can read a private topic
        if request.topic_id and request.topic_allowed_users:
            category_id = await restricted_topic_category_id(db, request.topic_id)
            if category_id is not None:
                span.set_attribute("restricted_category_id", str(category_id))
                users = users.where(
                    or_(
                        User.admin.is_(True),
                        User.id.in_(category_readers(category_id)),
                    )
                )

        logger.debug(
            "visibility.scoped",
            extra={
                "searching_user_id": (
                    str(request.searching_user_id)
                    if request.searching_user_id
                    else None
                ),
                "caller_is_staff": staff,
                "group_count": len(request.groups),
                "include_staged_users": request.include_staged_users,
            },
        )
        return users
