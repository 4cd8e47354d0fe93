"""Tiered, permission-aware user search.

A search runs up to four tiers in order, each one bounded by the room left
in the result:

1. exact username match
2. users who posted in the topic
3. users who can read the (restricted) category
4. everyone else matching the term

Earlier tiers win: a user collected by one tier is excluded from the
queries of every later tier and never counts against the limit twice.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from uuid import UUID

from opentelemetry import trace
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..models.category import CategoryGroup
from ..models.group import GroupUser
from ..models.topic import Post
from ..models.user import User
from ..observability.metrics import (
    USER_SEARCH_DENIED,
    USER_SEARCH_DURATION,
    USER_SEARCH_TIER_RESULTS,
)
from ..schemas.user_search import SearchRequest, UserSearchOptions
from .guardian import AuthorizationError, ensure_can_see_groups
from .term_matcher import TermMatch, match_term
from .visibility import restricted_category_id, restricted_topic_category_id, scoped_users

logger = logging.getLogger(__name__)
tracer = trace.get_tracer("user-lookup.user_search")


class _Collector:
    """Ordered, de-duplicated id accumulator bounded by the request limit."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.ids: list[UUID] = []
        self._seen: set[UUID] = set()

    @property
    def remaining(self) -> int:
        return self.limit - len(self.ids)

    @property
    def full(self) -> bool:
        return self.remaining <= 0

    def exclude_collected(self, query: Select) -> Select:
        if not self.ids:
            return query
        return query.where(User.id.not_in(self.ids))

    def add(self, ids: Sequence[UUID]) -> int:
        added = 0
        for user_id in ids:
            if self.full:
                break
            if user_id in self._seen:
                continue
            self._seen.add(user_id)
            self.ids.append(user_id)
            added += 1
        return added


def _by_recency(query: Select, term_match: TermMatch) -> Select:
    return query.order_by(
        *term_match.order_by,
        User.last_seen_at.desc().nulls_last(),
        User.id,
    )


async def _run_tier(
    db: AsyncSession,
    name: str,
    query: Select,
    collector: _Collector,
) -> None:
    with tracer.start_as_current_span(f"user_search.tier.{name}") as span:
        span.set_attribute("remaining", collector.remaining)
        query = collector.exclude_collected(query).limit(collector.remaining)
        result = await db.execute(query)
        added = collector.add(result.scalars().all())
        span.set_attribute("added", added)

    USER_SEARCH_TIER_RESULTS.labels(name).inc(added)
    logger.debug(
        "user_search.tier",
        extra={"tier": name, "added": added, "remaining": collector.remaining},
    )


async def secure_category_id(db: AsyncSession, request: SearchRequest) -> UUID | None:
    """Resolve the read-restricted category whose readers form the category tier."""
    if request.category_id:
        return await restricted_category_id(db, request.category_id)
    if request.topic_id:
        return await restricted_topic_category_id(db, request.topic_id)
    return None


def category_members(
    category_id: UUID, excluded_group_ids: Sequence[int], cap: int
) -> Select:
    """Members of groups granted *category_id*, bounded by *cap* rows.

    Trust level groups are skipped: they are far too broad to stand in for
    an explicit grant on a restricted category.
    """
    granted_groups = select(CategoryGroup.group_id).where(
        CategoryGroup.category_id == category_id
    )
    query = select(GroupUser.user_id).where(GroupUser.group_id.in_(granted_groups))
    if excluded_group_ids:
        query = query.where(GroupUser.group_id.not_in(excluded_group_ids))
    return query.distinct().order_by(GroupUser.user_id).limit(cap)


async def search_ids(
    db: AsyncSession,
    request: SearchRequest,
    settings: Settings | None = None,
) -> list[UUID]:
    """Return the ordered, de-duplicated ids of users matching *request*.

    Args:
        db: Database session
        request: The search to run; group access must already be authorized
        settings: Overrides for name search and category tier bounds

    Returns:
        At most ``request.limit`` user ids, ordered by tier then within-tier rank
    """
    settings = settings or get_settings()
    collector = _Collector(request.limit)

    eligible = await scoped_users(db, request)
    term_match = match_term(
        request.term,
        enable_names=settings.enable_names,
        dialect_name=db.bind.dialect.name if db.bind else "postgresql",
    )
    filtered = eligible.where(term_match.predicate)

    def without_caller(query: Select) -> Select:
        if request.searching_user_id is None:
            return query
        return query.where(User.id != request.searching_user_id)

    # 1. exact username matches
    if request.has_term:
        await _run_tier(
            db,
            "exact",
            eligible.where(User.username_lower == term_match.exact_term).order_by(
                User.id
            ),
            collector,
        )

    if collector.full:
        return collector.ids

    # 2. in topic
    if request.topic_id:
        in_topic = filtered.where(
            User.id.in_(select(Post.user_id).where(Post.topic_id == request.topic_id))
        )
        await _run_tier(
            db, "topic", _by_recency(without_caller(in_topic), term_match), collector
        )

    if collector.full:
        return collector.ids

    # 3. category matches
    category_id = await secure_category_id(db, request)
    if category_id is not None:
        in_category = filtered.where(
            User.id.in_(
                category_members(
                    category_id,
                    settings.user_search_excluded_group_ids,
                    settings.user_search_category_member_cap,
                )
            )
        )
        await _run_tier(
            db,
            "category",
            _by_recency(without_caller(in_category), term_match),
            collector,
        )

    if collector.full:
        return collector.ids

    # 4. global matches
    if request.has_term:
        await _run_tier(db, "global", _by_recency(filtered, term_match), collector)

    return collector.ids


async def materialize(db: AsyncSession, ids: Sequence[UUID]) -> list[User]:
    """Load users for *ids*, keeping the order of *ids*.

    ``IN`` queries come back in whatever order the store likes, so rows are
    re-sorted by their position in *ids*.
    """
    if not ids:
        return []

    rank = {user_id: position for position, user_id in enumerate(ids)}
    result = await db.execute(select(User).where(User.id.in_(list(rank))))
    users = result.scalars().all()
    return sorted(users, key=lambda user: rank[user.id])


async def search_users(
    db: AsyncSession,
    term: str | None,
    options: UserSearchOptions | None = None,
) -> list[User]:
    """Search users visible to the caller, best matches first.

    Args:
        db: Database session
        term: Partial or full username / name; may be blank when a topic or
            category gives context
        options: Context, caller identity and result limit

    Returns:
        Matching users in rank order, at most ``options.limit`` of them

    Raises:
        AuthorizationError: If the caller cannot see one of ``options.groups``
    """
    settings = get_settings()
    if options is None:
        options = UserSearchOptions(limit=settings.user_search_default_limit)
    request = SearchRequest.build(term, options)
    started = time.perf_counter()

    with tracer.start_as_current_span("user_search.search") as span:
        span.set_attribute("limit", request.limit)
        span.set_attribute("has_term", request.has_term)
        span.set_attribute("has_topic", request.topic_id is not None)
        span.set_attribute("has_category", request.category_id is not None)

        try:
            await ensure_can_see_groups(db, request.searching_user_id, request.groups)
        except AuthorizationError:
            USER_SEARCH_DENIED.inc()
            USER_SEARCH_DURATION.labels("denied").observe(
                time.perf_counter() - started
            )
            raise

        ids = await search_ids(db, request, settings)
        users = await materialize(db, ids)
        span.set_attribute("result_count", len(users))

    USER_SEARCH_DURATION.labels("ok").observe(time.perf_counter() - started)
    logger.info(
        "user_search.complete",
        extra={
            "term_length": len(request.term),
            "topic_id": str(request.topic_id) if request.topic_id else None,
            "category_id": str(request.category_id) if request.category_id else None,
            "searching_user_id": (
                str(request.searching_user_id) if request.searching_user_id else None
            ),
            "result_count": len(users),
        },
    )
    return users
