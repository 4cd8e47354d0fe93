"""User API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth.middleware import get_current_session
from ..config import get_settings
from ..database import get_db
from ..schemas.user_search import UserSearchOptions, UserSearchResult
from ..services import user_search as user_search_service
from ..services.guardian import AuthorizationError

router = APIRouter(prefix="/api/users", tags=["users"])

settings = get_settings()


@router.get("/search", response_model=list[UserSearchResult])
async def search_users(
    request: Request,
    term: str = Query(default="", description="Partial or full username or name"),
    topic_id: UUID | None = Query(default=None),
    category_id: UUID | None = Query(default=None),
    topic_allowed_users: bool = Query(default=False),
    include_staged_users: bool = Query(default=False),
    groups: list[int] = Query(default=[], description="Restrict to group members"),
    limit: int = Query(
        default=settings.user_search_default_limit,
        ge=1,
        le=settings.user_search_max_limit,
        description="Max results",
    ),
    db: AsyncSession = Depends(get_db),
) -> list[UserSearchResult]:
    """Search users to mention or message.

    Exact username matches come first, then topic participants, then readers
    of a restricted category, then everyone else matching the term. Anonymous
    callers are allowed; suspended users are only shown to staff.
    """
    session = get_current_session(request)
    options = UserSearchOptions(
        topic_id=topic_id,
        category_id=category_id,
        topic_allowed_users=topic_allowed_users,
        searching_user_id=session.user_id if session else None,
        include_staged_users=include_staged_users,
        limit=limit,
        groups=frozenset(groups),
    )

    try:
        users = await user_search_service.search_users(db, term, options)
    except AuthorizationError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc

    return [UserSearchResult.model_validate(user) for user in users]
