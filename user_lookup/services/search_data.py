"""Maintenance of the precomputed text that free-text user search matches against."""

import logging
import re

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..models.user import User, UserSearchData

logger = logging.getLogger(__name__)

WORD_RE = re.compile(r"\w+", re.UNICODE)


def tokenize(text: str | None) -> list[str]:
    """Split *text* into lowercase word tokens."""
    if not text:
        return []
    return WORD_RE.findall(text.lower())


def build_search_data(username: str, name: str | None, *, enable_names: bool = True) -> str:
    """Build the space-separated token text stored for a user.

    The full lowercase username always comes first so prefix matches on it
    survive tokenization of separators like '.' and '-'.
    """
    tokens = [username.lower(), *tokenize(username)]
    if enable_names:
        tokens.extend(tokenize(name))
    return " ".join(dict.fromkeys(token for token in tokens if token))


async def refresh_user_search_data(db: AsyncSession, user: User) -> UserSearchData:
    """Recompute and store the search text for *user*.

    Callers invoke this explicitly after changing a username or name; the
    caller owns the transaction.
    """
    if user.id is None:
        await db.flush()

    settings = get_settings()
    search_data = build_search_data(
        user.username, user.name, enable_names=settings.enable_names
    )

    result = await db.execute(
        select(UserSearchData).where(UserSearchData.user_id == user.id)
    )
    row = result.scalar_one_or_none()
    if row is None:
        row = UserSearchData(user_id=user.id, search_data=search_data)
        db.add(row)
    else:
        row.search_data = search_data
    await db.flush()

    logger.debug(
        "search_data.refreshed",
        extra={"user_id": str(user.id), "token_count": len(search_data.split())},
    )
    return row
