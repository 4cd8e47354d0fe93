"""Authorization checks for group-scoped user search."""

import logging
from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.group import Group, GroupUser
from ..models.user import User

logger = logging.getLogger(__name__)


class AuthorizationError(Exception):
    """Raised when the caller may not see a group it asked to search within."""

    def __init__(self, message: str, group_ids: Iterable[int] = ()) -> None:
        super().__init__(message)
        self.group_ids = sorted(group_ids)


async def ensure_can_see_groups(
    db: AsyncSession,
    searching_user_id: UUID | None,
    group_ids: Iterable[int],
) -> None:
    """Require that the caller can see every group in *group_ids*.

    Args:
        db: Database session
        searching_user_id: Caller, or None for anonymous access
        group_ids: Groups the search is scoped to

    Raises:
        AuthorizationError: If any group is hidden from the caller or does not exist
    """
    wanted = sorted(set(group_ids))
    if not wanted:
        return

    caller = None
    if searching_user_id is not None:
        result = await db.execute(
            select(User.admin, User.moderator).where(User.id == searching_user_id)
        )
        caller = result.one_or_none()

    is_admin = bool(caller and caller.admin)
    is_staff = bool(caller and (caller.admin or caller.moderator))

    result = await db.execute(
        select(Group.id, Group.visibility_level).where(Group.id.in_(wanted))
    )
    levels = {row.id: row.visibility_level for row in result.all()}

    memberships: dict[int, bool] = {}
    if caller is not None:
        result = await db.execute(
            select(GroupUser.group_id, GroupUser.owner).where(
                GroupUser.user_id == searching_user_id,
                GroupUser.group_id.in_(wanted),
            )
        )
        memberships = {row.group_id: row.owner for row in result.all()}

    hidden = set()
    for group_id in wanted:
        level = levels.get(group_id)
        if level is None:
            hidden.add(group_id)
        elif is_admin or level == "public":
            continue
        elif level == "logged_on_users":
            if caller is None:
                hidden.add(group_id)
        elif level == "members":
            if not (is_staff or group_id in memberships):
                hidden.add(group_id)
        elif level == "staff":
            if not is_staff:
                hidden.add(group_id)
        elif not memberships.get(group_id, False):
            # 'owners' and any unknown level
            hidden.add(group_id)

    if hidden:
        logger.warning(
            "guardian.group_access_denied",
            extra={
                "searching_user_id": str(searching_user_id) if searching_user_id else None,
                "group_ids": sorted(hidden),
            },
        )
        raise AuthorizationError("Not allowed to see the requested groups", hidden)
