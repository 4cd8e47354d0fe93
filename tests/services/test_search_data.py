"""Tests for user search data maintenance."""

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from user_lookup.models.user import User, UserSearchData
from user_lookup.services.search_data import (
    build_search_data,
    refresh_user_search_data,
    tokenize,
)


class TestBuildSearchData:
    def test_username_and_name_tokens(self) -> None:
        assert build_search_data("jdoe", "Jane Doe") == "jdoe jane doe"

    def test_username_with_separators_keeps_full_form_first(self) -> None:
        assert build_search_data("Anna.Smith", "Anna Smith") == "anna.smith anna smith"

    def test_names_disabled(self) -> None:
        assert build_search_data("jdoe", "Jane Doe", enable_names=False) == "jdoe"

    def test_missing_name(self) -> None:
        assert build_search_data("jdoe", None) == "jdoe"

    def test_tokenize_handles_unicode(self) -> None:
        assert tokenize("Zoë Ångström") == ["zoë", "ångström"]


class TestRefreshUserSearchData:
    @pytest.mark.asyncio
    async def test_creates_then_updates_row(self, db_session: AsyncSession):
        user = User(username="jdoe", name="Jane Doe")
        db_session.add(user)
        await db_session.flush()

        await refresh_user_search_data(db_session, user)
        user.username = "janed"
        user.name = "Jane Roe"
        await refresh_user_search_data(db_session, user)
        await db_session.commit()

        result = await db_session.execute(
            select(UserSearchData).where(UserSearchData.user_id == user.id)
        )
        rows = result.scalars().all()
        assert [row.search_data for row in rows] == ["janed jane roe"]
        assert user.username_lower == "janed"
