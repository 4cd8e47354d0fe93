"""Pydantic schemas for user search requests and results."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..config import get_settings


def _default_limit() -> int:
    return get_settings().user_search_default_limit


class UserSearchOptions(BaseModel):
    """Context and scoping for a user search."""

    model_config = ConfigDict(frozen=True)

    topic_id: UUID | None = None
    category_id: UUID | None = None
    # Only offer users who can read the topic's restricted category
    topic_allowed_users: bool = False
    searching_user_id: UUID | None = None
    include_staged_users: bool = False
    limit: int = Field(default_factory=_default_limit, gt=0)
    groups: frozenset[int] = frozenset()


class SearchRequest(UserSearchOptions):
    """A single immutable user search: the raw term plus its options."""

    term: str = ""

    @classmethod
    def build(
        cls, term: str | None, options: UserSearchOptions | None = None
    ) -> "SearchRequest":
        options = options or UserSearchOptions()
        return cls(term=term or "", **options.model_dump())

    @property
    def has_term(self) -> bool:
        return bool(self.term.strip())


class UserSearchResult(BaseModel):
    """Schema for user search result."""

    id: UUID
    username: str
    name: str | None = None
    avatar_url: str | None = None

    model_config = {"from_attributes": True}
