"""Pydantic schemas for API request/response validation."""

from .user_search import SearchRequest, UserSearchOptions, UserSearchResult

__all__ = [
    "SearchRequest",
    "UserSearchOptions",
    "UserSearchResult",
]
