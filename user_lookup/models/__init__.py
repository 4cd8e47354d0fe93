"""SQLAlchemy models for the application."""

from .category import Category, CategoryGroup
from .group import Group, GroupUser
from .topic import Post, Topic
from .user import User, UserSearchData

__all__ = [
    "Category",
    "CategoryGroup",
    "Group",
    "GroupUser",
    "Post",
    "Topic",
    "User",
    "UserSearchData",
]
