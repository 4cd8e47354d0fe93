"""User model and its precomputed search data."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from sqlalchemy.sql import func

from ..database import Base

if TYPE_CHECKING:
    from .group import GroupUser


class User(Base):
    """Forum account that can be offered as a mention or message target."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )

    username: Mapped[str] = mapped_column(String(60), nullable=False)
    username_lower: Mapped[str] = mapped_column(
        String(60), unique=True, nullable=False, index=True
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    staged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    moderator: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    suspended_till: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    last_seen_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.current_timestamp(),
        nullable=False,
    )

    # Relationships
    search_data: Mapped["UserSearchData | None"] = relationship(
        "UserSearchData",
        back_populates="user",
        cascade="all, delete-orphan",
        uselist=False,
    )
    group_users: Mapped[list["GroupUser"]] = relationship(
        "GroupUser", back_populates="user", cascade="all, delete-orphan"
    )

    @validates("username")
    def _sync_username_lower(self, key: str, value: str) -> str:
        self.username_lower = value.lower()
        return value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"


class UserSearchData(Base):
    """Normalized, lowercase token text used by free-text user search."""

    __tablename__ = "user_search_data"

    user_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    search_data: Mapped[str] = mapped_column(Text, nullable=False, default="")

    user: Mapped["User"] = relationship("User", back_populates="search_data")

    def __repr__(self) -> str:
        return f"<UserSearchData(user_id={self.user_id})>"
