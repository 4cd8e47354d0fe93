"""Category and CategoryGroup models."""

from uuid import UUID, uuid4

from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import Base


class Category(Base):
    """Category of topics; read-restricted categories are visible to granted groups only."""

    __tablename__ = "categories"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    read_restricted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True
    )

    groups: Mapped[list["CategoryGroup"]] = relationship(
        "CategoryGroup", back_populates="category", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name={self.name})>"


class CategoryGroup(Base):
    """Grants a group access to a category."""

    __tablename__ = "category_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    group_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    category: Mapped["Category"] = relationship("Category", back_populates="groups")

    __table_args__ = (
        UniqueConstraint("category_id", "group_id", name="uq_category_group"),
    )

    def __repr__(self) -> str:
        return f"<CategoryGroup(category_id={self.category_id}, group_id={self.group_id})>"
