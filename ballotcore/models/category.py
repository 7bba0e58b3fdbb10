"""
Category model.
"""
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Text, ForeignKey, Table, Column
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ballotcore.models.base import BaseModel
from ballotcore.db.base import Base

if TYPE_CHECKING:
    from ballotcore.models.role import Role
    from ballotcore.models.ballot import Ballot


# Many-to-many relationship between categories and the roles that may see them
category_roles = Table(
    "category_roles",
    Base.metadata,
    Column("category_id", String(15), ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", String(15), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)
)


class Category(BaseModel):
    """Group of ballots. Visibility is granted through the attached roles."""
    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    roles: Mapped[list["Role"]] = relationship(
        "Role",
        secondary=category_roles,
        back_populates="categories",
        lazy="selectin"
    )
    ballots: Mapped[list["Ballot"]] = relationship(
        "Ballot",
        back_populates="category"
    )

    def __repr__(self) -> str:
        return f"<Category {self.name}>"
