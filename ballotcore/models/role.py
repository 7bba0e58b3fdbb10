"""
Role model.
"""
from typing import TYPE_CHECKING
from sqlalchemy import String, Boolean, ForeignKey, Table, Column
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ballotcore.models.base import BaseModel
from ballotcore.db.base import Base

if TYPE_CHECKING:
    from ballotcore.models.user import User
    from ballotcore.models.category import Category


# Many-to-many relationship between users and roles
user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", String(15), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", String(15), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)
)


class Role(BaseModel):
    """Named role. Roles attached to a category grant access to its ballots."""
    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)

    # Capability flag: members of this role administer every category
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    users: Mapped[list["User"]] = relationship(
        "User",
        secondary=user_roles,
        back_populates="roles"
    )
    categories: Mapped[list["Category"]] = relationship(
        "Category",
        secondary="category_roles",
        back_populates="roles"
    )

    def __repr__(self) -> str:
        return f"<Role {self.name}>"
