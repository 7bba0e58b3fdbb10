"""
User model.
"""
from typing import TYPE_CHECKING
from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ballotcore.models.base import BaseModel
from ballotcore.models.role import user_roles

if TYPE_CHECKING:
    from ballotcore.models.role import Role


class User(BaseModel):
    """A voter or administrator. Credentials live with the identity provider."""
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    roles: Mapped[list["Role"]] = relationship(
        "Role",
        secondary=user_roles,
        back_populates="users",
        lazy="selectin"
    )

    @property
    def is_admin(self) -> bool:
        """True when any of the user's roles carries the admin capability."""
        return any(role.is_admin for role in self.roles)

    def __repr__(self) -> str:
        return f"<User {self.email}>"
