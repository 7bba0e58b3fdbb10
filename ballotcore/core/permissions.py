"""Eligibility & permission helpers for category-scoped ballots."""
from dataclasses import dataclass
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from ballotcore.core.errors import ForbiddenError
from ballotcore.models.user import User
from ballotcore.models.role import user_roles
from ballotcore.models.category import category_roles
from ballotcore.models.ballot import Ballot


@dataclass(frozen=True)
class Principal:
    """The authenticated caller and its admin capability."""
    user: User
    is_admin: bool = False

    @property
    def id(self) -> str:
        return self.user.id

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(user=user, is_admin=user.is_admin)


async def get_role_ids(db: AsyncSession, user_id: str) -> set[str]:
    result = await db.execute(
        select(user_roles.c.role_id).where(user_roles.c.user_id == user_id)
    )
    return set(result.scalars().all())


async def resolve_eligible_categories(
    db: AsyncSession,
    principal: Principal,
) -> Optional[set[str]]:
    """Return the category ids the principal may act on.

    ``None`` means unrestricted (admin capability).
    """
    if principal.is_admin:
        return None
    role_ids = await get_role_ids(db, principal.id)
    if not role_ids:
        return set()
    result = await db.execute(
        select(category_roles.c.category_id)
        .where(category_roles.c.role_id.in_(role_ids))
        .distinct()
    )
    return set(result.scalars().all())


def category_visible(eligible: Optional[set[str]], category_id: str) -> bool:
    return eligible is None or category_id in eligible


async def count_eligible_users(db: AsyncSession, category_id: str) -> int:
    """Distinct users holding any role mapped to the category."""
    result = await db.execute(
        select(func.count(func.distinct(user_roles.c.user_id)))
        .select_from(user_roles)
        .join(category_roles, category_roles.c.role_id == user_roles.c.role_id)
        .where(category_roles.c.category_id == category_id)
    )
    return result.scalar() or 0


def require_admin(principal: Principal) -> None:
    if not principal.is_admin:
        raise ForbiddenError("Admin capability required")


def require_ballot_owner(principal: Principal, ballot: Ballot) -> None:
    """Only the ballot's creator may change its lifecycle."""
    if ballot.admin_id != principal.id:
        raise ForbiddenError("Unauthorized to modify this ballot")
