"""
Access gateway: which ballots a principal can see, and how they are listed.
"""
import enum
from datetime import datetime
from typing import Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from ballotcore.core.errors import NotFoundError
from ballotcore.core.permissions import (
    Principal,
    resolve_eligible_categories,
    category_visible,
)
from ballotcore.models.base import utcnow
from ballotcore.models.ballot import Ballot
from ballotcore.models.vote import Vote


class BallotFilter(str, enum.Enum):
    """Ballot list filter."""
    ACTIVE = "active"
    PAST = "past"
    SUSPENDED = "suspended"


async def find_visible_ballot(
    db: AsyncSession,
    principal: Principal,
    ballot_id: str,
    for_update: bool = False,
) -> Optional[Ballot]:
    """Return the ballot if it exists and the principal may see it.

    With ``for_update`` the row is locked for the rest of the transaction and
    re-read from the database.
    """
    query = select(Ballot).where(Ballot.id == ballot_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)

    result = await db.execute(query)
    ballot = result.scalar_one_or_none()
    if ballot is None:
        return None

    eligible = await resolve_eligible_categories(db, principal)
    if not category_visible(eligible, ballot.category_id):
        return None
    return ballot


async def get_visible_ballot(
    db: AsyncSession,
    principal: Principal,
    ballot_id: str,
    for_update: bool = False,
) -> Ballot:
    """Like ``find_visible_ballot`` but absent and inaccessible both raise 404."""
    ballot = await find_visible_ballot(db, principal, ballot_id, for_update=for_update)
    if ballot is None:
        raise NotFoundError("Ballot not found or access denied")
    return ballot


async def list_ballots(
    db: AsyncSession,
    principal: Principal,
    ballot_filter: BallotFilter,
    now: Optional[datetime] = None,
) -> list[Ballot]:
    """Visible ballots matching the filter, soonest deadline first."""
    now = now or utcnow()
    query = select(Ballot)

    if ballot_filter == BallotFilter.ACTIVE:
        query = query.where(Ballot.is_suspended.is_(False), Ballot.limit_date > now)
    elif ballot_filter == BallotFilter.PAST:
        query = query.where(Ballot.is_suspended.is_(False), Ballot.limit_date < now)
    else:
        query = query.where(Ballot.is_suspended.is_(True))

    eligible = await resolve_eligible_categories(db, principal)
    if eligible is not None:
        if not eligible:
            return []
        query = query.where(Ballot.category_id.in_(eligible))

    query = query.order_by(Ballot.limit_date.asc(), Ballot.created.asc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def voted_ballot_ids(
    db: AsyncSession,
    user_id: str,
    ballot_ids: Optional[Sequence[str]] = None,
) -> set[str]:
    """Ids of ballots on which the user has at least one vote row."""
    query = select(Vote.ballot_id).where(Vote.user_id == user_id).distinct()
    if ballot_ids is not None:
        if not ballot_ids:
            return set()
        query = query.where(Vote.ballot_id.in_(ballot_ids))
    result = await db.execute(query)
    return set(result.scalars().all())


def partition_ballots(
    ballots: Sequence[Ballot],
    voted_ids: set[str],
) -> tuple[list[Ballot], list[Ballot]]:
    """Split ballots into (voted, unvoted), keeping their order."""
    voted = [b for b in ballots if b.id in voted_ids]
    unvoted = [b for b in ballots if b.id not in voted_ids]
    return voted, unvoted
