"""
Ballot creation and the analytics entry point.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from ballotcore.core.errors import NotFoundError, InvalidPayloadError
from ballotcore.core.permissions import Principal, require_admin, count_eligible_users
from ballotcore.models.base import utcnow
from ballotcore.models.ballot import Ballot, BallotType
from ballotcore.models.category import Category
from ballotcore.models.voting_option import VotingOption, TEXT_OPTION_TITLE
from ballotcore.models.vote import Vote
from ballotcore.schemas.ballot import BallotCreate
from ballotcore.schemas.analytics import BallotAnalytics
from ballotcore.services.access import get_visible_ballot
from ballotcore.services.tally import tally_ballot, parse_linear_option

logger = logging.getLogger(__name__)

YES_NO_DEFAULT_OPTIONS = ["Yes", "No"]
MIN_CHOICE_OPTIONS = 2


def option_titles_for(ballot_type: BallotType, titles: list[str]) -> list[str]:
    """Validate and normalize the option titles for a new ballot.

    TEXT_INPUT ignores the given titles: it always gets one synthetic option.
    """
    titles = [title.strip() for title in titles]

    if ballot_type == BallotType.TEXT_INPUT:
        return [TEXT_OPTION_TITLE]

    if ballot_type == BallotType.YES_NO and not titles:
        return list(YES_NO_DEFAULT_OPTIONS)

    if any(not title for title in titles):
        raise InvalidPayloadError("Option titles must not be blank")
    if len(titles) < MIN_CHOICE_OPTIONS:
        raise InvalidPayloadError(f"At least {MIN_CHOICE_OPTIONS} options are required")
    if len(set(titles)) != len(titles):
        raise InvalidPayloadError("Option titles must be unique")

    if ballot_type == BallotType.YES_NO and len(titles) != 2:
        raise InvalidPayloadError("Yes/no ballots have exactly two options")

    if ballot_type == BallotType.LINEAR_CHOICE:
        values = []
        for title in titles:
            parsed = parse_linear_option(title)
            if parsed is None:
                raise InvalidPayloadError(f"Invalid linear scale option: {title!r}")
            values.append(parsed[0])
        if len(set(values)) != len(values):
            raise InvalidPayloadError("Linear scale values must be unique")

    return titles


async def create_ballot(
    db: AsyncSession,
    principal: Principal,
    data: BallotCreate,
    now: Optional[datetime] = None,
) -> Ballot:
    """Create a ballot and its options. Requires the admin capability."""
    require_admin(principal)
    now = now or utcnow()

    category_result = await db.execute(
        select(Category).where(Category.id == data.category_id)
    )
    if category_result.scalar_one_or_none() is None:
        raise NotFoundError("Category not found")

    limit_date = data.limit_date
    if limit_date.tzinfo is None:
        limit_date = limit_date.replace(tzinfo=timezone.utc)
    if limit_date <= now:
        raise InvalidPayloadError("Limit date must be in the future")

    titles = option_titles_for(data.ballot_type, [option.title for option in data.options])

    ballot = Ballot(
        title=data.title,
        description=data.description,
        ballot_type=data.ballot_type,
        category_id=data.category_id,
        admin_id=principal.id,
        limit_date=limit_date,
        is_suspended=False,
        time_left=None,
    )
    ballot.options = [
        VotingOption(
            title=title,
            is_text=data.ballot_type == BallotType.TEXT_INPUT,
            position=position,
        )
        for position, title in enumerate(titles)
    ]

    db.add(ballot)
    await db.flush()

    logger.info(
        "Ballot %s (%s, %d options) created by %s in category %s",
        ballot.id, ballot.ballot_type.value, len(titles), principal.id, ballot.category_id,
    )
    return ballot


async def get_ballot_analytics(
    db: AsyncSession,
    principal: Principal,
    ballot_id: str,
    now: Optional[datetime] = None,
) -> BallotAnalytics:
    """Analytics for a visible ballot, computed from the current vote rows."""
    ballot = await get_visible_ballot(db, principal, ballot_id)

    votes_result = await db.execute(
        select(Vote)
        .where(Vote.ballot_id == ballot.id)
        .order_by(Vote.timestamp.asc(), Vote.position.asc())
    )
    votes = list(votes_result.scalars().all())
    eligible_users = await count_eligible_users(db, ballot.category_id)

    return tally_ballot(ballot, votes, eligible_users, now)
