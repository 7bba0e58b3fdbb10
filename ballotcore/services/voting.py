"""
Vote submission and read-back.

Submission checks run in a fixed order and the first failure wins:

1. ballot visible, not suspended and still open (else 404, causes not told apart)
2. at least one option selected
3. ranked choice: every option ranked
4. single-vote types: no earlier vote
5. every option id belongs to the ballot

Rows are only written once every check has passed, so a rejected submission
leaves storage untouched.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Union
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ballotcore.core.errors import (
    NotFoundError,
    InvalidPayloadError,
    AlreadyVotedError,
)
from ballotcore.core.permissions import Principal
from ballotcore.models.base import utcnow
from ballotcore.models.ballot import Ballot, BallotType
from ballotcore.models.vote import Vote
from ballotcore.schemas.vote import VoteSubmit
from ballotcore.services.access import find_visible_ballot, get_visible_ballot

logger = logging.getLogger(__name__)

VoteResult = Union[Vote, list[Vote]]


def _is_open(ballot: Ballot, now: datetime) -> bool:
    limit_date = ballot.limit_date
    if limit_date.tzinfo is None:
        limit_date = limit_date.replace(tzinfo=timezone.utc)
    return not ballot.is_suspended and limit_date > now


def _text_option_id(ballot: Ballot) -> Optional[str]:
    for option in ballot.options:
        if option.is_text:
            return option.id
    return None


def selected_option_ids(ballot: Ballot, payload: VoteSubmit) -> list[str]:
    """Option ids the payload selects for this ballot type, in submitted order."""
    if ballot.ballot_type.allows_multiple_rows:
        return list(payload.option_ids or [])
    if ballot.ballot_type == BallotType.TEXT_INPUT:
        option_id = payload.option_id or _text_option_id(ballot)
        return [option_id] if option_id else []
    return [payload.option_id] if payload.option_id else []


async def _existing_votes(
    db: AsyncSession,
    ballot: Ballot,
    user_id: str,
) -> list[Vote]:
    query = (
        select(Vote)
        .where(Vote.ballot_id == ballot.id, Vote.user_id == user_id)
        .order_by(Vote.position.asc(), Vote.timestamp.asc())
    )
    if ballot.ballot_type.allows_multiple_rows:
        # Serialize concurrent replacements of the same user's set
        query = query.with_for_update()
    result = await db.execute(query)
    return list(result.scalars().all())


def build_vote_rows(
    ballot: Ballot,
    user_id: str,
    option_ids: list[str],
    text_response: Optional[str],
    now: datetime,
) -> list[Vote]:
    """Rows to insert for an accepted submission."""
    if ballot.ballot_type == BallotType.TEXT_INPUT:
        return [
            Vote(
                ballot_id=ballot.id,
                user_id=user_id,
                option_id=option_ids[0],
                text_response=(text_response or "").strip(),
                position=1,
                timestamp=now,
            )
        ]

    if ballot.ballot_type == BallotType.RANKED_CHOICE:
        # Offset timestamps as well so timestamp order agrees with rank order
        return [
            Vote(
                ballot_id=ballot.id,
                user_id=user_id,
                option_id=option_id,
                position=index + 1,
                timestamp=now + timedelta(milliseconds=index),
            )
            for index, option_id in enumerate(option_ids)
        ]

    return [
        Vote(
            ballot_id=ballot.id,
            user_id=user_id,
            option_id=option_id,
            position=index + 1,
            timestamp=now,
        )
        for index, option_id in enumerate(option_ids)
    ]


async def submit_vote(
    db: AsyncSession,
    principal: Principal,
    ballot_id: str,
    payload: VoteSubmit,
    now: Optional[datetime] = None,
) -> VoteResult:
    """Validate and record a vote.

    Returns the list of created rows for multiple and ranked choice ballots, the
    single created row otherwise.
    """
    now = now or utcnow()

    ballot = await find_visible_ballot(db, principal, ballot_id)
    if ballot is None or not _is_open(ballot, now):
        raise NotFoundError("Ballot not found, expired, or access denied")

    option_ids = selected_option_ids(ballot, payload)
    if not option_ids:
        raise InvalidPayloadError("No options selected")

    if ballot.ballot_type == BallotType.TEXT_INPUT and not (payload.text_response or "").strip():
        raise InvalidPayloadError("Text response is required")

    if ballot.ballot_type == BallotType.RANKED_CHOICE and len(option_ids) != len(ballot.options):
        raise InvalidPayloadError("All options must be ranked")

    existing = await _existing_votes(db, ballot, principal.id)
    if existing and not ballot.ballot_type.allows_multiple_rows:
        raise AlreadyVotedError()

    # Duplicated ids collapse in the set and fail the count check as well
    ballot_option_ids = {option.id for option in ballot.options}
    if len(set(option_ids) & ballot_option_ids) != len(option_ids):
        raise InvalidPayloadError("One or more invalid voting options")

    if existing:
        for vote in existing:
            await db.delete(vote)
        # Deletes must reach the database before the replacement rows
        await db.flush()

    votes = build_vote_rows(ballot, principal.id, option_ids, payload.text_response, now)
    db.add_all(votes)
    try:
        await db.flush()
    except IntegrityError:
        logger.warning("Concurrent vote submission by %s on ballot %s", principal.id, ballot.id)
        raise AlreadyVotedError()

    logger.info(
        "Recorded %d vote row(s) by %s on ballot %s (%s)%s",
        len(votes), principal.id, ballot.id, ballot.ballot_type.value,
        " replacing earlier selection" if existing else "",
    )

    if ballot.ballot_type.allows_multiple_rows:
        return votes
    return votes[0]


async def get_user_vote(
    db: AsyncSession,
    principal: Principal,
    ballot_id: str,
) -> tuple[Ballot, VoteResult]:
    """The caller's vote on a visible ballot, with the ballot for context.

    Multiple and ranked choice return every row ordered by position.
    """
    ballot = await get_visible_ballot(db, principal, ballot_id)

    result = await db.execute(
        select(Vote)
        .where(Vote.ballot_id == ballot.id, Vote.user_id == principal.id)
        .order_by(Vote.position.asc(), Vote.timestamp.asc())
    )
    votes = list(result.scalars().all())

    if not votes:
        raise NotFoundError("Vote not found")

    if ballot.ballot_type.allows_multiple_rows:
        return ballot, votes
    return ballot, votes[0]
