"""
Vote endpoints - v1 API.

/api/v1/ballots/{ballot_id}/votes/* : cast a vote and read back your own.
"""
from typing import Union
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ballotcore.db.base import get_db
from ballotcore.core.deps import get_current_principal
from ballotcore.core.permissions import Principal
from ballotcore.models.ballot import Ballot
from ballotcore.models.vote import Vote
from ballotcore.schemas.vote import VoteSubmit, VoteResponse
from ballotcore.services.voting import submit_vote, get_user_vote

router = APIRouter()


def vote_to_response(vote: Vote, ballot: Ballot) -> VoteResponse:
    """Convert Vote model to VoteResponse schema."""
    titles = {option.id: option.title for option in ballot.options}
    return VoteResponse(
        id=vote.id,
        ballot_id=vote.ballot_id,
        user_id=vote.user_id,
        option_id=vote.option_id,
        option_title=titles.get(vote.option_id),
        text_response=vote.text_response,
        position=vote.position,
        timestamp=vote.timestamp,
    )


def _render(result, ballot: Ballot):
    if isinstance(result, list):
        return [vote_to_response(v, ballot) for v in result]
    return vote_to_response(result, ballot)


@router.post(
    "/{ballot_id}/votes",
    response_model=Union[list[VoteResponse], VoteResponse],
    status_code=status.HTTP_201_CREATED,
)
async def cast_vote(
    ballot_id: str,
    vote_data: VoteSubmit,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Cast a vote.
    Multiple and ranked choice replace any earlier selection and return every
    created row; other types accept one vote per user.
    """
    result = await submit_vote(db, principal, ballot_id, vote_data)
    ballot = await db.get(Ballot, ballot_id)
    return _render(result, ballot)


@router.get("/{ballot_id}/votes/me", response_model=Union[list[VoteResponse], VoteResponse])
async def get_my_vote(
    ballot_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """Get the caller's vote on a ballot."""
    ballot, result = await get_user_vote(db, principal, ballot_id)
    return _render(result, ballot)
