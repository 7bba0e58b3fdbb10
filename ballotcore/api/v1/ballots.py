"""
Ballot endpoints - v1 API.

/api/v1/ballots/* : creation, listing, lifecycle transitions and analytics.
"""
from typing import Optional, Union
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ballotcore.db.base import get_db
from ballotcore.core.deps import get_current_principal
from ballotcore.core.permissions import Principal
from ballotcore.models.base import utcnow
from ballotcore.models.ballot import Ballot
from ballotcore.schemas.ballot import (
    BallotCreate, BallotResponse, BallotPartitionResponse, OptionResponse
)
from ballotcore.schemas.analytics import BallotAnalytics
from ballotcore.services import lifecycle
from ballotcore.services.access import (
    BallotFilter,
    get_visible_ballot,
    list_ballots as list_visible_ballots,
    voted_ballot_ids,
    partition_ballots,
)
from ballotcore.services.ballots import create_ballot as create_ballot_record, get_ballot_analytics

router = APIRouter()


def ballot_to_response(ballot: Ballot, has_voted: Optional[bool] = None) -> BallotResponse:
    """Convert Ballot model to BallotResponse schema with its derived status."""
    return BallotResponse(
        id=ballot.id,
        title=ballot.title,
        description=ballot.description,
        ballot_type=ballot.ballot_type,
        category_id=ballot.category_id,
        admin_id=ballot.admin_id,
        limit_date=ballot.limit_date,
        is_suspended=ballot.is_suspended,
        time_left=ballot.time_left,
        status=lifecycle.ballot_status(ballot),
        options=[OptionResponse.model_validate(option) for option in ballot.options],
        has_voted=has_voted,
        created=ballot.created,
        updated=ballot.updated,
    )


@router.get("", response_model=Union[BallotPartitionResponse, list[BallotResponse]])
async def list_ballots(
    ballot_filter: BallotFilter = Query(BallotFilter.ACTIVE, alias="filter"),
    partition: bool = Query(False, description="Split into voted/unvoted"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    List visible ballots, soonest deadline first.
    With partition=true the result is {voted, unvoted} for the caller.
    """
    now = utcnow()
    ballots = await list_visible_ballots(db, principal, ballot_filter, now=now)

    if not partition:
        return [ballot_to_response(b) for b in ballots]

    voted_ids = await voted_ballot_ids(db, principal.id, [b.id for b in ballots])
    voted, unvoted = partition_ballots(ballots, voted_ids)
    return BallotPartitionResponse(
        voted=[ballot_to_response(b, has_voted=True) for b in voted],
        unvoted=[ballot_to_response(b, has_voted=False) for b in unvoted],
    )


@router.post("", response_model=BallotResponse, status_code=status.HTTP_201_CREATED)
async def create_ballot(
    ballot_data: BallotCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Create a ballot with its options.
    Requires the admin capability; the caller becomes the ballot owner.
    """
    ballot = await create_ballot_record(db, principal, ballot_data)
    return ballot_to_response(ballot)


@router.get("/{ballot_id}", response_model=BallotResponse)
async def get_ballot(
    ballot_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """Get a ballot visible to the caller, with its options."""
    ballot = await get_visible_ballot(db, principal, ballot_id)
    voted_ids = await voted_ballot_ids(db, principal.id, [ballot.id])
    return ballot_to_response(ballot, has_voted=ballot.id in voted_ids)


@router.post("/{ballot_id}/suspend", response_model=BallotResponse)
async def suspend_ballot(
    ballot_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Suspend an active ballot, keeping its remaining time.
    Owner only.
    """
    ballot = await lifecycle.suspend_ballot(db, principal, ballot_id)
    return ballot_to_response(ballot)


@router.post("/{ballot_id}/unsuspend", response_model=BallotResponse)
async def unsuspend_ballot(
    ballot_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Resume a suspended ballot with the time it had left.
    Owner only.
    """
    ballot = await lifecycle.unsuspend_ballot(db, principal, ballot_id)
    return ballot_to_response(ballot)


@router.post("/{ballot_id}/end", response_model=BallotResponse)
async def end_ballot_early(
    ballot_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    End a ballot now. Ending is final.
    Owner only.
    """
    ballot = await lifecycle.end_ballot_early(db, principal, ballot_id)
    return ballot_to_response(ballot)


@router.get("/{ballot_id}/analytics", response_model=BallotAnalytics)
async def get_analytics(
    ballot_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Participation, distributions and activity for a ballot.
    Computed from the vote rows on every request.
    """
    return await get_ballot_analytics(db, principal, ballot_id)
