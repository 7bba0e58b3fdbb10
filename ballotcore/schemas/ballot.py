"""
Ballot schemas.
"""
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime

from ballotcore.models.ballot import BallotType, BallotStatus


class OptionCreate(BaseModel):
    """Voting option in a create request.

    For LINEAR_CHOICE ballots the title is ``"<value>[,<label>]"``.
    """
    title: str = Field(..., min_length=1, max_length=255)


class BallotCreate(BaseModel):
    """Create ballot request."""
    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = None
    category_id: str
    limit_date: datetime
    ballot_type: BallotType
    options: list[OptionCreate] = Field(default_factory=list)


class OptionResponse(BaseModel):
    id: str
    title: str
    is_text: bool = False
    position: int = 0

    class Config:
        from_attributes = True


class BallotResponse(BaseModel):
    """Ballot with its derived status."""
    id: str
    title: str
    description: Optional[str] = None
    ballot_type: BallotType
    category_id: str
    admin_id: str
    limit_date: datetime
    is_suspended: bool = False
    time_left: Optional[int] = None
    status: BallotStatus
    options: list[OptionResponse] = Field(default_factory=list)
    has_voted: Optional[bool] = None
    created: datetime
    updated: datetime

    class Config:
        from_attributes = True


class BallotPartitionResponse(BaseModel):
    """Visible ballots split on whether the caller has voted."""
    voted: list[BallotResponse]
    unvoted: list[BallotResponse]
