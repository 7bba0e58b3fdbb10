"""
Ballot analytics schemas.
"""
from typing import Optional
import datetime as dt
from pydantic import BaseModel, Field

from ballotcore.models.ballot import BallotType, BallotStatus


class OptionTally(BaseModel):
    option_id: str
    title: str
    votes: int = 0
    percentage: float = 0.0


class RankTally(BaseModel):
    """Rank counts and Borda score of one ranked-choice option."""
    option_id: str
    title: str
    ranks: dict[int, int] = Field(default_factory=dict)
    score: int = 0
    normalized_score: float = 0.0


class HourSlot(BaseModel):
    hour: int
    votes: int = 0


class DailyActivity(BaseModel):
    date: dt.date
    hourly_distribution: list[HourSlot]


class LinearSummary(BaseModel):
    average: float = 0.0
    min_value: Optional[int] = None
    max_value: Optional[int] = None
    modes: list[str] = Field(default_factory=list)


class BallotAnalytics(BaseModel):
    """Analytics view. Type-specific sections are null for other ballot types."""
    ballot_id: str
    ballot_type: BallotType
    status: BallotStatus
    total_voters: int = 0
    total_votes: int = 0
    eligible_users: int = 0
    participation_rate: float = 0.0
    choice_distribution: list[OptionTally] = Field(default_factory=list)
    hourly_distribution: list[HourSlot] = Field(default_factory=list)
    hourly_distribution_by_date: list[DailyActivity] = Field(default_factory=list)

    # RANKED_CHOICE
    rank_distribution: Optional[list[RankTally]] = None
    winner_option_id: Optional[str] = None

    # LINEAR_CHOICE
    linear_summary: Optional[LinearSummary] = None

    # TEXT_INPUT
    text_responses: Optional[list[str]] = None
