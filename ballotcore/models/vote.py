"""
Vote model.
"""
from typing import Optional
from datetime import datetime
from sqlalchemy import String, Text, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from ballotcore.models.base import BaseModel, UTCDateTime, utcnow


class Vote(BaseModel):
    """One persisted selection by one user for one option of one ballot.

    ``position`` is 1-based: the rank for ranked-choice ballots, the selection
    order for multiple-choice ballots and always 1 for single-vote types, so the
    unique constraint below allows a single row per user on those ballots.
    """
    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("ballot_id", "user_id", "position", name="uq_votes_ballot_user_position"),
    )

    ballot_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("ballots.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    option_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("voting_options.id", ondelete="CASCADE"),
        nullable=False
    )

    # Free-text answer (TEXT_INPUT ballots only)
    text_response: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Vote by {self.user_id} on ballot {self.ballot_id}>"
