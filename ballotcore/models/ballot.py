"""
Ballot model.
"""
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from sqlalchemy import String, Text, Boolean, Integer, ForeignKey, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
import enum
from ballotcore.models.base import BaseModel, UTCDateTime

if TYPE_CHECKING:
    from ballotcore.models.category import Category
    from ballotcore.models.user import User
    from ballotcore.models.voting_option import VotingOption


class BallotType(str, enum.Enum):
    """Ballot shape."""
    SINGLE_CHOICE = "SINGLE_CHOICE"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    RANKED_CHOICE = "RANKED_CHOICE"
    LINEAR_CHOICE = "LINEAR_CHOICE"
    TEXT_INPUT = "TEXT_INPUT"
    YES_NO = "YES_NO"

    @property
    def allows_multiple_rows(self) -> bool:
        """Multi-vote types store one row per selected/ranked option."""
        return self in (BallotType.MULTIPLE_CHOICE, BallotType.RANKED_CHOICE)


class BallotStatus(str, enum.Enum):
    """Derived ballot status. Never stored, see services.lifecycle.ballot_status."""
    ACTIVE = "Active"
    SUSPENDED = "Suspended"
    ENDED = "Ended"


class Ballot(BaseModel):
    """A single voting question within a category."""
    __tablename__ = "ballots"

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    ballot_type: Mapped[BallotType] = mapped_column(
        Enum(BallotType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=BallotType.SINGLE_CHOICE
    )

    category_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Creator, the only user allowed to suspend/resume/end the ballot
    admin_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    # Effective end of voting. Parked far in the future while suspended.
    limit_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)

    is_suspended: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)

    # Seconds of voting left, captured at suspension; null otherwise
    time_left: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Optimistic concurrency counter for lifecycle transitions
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Relationships
    category: Mapped["Category"] = relationship(
        "Category",
        back_populates="ballots"
    )
    admin: Mapped["User"] = relationship(
        "User",
        foreign_keys=[admin_id]
    )
    options: Mapped[list["VotingOption"]] = relationship(
        "VotingOption",
        back_populates="ballot",
        cascade="all, delete-orphan",
        order_by="VotingOption.position",
        lazy="selectin"
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Ballot {self.title}>"
