"""
Voting option model.
"""
from typing import TYPE_CHECKING
from sqlalchemy import String, Boolean, Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ballotcore.models.base import BaseModel

if TYPE_CHECKING:
    from ballotcore.models.ballot import Ballot


TEXT_OPTION_TITLE = "Text Response"


class VotingOption(BaseModel):
    """One selectable choice of a ballot.

    LINEAR_CHOICE titles encode ``"<value>[,<label>]"``. TEXT_INPUT ballots own a
    single synthetic option with ``is_text`` set.
    """
    __tablename__ = "voting_options"

    ballot_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("ballots.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    is_text: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Creation order within the ballot
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    ballot: Mapped["Ballot"] = relationship(
        "Ballot",
        back_populates="options"
    )

    def __repr__(self) -> str:
        return f"<VotingOption {self.title}>"
