"""
SQLAlchemy models for the ballot service.
"""
from ballotcore.models.role import Role, user_roles
from ballotcore.models.user import User
from ballotcore.models.category import Category, category_roles
from ballotcore.models.ballot import Ballot, BallotType, BallotStatus
from ballotcore.models.voting_option import VotingOption, TEXT_OPTION_TITLE
from ballotcore.models.vote import Vote

__all__ = [
    # Eligibility
    "Role",
    "User",
    "Category",
    "user_roles",
    "category_roles",
    # Voting
    "Ballot",
    "BallotType",
    "BallotStatus",
    "VotingOption",
    "TEXT_OPTION_TITLE",
    "Vote",
]
