"""
Vote schemas.
"""
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime


class VoteSubmit(BaseModel):
    """Vote submission.

    Single-selection ballots use ``option_id``; multiple and ranked choice use
    ``option_ids`` (ranked: most preferred first); text ballots send
    ``text_response``.
    """
    option_id: Optional[str] = None
    option_ids: Optional[list[str]] = None
    text_response: Optional[str] = Field(None, max_length=5000)


class VoteResponse(BaseModel):
    id: str
    ballot_id: str
    user_id: str
    option_id: str
    option_title: Optional[str] = None
    text_response: Optional[str] = None
    position: int = 1
    timestamp: datetime

    class Config:
        from_attributes = True
