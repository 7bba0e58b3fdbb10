"""
Common schemas used across the application.
"""
from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""
    code: int = 200
    message: str = "API is healthy."
