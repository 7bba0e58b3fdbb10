"""
Category and role schemas.
"""
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    is_admin: bool = False


class RoleResponse(BaseModel):
    id: str
    name: str
    is_admin: bool = False
    created: datetime
    updated: datetime

    class Config:
        from_attributes = True


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    role_ids: list[str] = Field(default_factory=list)


class CategoryResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    role_ids: list[str] = Field(default_factory=list)
    created: datetime
    updated: datetime
