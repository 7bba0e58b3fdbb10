"""
v1 API routers.

- /ballots     ballots, lifecycle transitions, analytics
- /ballots/{id}/votes  vote submission and read-back
- /categories  categories and their roles
- /roles       roles
"""
from fastapi import APIRouter

from ballotcore.api.v1.ballots import router as ballots_router
from ballotcore.api.v1.votes import router as votes_router
from ballotcore.api.v1.categories import router as categories_router
from ballotcore.api.v1.categories import roles_router

api_router = APIRouter()

api_router.include_router(ballots_router, prefix="/ballots", tags=["ballots"])
api_router.include_router(votes_router, prefix="/ballots", tags=["votes"])
api_router.include_router(categories_router, prefix="/categories", tags=["categories"])
api_router.include_router(roles_router, prefix="/roles", tags=["roles"])

__all__ = [
    "api_router",
    "ballots_router",
    "votes_router",
    "categories_router",
    "roles_router",
]
