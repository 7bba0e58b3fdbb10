"""
Ballot Core FastAPI Application - Main entry point.

Role-gated ballots: administrators create ballots of six shapes inside
categories, users whose roles are attached to a category vote on its ballots,
and analytics are computed from the raw vote rows.

- Ballots: creation, listing, suspend / resume / end early
- Votes: per-type acceptance rules, replace semantics for multi-vote ballots
- Analytics: participation, choice and rank (Borda) distributions, activity
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ballotcore.core.config import settings
from ballotcore.core.logging_config import configure_logging
from ballotcore.db.base import init_db
from ballotcore.schemas.common import HealthResponse
from ballotcore.api.v1 import api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    configure_logging()
    # Note: In production, use Alembic migrations instead
    await init_db()
    logger.info("%s started (%s)", settings.APP_NAME, settings.APP_ENV)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="""
Ballot lifecycle, vote submission and tallying.

## Modules

- **Ballots**: create, list (active / past / suspended), suspend, resume, end early
- **Votes**: submit and read back your vote
- **Analytics**: participation rate, distributions, hourly activity
- **Categories / Roles**: visibility of ballots by role
    """,
    lifespan=lifespan,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# HEALTH CHECK
# ============================================================================

@app.get("/api/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """Health check endpoint."""
    return HealthResponse(code=200, message="API is healthy.")


# ============================================================================
# V1 API ENDPOINTS
# ============================================================================

app.include_router(
    api_router,
    prefix=settings.API_V1_PREFIX,
)


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if settings.DEBUG:
        return JSONResponse(
            status_code=500,
            content={"detail": str(exc)}
        )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "ballotcore.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
