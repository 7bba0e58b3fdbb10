"""
Ballot lifecycle state machine.

Status is derived from ``(is_suspended, limit_date, now)`` and never stored:

- Suspended: ``is_suspended`` is set
- Ended: ``limit_date`` is in the past
- Active: otherwise

Transitions (owner only):

- suspend:   Active -> Suspended, remaining seconds saved in ``time_left``
- unsuspend: Suspended -> Active, deadline restored from ``time_left``
- end early: Active/Suspended -> Ended (terminal)

The ``apply_*`` functions are pure and take ``now``; the async wrappers lock the
row and persist.
"""
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from dateutil.relativedelta import relativedelta
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from ballotcore.core.config import settings
from ballotcore.core.errors import InvalidStateError
from ballotcore.core.permissions import Principal, require_ballot_owner
from ballotcore.models.base import utcnow
from ballotcore.models.ballot import Ballot, BallotStatus
from ballotcore.services.access import get_visible_ballot

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def ballot_status(ballot: Ballot, now: Optional[datetime] = None) -> BallotStatus:
    """Derive the ballot status. Pure function of its lifecycle fields and ``now``."""
    now = now or utcnow()
    if ballot.is_suspended:
        return BallotStatus.SUSPENDED
    if _as_utc(ballot.limit_date) < now:
        return BallotStatus.ENDED
    return BallotStatus.ACTIVE


def suspension_sentinel(now: datetime) -> datetime:
    """Deadline parked on a suspended ballot so it cannot expire meanwhile."""
    return now + relativedelta(years=settings.SUSPENSION_SENTINEL_YEARS)


def apply_suspend(ballot: Ballot, now: datetime) -> None:
    if ballot.is_suspended:
        raise InvalidStateError("Ballot is already suspended")

    limit_date = _as_utc(ballot.limit_date)
    if limit_date < now:
        raise InvalidStateError("Cannot suspend an ended ballot")

    ballot.time_left = math.floor((limit_date - now).total_seconds())
    ballot.is_suspended = True
    ballot.limit_date = suspension_sentinel(now)


def apply_unsuspend(ballot: Ballot, now: datetime) -> None:
    if not ballot.is_suspended:
        raise InvalidStateError("Ballot is not suspended")

    if ballot.time_left is None:
        raise InvalidStateError("Cannot unsuspend ballot: no time left information available")

    ballot.limit_date = now + timedelta(seconds=ballot.time_left)
    ballot.is_suspended = False
    ballot.time_left = None


def apply_end_early(ballot: Ballot, now: datetime) -> None:
    # A suspended ballot carries the far-future sentinel, so it can still be ended.
    if _as_utc(ballot.limit_date) < now:
        raise InvalidStateError("Ballot is already ended")

    ballot.limit_date = now
    ballot.is_suspended = False
    ballot.time_left = None


async def _transition(
    db: AsyncSession,
    principal: Principal,
    ballot_id: str,
    apply: Callable[[Ballot, datetime], None],
    action: str,
    now: Optional[datetime] = None,
) -> Ballot:
    ballot = await get_visible_ballot(db, principal, ballot_id, for_update=True)
    require_ballot_owner(principal, ballot)

    now = now or utcnow()
    try:
        apply(ballot, now)
    except InvalidStateError as exc:
        logger.info("Rejected %s of ballot %s: %s", action, ballot_id, exc.detail)
        raise

    ballot.updated = now
    try:
        await db.flush()
    except StaleDataError:
        logger.warning("Concurrent %s of ballot %s", action, ballot_id)
        raise InvalidStateError("Ballot was modified concurrently")

    logger.info(
        "Ballot %s %s by %s (limit_date=%s, time_left=%s)",
        ballot.id, action, principal.id, ballot.limit_date.isoformat(), ballot.time_left,
    )
    return ballot


async def suspend_ballot(
    db: AsyncSession,
    principal: Principal,
    ballot_id: str,
    now: Optional[datetime] = None,
) -> Ballot:
    return await _transition(db, principal, ballot_id, apply_suspend, "suspended", now)


async def unsuspend_ballot(
    db: AsyncSession,
    principal: Principal,
    ballot_id: str,
    now: Optional[datetime] = None,
) -> Ballot:
    return await _transition(db, principal, ballot_id, apply_unsuspend, "unsuspended", now)


async def end_ballot_early(
    db: AsyncSession,
    principal: Principal,
    ballot_id: str,
    now: Optional[datetime] = None,
) -> Ballot:
    return await _transition(db, principal, ballot_id, apply_end_early, "ended", now)
