"""
Quota Ledger - Monthly AI-Call Allowance
========================================

Tracks how many billable AI calls (initial generation, section
regeneration, section elaboration) an identity has made in the current
usage cycle, and decides whether the next one may run.

State lives entirely in the user's UserProfile row:

    (plan, generations_used_this_month, monthly_cycle_start)

Operations:
-----------
- fetch_or_create: read the profile, creating a free-plan profile for a
  first-time identity and rolling the cycle over when it has expired.
- remaining / admits: pure admission arithmetic on a loaded profile.
- debit: atomic +1 after a successful call. Failures are logged and
  swallowed because the AI call has already happened.
- reserve / release: atomic check-and-increment before the call, and a
  refund when the call then fails. This closes the double-spend window
  that check-then-debit leaves open when two requests race.

Paid plans are unmetered: remaining() is None for them, but their usage is
still counted.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from specforge.config import settings
from specforge.errors import QuotaExhausted
from specforge.models.profile import Plan, UserProfile
from specforge.services.store_errors import store_errors

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def cycle_expired(cycle_start: datetime, now: datetime, cycle_days: int) -> bool:
    return _as_utc(now) - _as_utc(cycle_start) >= timedelta(days=cycle_days)


def remaining(profile: UserProfile | None, free_limit: int) -> int | None:
    """
    Generations left in the current cycle.

    None means "unmetered or unknown, do not block": no profile loaded yet,
    or a paid plan. The result can be negative when racing requests pushed
    the stored count past the limit.
    """
    if profile is None or not Plan(profile.plan).is_metered:
        return None
    return free_limit - profile.generations_used_this_month


def display_remaining(value: int | None) -> int | None:
    return None if value is None else max(0, value)


def admits(profile: UserProfile | None, free_limit: int) -> bool:
    left = remaining(profile, free_limit)
    return left is None or left > 0


class QuotaLedger:
    """
    Usage ledger bound to one database session.

    Usage:
        ledger = QuotaLedger(db)
        profile = await ledger.fetch_or_create(user_id)
        if not ledger.admits(profile):
            raise QuotaExhausted()
        ...call the AI backend...
        await ledger.debit(user_id)
    """

    def __init__(
        self,
        db: AsyncSession,
        free_limit: int | None = None,
        cycle_days: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.free_limit = settings.free_generation_limit if free_limit is None else free_limit
        self.cycle_days = settings.quota_cycle_days if cycle_days is None else cycle_days
        self.clock = clock

    def remaining(self, profile: UserProfile | None) -> int | None:
        return remaining(profile, self.free_limit)

    def admits(self, profile: UserProfile | None) -> bool:
        return admits(profile, self.free_limit)

    def require_admission(self, profile: UserProfile | None) -> None:
        if not self.admits(profile):
            raise QuotaExhausted(remaining=0, limit=self.free_limit)

    async def fetch_or_create(self, user_id: str) -> UserProfile:
        now = self.clock()
        with store_errors("getting or creating user profile"):
            profile = await self.db.get(UserProfile, user_id, populate_existing=True)

            if profile is None:
                profile = UserProfile(
                    id=user_id,
                    plan=Plan.FREE,
                    generations_used_this_month=0,
                    monthly_cycle_start=now,
                )
                self.db.add(profile)
                await self.db.flush()
                logger.info(f"Created free-plan profile for {user_id}")
                return profile

            if cycle_expired(profile.monthly_cycle_start, now, self.cycle_days):
                # Only the two cycle columns are written; plan is untouched.
                profile.generations_used_this_month = 0
                profile.monthly_cycle_start = now
                await self.db.flush()
                logger.info(f"Rolled over usage cycle for {user_id}")

            return profile

    async def debit(self, user_id: str) -> None:
        stmt = (
            update(UserProfile)
            .where(UserProfile.id == user_id)
            .values(
                generations_used_this_month=UserProfile.generations_used_this_month + 1
            )
            .execution_options(synchronize_session=False)
        )
        try:
            async with self.db.begin_nested():
                await self.db.execute(stmt)
        except Exception as e:
            logger.error(f"Failed to increment generation count for {user_id}: {e}", exc_info=True)

    async def reserve(self, user_id: str) -> int:
        """
        Atomically take one unit of allowance.

        Free-plan rows only match while under the limit, so two racing
        requests cannot both take the last unit. Returns the new count.
        """
        stmt = (
            update(UserProfile)
            .where(UserProfile.id == user_id)
            .where(
                or_(
                    UserProfile.plan != Plan.FREE,
                    UserProfile.generations_used_this_month < self.free_limit,
                )
            )
            .values(
                generations_used_this_month=UserProfile.generations_used_this_month + 1
            )
            .returning(UserProfile.generations_used_this_month)
            .execution_options(synchronize_session=False)
        )
        with store_errors("reserving a generation"):
            result = await self.db.execute(stmt)
            new_count = result.scalar_one_or_none()

        if new_count is None:
            logger.info(f"Reservation refused for {user_id}: quota exhausted")
            raise QuotaExhausted(remaining=0, limit=self.free_limit)

        logger.debug(f"Reserved generation for {user_id} ({new_count} used)")
        return new_count

    async def release(self, user_id: str) -> None:
        stmt = (
            update(UserProfile)
            .where(UserProfile.id == user_id)
            .where(UserProfile.generations_used_this_month > 0)
            .values(
                generations_used_this_month=UserProfile.generations_used_this_month - 1
            )
            .execution_options(synchronize_session=False)
        )
        try:
            async with self.db.begin_nested():
                await self.db.execute(stmt)
        except Exception as e:
            logger.error(f"Failed to release reserved generation for {user_id}: {e}", exc_info=True)
