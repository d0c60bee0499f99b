"""Unit tests for the quota ledger."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import DBAPIError, OperationalError

from conftest import make_profile
from specforge.errors import QuotaExhausted, StoreError, StorePermissionError
from specforge.models.profile import Plan, UserProfile
from specforge.services.quota_service import (
    QuotaLedger,
    admits,
    cycle_expired,
    display_remaining,
    remaining,
)

NOW = datetime(2026, 3, 31, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def ledger(mock_db_session):
    return QuotaLedger(mock_db_session, free_limit=3, cycle_days=30, clock=lambda: NOW)


class TestAdmissionArithmetic:

    def test_boundary_at_limit(self):
        profile = make_profile(used=3)
        assert remaining(profile, 3) == 0
        assert not admits(profile, 3)

    def test_one_left(self):
        profile = make_profile(used=2)
        assert remaining(profile, 3) == 1
        assert admits(profile, 3)

    def test_no_profile_is_unmetered(self):
        assert remaining(None, 3) is None
        assert admits(None, 3)

    @pytest.mark.parametrize("plan", [Plan.FORGE, Plan.ARCHITECT])
    def test_paid_plans_are_unmetered(self, plan):
        profile = make_profile(plan=plan, used=50)
        assert remaining(profile, 3) is None
        assert admits(profile, 3)

    def test_overdrawn_count_is_clamped_for_display_only(self):
        profile = make_profile(used=5)
        assert remaining(profile, 3) == -2
        assert display_remaining(remaining(profile, 3)) == 0
        assert profile.generations_used_this_month == 5

    def test_require_admission(self, ledger):
        with pytest.raises(QuotaExhausted) as exc_info:
            ledger.require_admission(make_profile(used=3))
        assert exc_info.value.extra["upgrade_path"] == "/billing"
        ledger.require_admission(make_profile(used=2))


class TestCycleExpiry:

    def test_thirty_days_expires(self):
        assert cycle_expired(NOW - timedelta(days=30), NOW, 30)

    def test_just_under_thirty_days_does_not(self):
        assert not cycle_expired(NOW - timedelta(days=29, hours=23), NOW, 30)

    def test_naive_start_is_treated_as_utc(self):
        naive = (NOW - timedelta(days=31)).replace(tzinfo=None)
        assert cycle_expired(naive, NOW, 30)


class TestFetchOrCreate:

    @pytest.mark.asyncio
    async def test_creates_free_profile_for_new_identity(self, ledger, mock_db_session):
        mock_db_session.get.return_value = None

        profile = await ledger.fetch_or_create("new-user")

        assert isinstance(profile, UserProfile)
        assert profile.id == "new-user"
        assert profile.plan == Plan.FREE
        assert profile.generations_used_this_month == 0
        assert profile.monthly_cycle_start == NOW
        mock_db_session.add.assert_called_once_with(profile)
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rolls_over_expired_cycle(self, ledger, mock_db_session):
        stale = make_profile(used=3, cycle_start=NOW - timedelta(days=31))
        mock_db_session.get.return_value = stale

        profile = await ledger.fetch_or_create(stale.id)

        assert profile.generations_used_this_month == 0
        assert profile.monthly_cycle_start == NOW
        assert ledger.admits(profile)
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rollover_keeps_plan(self, ledger, mock_db_session):
        stale = make_profile(plan=Plan.FORGE, used=40, cycle_start=NOW - timedelta(days=45))
        mock_db_session.get.return_value = stale

        profile = await ledger.fetch_or_create(stale.id)

        assert profile.plan == Plan.FORGE
        assert profile.generations_used_this_month == 0

    @pytest.mark.asyncio
    async def test_current_cycle_is_untouched(self, ledger, mock_db_session):
        current = make_profile(used=2, cycle_start=NOW - timedelta(days=3))
        mock_db_session.get.return_value = current

        profile = await ledger.fetch_or_create(current.id)

        assert profile.generations_used_this_month == 2
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_failure_is_translated(self, ledger, mock_db_session):
        mock_db_session.get.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))

        with pytest.raises(StoreError) as exc_info:
            await ledger.fetch_or_create("user-1")
        assert "connection refused" in exc_info.value.user_message


class TestDebit:

    @pytest.mark.asyncio
    async def test_debit_issues_atomic_increment(self, ledger, mock_db_session):
        await ledger.debit("user-1")

        mock_db_session.begin_nested.assert_called_once()
        stmt = mock_db_session.execute.await_args.args[0]
        assert "generations_used_this_month + " in str(stmt)

    @pytest.mark.asyncio
    async def test_debit_failure_is_logged_not_raised(self, ledger, mock_db_session, caplog):
        mock_db_session.execute.side_effect = OperationalError("UPDATE", {}, Exception("boom"))

        await ledger.debit("user-1")

        assert "Failed to increment generation count" in caplog.text


class TestReserve:

    @pytest.mark.asyncio
    async def test_reserve_returns_new_count(self, ledger, mock_db_session):
        result = MagicMock()
        result.scalar_one_or_none.return_value = 3
        mock_db_session.execute.return_value = result

        assert await ledger.reserve("user-1") == 3

    @pytest.mark.asyncio
    async def test_reserve_refused_when_no_row_matches(self, ledger, mock_db_session):
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = result

        with pytest.raises(QuotaExhausted):
            await ledger.reserve("user-1")

    @pytest.mark.asyncio
    async def test_reserve_permission_error(self, ledger, mock_db_session):
        mock_db_session.execute.side_effect = DBAPIError(
            "UPDATE", {}, Exception("permission denied for table user_profiles")
        )

        with pytest.raises(StorePermissionError):
            await ledger.reserve("user-1")

    @pytest.mark.asyncio
    async def test_release_failure_is_swallowed(self, ledger, mock_db_session):
        mock_db_session.execute = AsyncMock(side_effect=OperationalError("UPDATE", {}, Exception("gone")))

        await ledger.release("user-1")

        stmt = mock_db_session.execute.await_args.args[0]
        assert "generations_used_this_month - " in str(stmt)
