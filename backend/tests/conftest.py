"""Shared fixtures: a mocked async session and an in-memory AI backend."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from specforge.models.profile import Plan, UserProfile
from specforge.services.event_service import GenerationEvent


class FakeGenerator:
    """TextGenerator that replays canned output and records prompts."""

    def __init__(self, chunks=(), completion="", error=None):
        self.chunks = list(chunks)
        self.completion = completion
        self.error = error
        self.prompts = []

    async def stream(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        for chunk in self.chunks:
            yield chunk

    async def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.completion


class CollectingPublisher:
    """Publisher that keeps every event for later assertions."""

    def __init__(self):
        self.events: list[GenerationEvent] = []
        self.closed = False

    async def publish(self, event):
        self.events.append(event)

    async def close(self):
        self.closed = True

    def of_type(self, event_type):
        return [e for e in self.events if e.event == event_type]


def make_profile(user_id="user-1", plan=Plan.FREE, used=0, cycle_start=None):
    return UserProfile(
        id=user_id,
        plan=plan,
        generations_used_this_month=used,
        monthly_cycle_start=cycle_start or datetime.now(timezone.utc),
    )


def counting_execute(profile, free_limit=3):
    """
    Stand-in for db.execute that applies the ledger's atomic updates to
    ``profile`` in memory: reserve/debit add one, release takes one off,
    and a reservation past the free limit matches no row.
    """

    async def execute(stmt, *args, **kwargs):
        sql = str(stmt)
        result = MagicMock()
        if "generations_used_this_month < " in sql:
            exhausted = (
                profile.plan == Plan.FREE
                and profile.generations_used_this_month >= free_limit
            )
            if exhausted:
                result.scalar_one_or_none.return_value = None
                return result
        if "generations_used_this_month - " in sql:
            if profile.generations_used_this_month > 0:
                profile.generations_used_this_month -= 1
            return result
        profile.generations_used_this_month += 1
        result.scalar_one_or_none.return_value = profile.generations_used_this_month
        return result

    return execute


@pytest.fixture
def mock_db_session():
    session = AsyncMock(spec=AsyncSession)
    session.add = MagicMock()
    session.begin_nested = MagicMock()
    return session


@pytest.fixture
def free_profile():
    return make_profile(plan=Plan.FREE, used=0)
