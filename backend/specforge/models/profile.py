"""
User Profile Model - Plan and Usage Metering
============================================

One row per signed-in identity, created the first time the identity is
seen. The row is the ledger for the monthly AI-call allowance.

Usage Cycle:
------------
generations_used_this_month counts billable AI calls since
monthly_cycle_start. When a profile is read at least QUOTA_CYCLE_DAYS after
the cycle start, the counter drops back to 0 and the cycle restarts "now".
The check happens on read; there is no scheduled job.

The counter is only changed with atomic UPDATE statements, so concurrent
requests from several browser tabs never lose an increment. It may exceed
the free limit when requests race in "debit" quota mode; it is never
clamped in storage.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from sqlalchemy import CheckConstraint, DateTime, Enum as SQLEnum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from specforge.db.base import Base, TimestampMixin


class Plan(str, Enum):

    FREE = "free"
    FORGE = "forge"
    ARCHITECT = "architect"

    @property
    def is_metered(self) -> bool:
        return self is Plan.FREE


class UserProfile(Base, TimestampMixin):

    __tablename__ = "user_profiles"
    __table_args__ = (
        CheckConstraint("generations_used_this_month >= 0", name="ck_generations_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    plan: Mapped[Plan] = mapped_column(
        SQLEnum(Plan, name="plan"),
        nullable=False,
        default=Plan.FREE,
    )
    generations_used_this_month: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    monthly_cycle_start: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
