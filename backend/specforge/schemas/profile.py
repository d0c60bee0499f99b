"""Profile and module catalogue schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from specforge.models.profile import Plan


class ProfileResponse(BaseModel):

    model_config = ConfigDict(from_attributes=True)

    id: str
    plan: Plan
    generations_used_this_month: int
    monthly_cycle_start: datetime
    remaining: int | None = None
    limit: int


class ModuleInfo(BaseModel):

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    is_premium: bool
