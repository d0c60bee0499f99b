from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from specforge.api.deps import CurrentUser, get_generation_service
from specforge.core.modules import ALL_MODULES
from specforge.schemas.profile import ModuleInfo, ProfileResponse
from specforge.services import GenerationService
from specforge.services.quota_service import display_remaining

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    user_id: CurrentUser,
    service: Annotated[GenerationService, Depends(get_generation_service)],
) -> ProfileResponse:
    profile = await service.ensure_profile(user_id)
    return ProfileResponse(
        id=profile.id,
        plan=profile.plan,
        generations_used_this_month=profile.generations_used_this_month,
        monthly_cycle_start=profile.monthly_cycle_start,
        remaining=display_remaining(service.ledger.remaining(profile)),
        limit=service.ledger.free_limit,
    )


@router.get("/modules", response_model=list[ModuleInfo])
async def list_modules() -> list[ModuleInfo]:
    return [ModuleInfo.model_validate(module) for module in ALL_MODULES]
