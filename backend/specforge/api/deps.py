"""
FastAPI Dependencies
====================

Dependency injection functions for FastAPI routes.
These provide the caller's identity, database sessions and service
instances to route handlers.

Identity:
---------
Sign-in is handled by the identity provider in front of this service. It
forwards the signed-in user's stable id in the header named by
settings.auth_header (X-User-Id by default). A request without it is
anonymous; routes that need an identity depend on get_current_user_id.

Usage in routes:
    @router.get("/specs")
    async def list_specs(
        user_id: CurrentUser,
        store: SpecStore = Depends(get_spec_store),
    ):
        return await store.list_for_owner(user_id)
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from specforge.ai.orchestrator import GenerationOrchestrator
from specforge.config import settings
from specforge.db import async_session_maker, get_db
from specforge.errors import NotAuthenticated
from specforge.services import GenerationService, QuotaLedger, SpecStore

DBSession = Annotated[AsyncSession, Depends(get_db)]


def get_optional_user_id(request: Request) -> str | None:
    value = request.headers.get(settings.auth_header, "").strip()
    return value or None


def get_current_user_id(
    user_id: Annotated[str | None, Depends(get_optional_user_id)],
) -> str:
    if not user_id:
        raise NotAuthenticated()
    return user_id


CurrentUser = Annotated[str, Depends(get_current_user_id)]


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Streamed generation outlives the request scope and opens its own session."""
    return async_session_maker


def get_orchestrator() -> GenerationOrchestrator:
    """
    A fresh orchestrator per request.

    The OpenAI client is only built on first AI use, so routes that never
    call the model keep working without an API key.
    """
    return GenerationOrchestrator()


def get_quota_ledger(db: DBSession) -> QuotaLedger:
    return QuotaLedger(db)


def get_spec_store(db: DBSession) -> SpecStore:
    return SpecStore(db)


def get_generation_service(
    db: DBSession,
    orchestrator: Annotated[GenerationOrchestrator, Depends(get_orchestrator)],
    ledger: Annotated[QuotaLedger, Depends(get_quota_ledger)],
) -> GenerationService:
    return GenerationService(db, orchestrator, ledger)
