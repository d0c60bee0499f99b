from __future__ import annotations

import logging
from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from specforge.errors import SpecNotFound
from specforge.models.saved_spec import SavedSpec
from specforge.services.store_errors import store_errors

logger = logging.getLogger(__name__)

DEFAULT_SPEC_NAME = "Untitled Spec"


class SpecStore:
    """Saved specifications of one owner. Records of other owners behave as absent."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(
        self,
        owner_id: str,
        name: str | None,
        idea_text: str,
        generated_document: str,
        selected_module_ids: list[str],
    ) -> SavedSpec:
        spec = SavedSpec(
            owner_id=owner_id,
            name=(name or "").strip() or DEFAULT_SPEC_NAME,
            idea_text=idea_text,
            generated_document=generated_document,
            selected_module_ids=list(selected_module_ids),
        )
        with store_errors("saving spec"):
            self.db.add(spec)
            await self.db.flush()
            await self.db.refresh(spec)

        logger.info(f"Saved spec {spec.id} for {owner_id}")
        return spec

    async def list_for_owner(self, owner_id: str) -> Sequence[SavedSpec]:
        with store_errors("loading user specs"):
            result = await self.db.execute(
                select(SavedSpec)
                .where(SavedSpec.owner_id == owner_id)
                .order_by(SavedSpec.updated_at.desc())
            )
            return result.scalars().all()

    async def get(self, owner_id: str, spec_id: UUID) -> SavedSpec:
        with store_errors("loading spec"):
            result = await self.db.execute(
                select(SavedSpec).where(
                    SavedSpec.id == spec_id,
                    SavedSpec.owner_id == owner_id,
                )
            )
            spec = result.scalar_one_or_none()
        if spec is None:
            raise SpecNotFound(spec_id=str(spec_id))
        return spec

    async def update(
        self,
        owner_id: str,
        spec_id: UUID,
        *,
        name: str | None = None,
        idea_text: str | None = None,
        generated_document: str | None = None,
        selected_module_ids: list[str] | None = None,
    ) -> SavedSpec:
        spec = await self.get(owner_id, spec_id)

        if name is not None and name.strip():
            spec.name = name.strip()
        if idea_text is not None:
            spec.idea_text = idea_text
        if generated_document is not None:
            spec.generated_document = generated_document
        if selected_module_ids is not None:
            spec.selected_module_ids = list(selected_module_ids)

        with store_errors("updating spec"):
            await self.db.flush()
            await self.db.refresh(spec)

        logger.info(f"Updated spec {spec_id}")
        return spec

    async def delete(self, owner_id: str, spec_id: UUID) -> None:
        spec = await self.get(owner_id, spec_id)
        with store_errors("deleting spec"):
            await self.db.delete(spec)
            await self.db.flush()
        logger.info(f"Deleted spec {spec_id}")
