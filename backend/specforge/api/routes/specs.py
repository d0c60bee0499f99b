from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from specforge.api.deps import CurrentUser, get_spec_store
from specforge.schemas.spec import SpecCreate, SpecListResponse, SpecResponse, SpecUpdate
from specforge.services import SpecStore

logger = logging.getLogger(__name__)
router = APIRouter()

Store = Annotated[SpecStore, Depends(get_spec_store)]

DOWNLOAD_FILENAME = "generated-spec.md"


@router.get("/", response_model=list[SpecListResponse])
async def list_specs(user_id: CurrentUser, store: Store) -> list[SpecListResponse]:
    specs = await store.list_for_owner(user_id)
    return [SpecListResponse.model_validate(spec) for spec in specs]


@router.post("/", response_model=SpecResponse, status_code=status.HTTP_201_CREATED)
async def create_spec(spec_in: SpecCreate, user_id: CurrentUser, store: Store) -> SpecResponse:
    spec = await store.create(
        owner_id=user_id,
        name=spec_in.name,
        idea_text=spec_in.idea_text,
        generated_document=spec_in.generated_document,
        selected_module_ids=spec_in.selected_module_ids,
    )
    return SpecResponse.model_validate(spec)


@router.get("/{spec_id}", response_model=SpecResponse)
async def get_spec(spec_id: UUID, user_id: CurrentUser, store: Store) -> SpecResponse:
    return SpecResponse.model_validate(await store.get(user_id, spec_id))


@router.patch("/{spec_id}", response_model=SpecResponse)
async def update_spec(
    spec_id: UUID,
    spec_in: SpecUpdate,
    user_id: CurrentUser,
    store: Store,
) -> SpecResponse:
    spec = await store.update(user_id, spec_id, **spec_in.model_dump(exclude_unset=True))
    return SpecResponse.model_validate(spec)


@router.delete("/{spec_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_spec(spec_id: UUID, user_id: CurrentUser, store: Store) -> None:
    await store.delete(user_id, spec_id)


@router.get("/{spec_id}/download")
async def download_spec(spec_id: UUID, user_id: CurrentUser, store: Store) -> Response:
    spec = await store.get(user_id, spec_id)
    return Response(
        content=spec.generated_document,
        media_type="text/markdown; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{DOWNLOAD_FILENAME}"'},
    )
