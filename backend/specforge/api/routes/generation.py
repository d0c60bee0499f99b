from __future__ import annotations

import asyncio
import logging
from typing import Annotated
from uuid import uuid4

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sse_starlette.sse import EventSourceResponse

from specforge.ai.orchestrator import GenerationOrchestrator
from specforge.api.deps import (
    CurrentUser,
    get_generation_service,
    get_orchestrator,
    get_session_factory,
)
from specforge.core.analysis import AnalysisItem
from specforge.core.sections import Section, parse_sections
from specforge.errors import SpecForgeError
from specforge.schemas.generation import (
    AnalysisItemResponse,
    AnalysisResponse,
    DocumentRequest,
    ElaborationRequest,
    ElaborationResponse,
    GenerationRequest,
    RegenerationRequest,
    RegenerationResponse,
    SectionInfo,
    SectionsResponse,
)
from specforge.services import GenerationService, validate_request
from specforge.services.event_service import DirectEventPublisher, EventEmitter

logger = logging.getLogger(__name__)
router = APIRouter()

Service = Annotated[GenerationService, Depends(get_generation_service)]


def _section_info(section: Section) -> SectionInfo:
    return SectionInfo(id=section.id, title=section.title, content=section.content)


def _analysis_item(item: AnalysisItem) -> AnalysisItemResponse:
    return AnalysisItemResponse(
        id=item.id,
        kind=item.kind,
        text=item.text,
        referenced_section_title=item.referenced_section_title,
        section_id=item.resolved_section.id if item.resolved_section else None,
    )


@router.post("/stream")
async def stream_generation(
    request_in: GenerationRequest,
    user_id: CurrentUser,
    orchestrator: Annotated[GenerationOrchestrator, Depends(get_orchestrator)],
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> EventSourceResponse:
    # Input problems are answered with a plain 4xx before the stream opens.
    validate_request(request_in.idea_text, request_in.selected_module_ids)

    stream_id = str(uuid4())
    publisher = DirectEventPublisher(stream_id)
    emitter = EventEmitter(publisher, stream_id)

    async def event_generator():

        async def run_generation():
            try:
                async with session_factory() as db:
                    service = GenerationService(db, orchestrator)
                    await service.stream_generation(
                        user_id,
                        request_in.idea_text,
                        request_in.selected_module_ids,
                        emitter,
                    )
                    await db.commit()
            except Exception as e:
                logger.error(f"Generation stream {stream_id} failed: {e}", exc_info=True)
                await emitter.error(SpecForgeError.default_message, kind=SpecForgeError.kind)
            finally:
                await emitter.close()

        task = asyncio.create_task(run_generation())

        try:
            async for event in publisher.events():
                yield event.to_sse()
        finally:
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

    return EventSourceResponse(event_generator())


@router.post("/elaborate", response_model=ElaborationResponse)
async def elaborate_section(
    request_in: ElaborationRequest,
    user_id: CurrentUser,
    service: Service,
) -> ElaborationResponse:
    result = await service.elaborate(user_id, request_in.section_content, request_in.question)
    return ElaborationResponse(answer=result.answer, remaining=result.remaining)


@router.post("/regenerate", response_model=RegenerationResponse)
async def regenerate_section(
    request_in: RegenerationRequest,
    user_id: CurrentUser,
    service: Service,
) -> RegenerationResponse:
    result = await service.regenerate_section(
        user_id,
        request_in.document,
        request_in.section_id,
        request_in.instructions,
    )
    return RegenerationResponse(
        document=result.document,
        section=_section_info(result.section),
        sections=[_section_info(s) for s in result.sections],
        remaining=result.remaining,
    )


@router.post("/analyze", response_model=AnalysisResponse)
async def analyze_document(
    request_in: DocumentRequest,
    user_id: CurrentUser,
    service: Service,
) -> AnalysisResponse:
    result = await service.analyze(user_id, request_in.document)
    return AnalysisResponse(
        analysis=result.analysis,
        items=[_analysis_item(item) for item in result.items],
    )


@router.post("/sections", response_model=SectionsResponse)
async def split_sections(request_in: DocumentRequest) -> SectionsResponse:
    return SectionsResponse(
        sections=[_section_info(s) for s in parse_sections(request_in.document)]
    )
