"""
Generation Service
==================

The boundary between HTTP and the AI pipeline. Everything that touches
money or identity happens here; the orchestrator below it only talks to
the model.

Flow for one billable operation:

    validate input ──▶ ensure_profile ──▶ admit / reserve
                                             │
                                   AI call (orchestrator)
                                             │
                      success: debit ◀───────┴───────▶ failure: release

Quota Modes:
------------
- reserve (default): one unit is taken atomically before the AI call and
  refunded if the call fails, so two tabs cannot both spend the last unit.
- debit: the profile is checked before the call and the counter is bumped
  after it succeeds. Two racing requests can both pass the check.

Every SpecForgeError raised below is already user-facing. Anything else
is logged and replaced with a generic message before it leaves.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from specforge.ai.orchestrator import GenerationOrchestrator
from specforge.config import settings
from specforge.core.analysis import AnalysisItem, parse_analysis
from specforge.core.modules import (
    PremiumStreamFilter,
    has_premium_selection,
    module_for_section,
    redact_premium_sections,
    unknown_module_ids,
)
from specforge.core.sections import Section, parse_sections
from specforge.core.session import (
    EditorState,
    apply_section_update,
    require_section,
    select_section,
)
from specforge.errors import (
    IdeaLengthError,
    NoModulesSelected,
    NotAuthenticated,
    PlanRequired,
    SectionPatchError,
    SpecForgeError,
    StoreError,
    UnknownModules,
)
from specforge.models.profile import Plan, UserProfile
from specforge.services.event_service import EventEmitter
from specforge.services.quota_service import QuotaLedger, display_remaining

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    document: str
    sections: list[Section]
    remaining: int | None


@dataclass(frozen=True)
class ElaborationResult:
    answer: str
    remaining: int | None


@dataclass(frozen=True)
class RegenerationResult:
    document: str
    section: Section
    sections: list[Section]
    remaining: int | None


@dataclass(frozen=True)
class AnalysisResult:
    analysis: str
    items: list[AnalysisItem]


def validate_request(idea_text: str, module_ids: Sequence[str]) -> None:
    """Admission checks that need no network call."""
    length = len(idea_text)
    if length < settings.idea_min_chars or length > settings.idea_max_chars:
        raise IdeaLengthError(
            f"Your app idea must be between {settings.idea_min_chars} and "
            f"{settings.idea_max_chars} characters (currently {length}).",
            min_chars=settings.idea_min_chars,
            max_chars=settings.idea_max_chars,
        )
    if not module_ids:
        raise NoModulesSelected()
    unknown = unknown_module_ids(module_ids)
    if unknown:
        raise UnknownModules(unknown=unknown)


class GenerationService:

    def __init__(
        self,
        db: AsyncSession,
        orchestrator: GenerationOrchestrator,
        ledger: QuotaLedger | None = None,
        quota_mode: str | None = None,
    ) -> None:
        self.db = db
        self.orchestrator = orchestrator
        self.ledger = ledger or QuotaLedger(db)
        self.quota_mode = quota_mode or settings.quota_mode

    async def ensure_profile(self, user_id: str | None) -> UserProfile:
        if not user_id:
            raise NotAuthenticated()
        try:
            return await asyncio.wait_for(
                self.ledger.fetch_or_create(user_id),
                timeout=settings.auth_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(
                f"Profile bootstrap for {user_id} timed out after "
                f"{settings.auth_timeout_seconds}s"
            )
            raise StoreError("Timed out while loading your profile. Please try again.")

    async def remaining_for(self, user_id: str) -> int | None:
        profile = await self.ensure_profile(user_id)
        return display_remaining(self.ledger.remaining(profile))

    @asynccontextmanager
    async def billable(self, user_id: str | None) -> AsyncIterator[UserProfile]:
        """
        Admit one billable AI call and settle the ledger afterwards.

            async with service.billable(user_id) as profile:
                text = await orchestrator.elaborate(...)
        """
        profile = await self.ensure_profile(user_id)

        if self.quota_mode == "reserve":
            await self.ledger.reserve(profile.id)
            # Commit now so the row lock is not held across the AI call.
            await self.db.commit()
            try:
                yield profile
            except BaseException:
                await self.ledger.release(profile.id)
                await self.db.commit()
                raise
            return

        self.ledger.require_admission(profile)
        yield profile
        await self.ledger.debit(profile.id)

    async def generate(
        self,
        user_id: str | None,
        idea_text: str,
        module_ids: Sequence[str],
        emitter: EventEmitter | None = None,
    ) -> GenerationResult:
        validate_request(idea_text, module_ids)

        async with self.billable(user_id) as profile:
            redact = Plan(profile.plan).is_metered and has_premium_selection(module_ids)
            stream_filter = PremiumStreamFilter(module_ids) if redact else None

            if emitter is not None:
                await emitter.status("generating", "Generating your specification...")

            async def forward(chunk: str) -> None:
                if emitter is None:
                    return
                if stream_filter is not None:
                    chunk = stream_filter.feed(chunk)
                if chunk:
                    await emitter.chunk(chunk)

            document = await self.orchestrator.generate(idea_text, on_chunk=forward)

            if stream_filter is not None and emitter is not None:
                tail = stream_filter.flush()
                if tail:
                    await emitter.chunk(tail)

        if redact:
            document = redact_premium_sections(document, module_ids)

        remaining = await self.remaining_for(profile.id)
        logger.info(
            f"Generated specification for {profile.id} "
            f"({len(document)} chars, remaining={remaining})"
        )
        return GenerationResult(
            document=document,
            sections=parse_sections(document),
            remaining=remaining,
        )

    async def stream_generation(
        self,
        user_id: str | None,
        idea_text: str,
        module_ids: Sequence[str],
        emitter: EventEmitter,
    ) -> GenerationResult | None:
        """Run generate() and report the outcome as events instead of raising."""
        try:
            await emitter.status("checking", "Checking your plan...")
            result = await self.generate(user_id, idea_text, module_ids, emitter)
        except SpecForgeError as e:
            logger.info(f"Generation refused or failed: {e.kind}")
            await emitter.error(e.user_message, kind=e.kind, **e.extra)
            return None
        except Exception as e:
            logger.error(f"Unexpected error during generation: {e}", exc_info=True)
            await emitter.error(SpecForgeError.default_message, kind=SpecForgeError.kind)
            return None

        await emitter.completed(
            document=result.document,
            sections=[s.to_dict() for s in result.sections],
            remaining=result.remaining,
        )
        return result

    async def require_unlocked(self, user_id: str | None, section_content: str) -> None:
        """Refuse AI work on a premium module's section for metered plans."""
        module = module_for_section(section_content)
        if module is None or not module.is_premium:
            return
        profile = await self.ensure_profile(user_id)
        if Plan(profile.plan).is_metered:
            raise PlanRequired(
                f"{module.name} is available on paid plans. "
                "Please visit the Billing page to upgrade.",
                feature=module.id,
            )

    async def elaborate(
        self,
        user_id: str | None,
        section_content: str,
        question: str,
    ) -> ElaborationResult:
        await self.require_unlocked(user_id, section_content)

        async with self.billable(user_id) as profile:
            answer = await self.orchestrator.elaborate(section_content, question)
        return ElaborationResult(answer=answer, remaining=await self.remaining_for(profile.id))

    async def regenerate_section(
        self,
        user_id: str | None,
        document: str,
        section_id: str,
        instructions: str | None = None,
    ) -> RegenerationResult:
        state = select_section(EditorState.from_document(document), section_id)
        section = require_section(state, section_id)
        await self.require_unlocked(user_id, section.content)

        async with self.billable(user_id) as profile:
            new_content = await self.orchestrator.regenerate(
                section.title, section.content, instructions
            )

        state, patch = apply_section_update(state, section_id, new_content)
        if not patch.applied:
            logger.error(f"Could not splice regenerated section {section_id!r} into document")
            raise SectionPatchError(section_id=section_id)

        updated = state.active_section or require_section(state, state.sections[0].id)
        return RegenerationResult(
            document=state.document,
            section=updated,
            sections=list(state.sections),
            remaining=await self.remaining_for(profile.id),
        )

    async def analyze(self, user_id: str | None, document: str) -> AnalysisResult:
        profile = await self.ensure_profile(user_id)
        if Plan(profile.plan).is_metered:
            raise PlanRequired(feature="analysis")

        text = await self.orchestrator.analyze(document)
        return AnalysisResult(analysis=text, items=parse_analysis(text, parse_sections(document)))
