"""
Generation orchestrator.

Builds prompts, drives the AI backend and validates what comes back. It
knows nothing about quotas, sessions or HTTP: admission and debiting are
the caller's job (see services.generation_service).

Every backend failure is logged with its cause and re-raised as a generic
AIBackendError so provider details never reach the user.
"""

from __future__ import annotations

import inspect
import logging
import re
from typing import Any, Awaitable, Callable

from specforge.ai.client import OpenAITextGenerator, TextGenerator
from specforge.ai.prompts import (
    ANALYSIS_PROMPT,
    DEFAULT_REGENERATION_INSTRUCTIONS,
    ELABORATION_PROMPT,
    GENERATION_PROMPT,
    MASTER_SPEC_PROMPT,
    REGENERATION_PROMPT,
)
from specforge.errors import AIBackendError, ConfigurationError

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[str], Awaitable[Any] | Any]

_LEADING_HEADING = re.compile(r"^#{1,6}[^\n]*(?:\n|\Z)")
_MODULE_MARKER_LINE = re.compile(r"^[ \t]*<!--\s*module:\s*[\w-]+\s*-->[ \t]*$")


def expected_heading(section_title: str, original_content: str) -> str:
    """The heading a regenerated section must start with."""
    first_line = original_content.split("\n", 1)[0].rstrip()
    if first_line.startswith("###"):
        return first_line
    return f"### {section_title}"


def enforce_heading(response_text: str, heading: str) -> str:
    """
    Make sure the regenerated text begins with exactly ``heading``.

    A response whose first line already is the heading is returned trimmed.
    Otherwise a heading-shaped first line produced by the model is dropped
    and the expected heading is put in its place.
    """
    trimmed = response_text.strip()
    first_line, newline, rest = trimmed.partition("\n")
    if first_line.rstrip() == heading:
        return heading + newline + rest

    logger.warning(
        f"Regenerated section did not start with the expected heading. "
        f"Expected: {heading!r}. Got: {trimmed[:len(heading) + 50]!r}. Correcting."
    )
    body = _LEADING_HEADING.sub("", trimmed, count=1).lstrip()
    return f"{heading}\n{body}"


def module_marker(original_content: str) -> str | None:
    """The ``<!-- module:<id> -->`` line under the original heading, if any."""
    lines = original_content.split("\n", 2)
    if len(lines) > 1 and _MODULE_MARKER_LINE.match(lines[1]):
        return lines[1].strip()
    return None


def keep_marker(section_text: str, marker: str) -> str:
    """Put ``marker`` back on the line after the heading, replacing any the model wrote."""
    heading, _, rest = section_text.partition("\n")
    first, _, remainder = rest.partition("\n")
    if _MODULE_MARKER_LINE.match(first):
        rest = remainder
    if not rest:
        return f"{heading}\n{marker}"
    return f"{heading}\n{marker}\n{rest}"


async def _deliver(on_chunk: ChunkCallback | None, chunk: str) -> None:
    if on_chunk is None:
        return
    result = on_chunk(chunk)
    if inspect.isawaitable(result):
        await result


class GenerationOrchestrator:

    def __init__(self, generator: TextGenerator | None = None) -> None:
        self._generator = generator

    @property
    def generator(self) -> TextGenerator:
        if self._generator is None:
            self._generator = OpenAITextGenerator()
        return self._generator

    async def generate(self, idea_text: str, on_chunk: ChunkCallback | None = None) -> str:
        """Stream a full specification, forwarding each fragment to ``on_chunk``."""
        generator = self.generator
        prompt = GENERATION_PROMPT.format(
            idea_text=idea_text,
            master_prompt=MASTER_SPEC_PROMPT,
        )

        logger.info("Generating full specification (streaming)...")
        accumulated: list[str] = []
        try:
            async for chunk in generator.stream(prompt):
                if not isinstance(chunk, str):
                    continue
                accumulated.append(chunk)
                await _deliver(on_chunk, chunk)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Error while streaming specification: {e}", exc_info=True)
            raise AIBackendError() from e

        document = "".join(accumulated)
        if not document.strip():
            logger.warning("Stream finished but accumulated text is empty")
        else:
            logger.info(f"Specification stream completed ({len(document)} chars)")
        return document

    async def _complete(self, prompt: str, operation: str) -> str:
        generator = self.generator
        logger.info(f"{operation}: sending request")
        try:
            text = await generator.complete(prompt)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"{operation} failed: {e}", exc_info=True)
            raise AIBackendError(
                f"Failed to get a response for {operation.lower()} from the AI service. Please try again."
            ) from e

        if not isinstance(text, str) or not text.strip():
            logger.error(f"{operation}: unexpected or empty response: {text!r}")
            raise AIBackendError(
                f"Received an unexpected or empty response from the AI for {operation.lower()}."
            )
        logger.info(f"{operation}: received successfully")
        return text

    async def elaborate(self, section_content: str, question: str) -> str:
        prompt = ELABORATION_PROMPT.format(
            section_content=section_content,
            question=question,
        )
        return await self._complete(prompt, "Elaboration")

    async def analyze(self, document: str) -> str:
        return await self._complete(ANALYSIS_PROMPT.format(document=document), "Spec analysis")

    async def regenerate(
        self,
        section_title: str,
        original_content: str,
        instructions: str | None = None,
    ) -> str:
        heading = expected_heading(section_title, original_content)
        prompt = REGENERATION_PROMPT.format(
            heading=heading,
            original_content=original_content,
            instructions=(instructions or "").strip() or DEFAULT_REGENERATION_INSTRUCTIONS,
        )
        text = enforce_heading(await self._complete(prompt, "Section regeneration"), heading)

        marker = module_marker(original_content)
        if marker is not None:
            text = keep_marker(text, marker)
        return text
