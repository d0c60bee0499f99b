"""
AI Text Backend
===============

The generator only needs two capabilities from the model provider:

- stream(prompt): yield text fragments of one completion as they arrive
- complete(prompt): return one whole completion

Anything implementing TextGenerator can drive the orchestrator; tests use
an in-memory fake, production uses OpenAITextGenerator.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Protocol

from openai import AsyncOpenAI

from specforge.config import settings
from specforge.errors import ConfigurationError

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):

    def stream(self, prompt: str) -> AsyncIterator[str]:
        ...

    async def complete(self, prompt: str) -> str | None:
        ...


class OpenAITextGenerator:

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        model: str | None = None,
    ) -> None:
        if client is None:
            if not settings.ai_configured:
                logger.error("OPENAI_API_KEY is not set; AI operations are disabled")
                raise ConfigurationError()
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.openai_timeout_seconds,
            )
        self.openai = client
        self.model = model or settings.openai_model

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        response = await self.openai.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            stream=True,
        )
        async for chunk in response:
            if not chunk.choices:
                continue
            text = chunk.choices[0].delta.content
            if isinstance(text, str) and text:
                yield text

    async def complete(self, prompt: str) -> str | None:
        response = await self.openai.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
        )
        if not response.choices:
            return None
        return response.choices[0].message.content
