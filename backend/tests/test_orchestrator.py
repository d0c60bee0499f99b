"""Unit tests for the generation orchestrator."""

import logging

import pytest

from conftest import FakeGenerator
from specforge.ai.orchestrator import GenerationOrchestrator, enforce_heading, expected_heading, keep_marker
from specforge.config import settings
from specforge.errors import AIBackendError, ConfigurationError


class TestGenerate:

    @pytest.mark.asyncio
    async def test_streams_chunks_and_returns_document(self):
        generator = FakeGenerator(chunks=["### 1. PRD\nfoo\n", "### 2. Tech Stack\nbar\n"])
        received = []

        document = await GenerationOrchestrator(generator).generate(
            "A marketplace for vintage synths", on_chunk=received.append
        )

        assert received == ["### 1. PRD\nfoo\n", "### 2. Tech Stack\nbar\n"]
        assert document == "### 1. PRD\nfoo\n### 2. Tech Stack\nbar\n"

    @pytest.mark.asyncio
    async def test_async_callback_is_awaited(self):
        received = []

        async def on_chunk(chunk):
            received.append(chunk)

        await GenerationOrchestrator(FakeGenerator(chunks=["a", "b"])).generate("idea", on_chunk)

        assert received == ["a", "b"]

    @pytest.mark.asyncio
    async def test_prompt_contains_idea_and_module_outline(self):
        generator = FakeGenerator(chunks=["x"])

        await GenerationOrchestrator(generator).generate("A marketplace for vintage synths")

        prompt = generator.prompts[0]
        assert "A marketplace for vintage synths" in prompt
        assert "### 5. Schema Design" in prompt
        assert "<!-- module:schema_design -->" in prompt

    @pytest.mark.asyncio
    async def test_empty_stream_warns_but_succeeds(self, caplog):
        caplog.set_level(logging.WARNING)

        document = await GenerationOrchestrator(FakeGenerator(chunks=["  ", "\n"])).generate("idea")

        assert document == "  \n"
        assert "accumulated text is empty" in caplog.text

    @pytest.mark.asyncio
    async def test_backend_error_is_generic(self, caplog):
        generator = FakeGenerator(error=RuntimeError("upstream 500: secret detail"))

        with pytest.raises(AIBackendError) as exc_info:
            await GenerationOrchestrator(generator).generate("idea")

        assert "secret detail" not in exc_info.value.user_message
        assert "secret detail" in caplog.text

    @pytest.mark.asyncio
    async def test_missing_api_key_is_configuration_error(self, monkeypatch):
        monkeypatch.setattr(settings, "openai_api_key", None)

        with pytest.raises(ConfigurationError):
            await GenerationOrchestrator().generate("idea")


class TestOneShotCalls:

    @pytest.mark.asyncio
    async def test_elaborate_returns_answer(self):
        generator = FakeGenerator(completion="Use **JWT** here.")

        answer = await GenerationOrchestrator(generator).elaborate("### 2. Tech Stack\n...", "Which auth?")

        assert answer == "Use **JWT** here."
        assert "Which auth?" in generator.prompts[0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("completion", ["", "   \n", None])
    async def test_empty_response_is_an_error(self, completion):
        with pytest.raises(AIBackendError):
            await GenerationOrchestrator(FakeGenerator(completion=completion)).elaborate("s", "q")

    @pytest.mark.asyncio
    async def test_analyze_error_is_wrapped(self):
        with pytest.raises(AIBackendError):
            await GenerationOrchestrator(FakeGenerator(error=TimeoutError())).analyze("doc")


class TestRegenerationHeading:
    """Regenerated sections always start with the original heading line."""

    ORIGINAL = "### 3. Project Structure\nsrc/\n  app/\n"

    @pytest.mark.asyncio
    async def test_exact_heading_kept(self):
        generator = FakeGenerator(completion="### 3. Project Structure\nnew tree\n")

        text = await GenerationOrchestrator(generator).regenerate("3. Project Structure", self.ORIGINAL)

        assert text == "### 3. Project Structure\nnew tree"

    @pytest.mark.asyncio
    async def test_missing_heading_is_prepended(self):
        generator = FakeGenerator(completion="Here is the tree:\nsrc/")

        text = await GenerationOrchestrator(generator).regenerate("3. Project Structure", self.ORIGINAL)

        assert text.split("\n")[0] == "### 3. Project Structure"
        assert "Here is the tree:" in text

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "completion",
        [
            "## Project Structure\nnew tree",
            "### 3. Project Structure (Revised)\nnew tree",
            "### 4. Something Else\nnew tree",
        ],
    )
    async def test_altered_heading_is_replaced(self, completion):
        text = await GenerationOrchestrator(FakeGenerator(completion=completion)).regenerate(
            "3. Project Structure", self.ORIGINAL, "Make it a monorepo"
        )

        assert text == "### 3. Project Structure\nnew tree"

    @pytest.mark.asyncio
    async def test_instructions_and_default(self):
        generator = FakeGenerator(completion="### 3. Project Structure\nx")
        orchestrator = GenerationOrchestrator(generator)

        await orchestrator.regenerate("3. Project Structure", self.ORIGINAL, "Make it a monorepo")
        await orchestrator.regenerate("3. Project Structure", self.ORIGINAL, "   ")

        assert "Make it a monorepo" in generator.prompts[0]
        assert "No specific instructions provided" in generator.prompts[1]

    def test_expected_heading_falls_back_to_title(self):
        assert expected_heading("Overview", "Intro text") == "### Overview"
        assert expected_heading("1. PRD", "### 1. PRD\nbody") == "### 1. PRD"

    def test_enforce_heading_on_empty_body(self):
        assert enforce_heading("## Wrong", "### 1. PRD") == "### 1. PRD\n"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "completion",
        [
            "### 5. Schema Design\nusers(id)",
            "### 5. Schema Design\n<!-- module:schema_design -->\nusers(id)",
            "## Schema\nusers(id)",
        ],
    )
    async def test_module_marker_survives_regeneration(self, completion):
        original = "### 5. Schema Design\n<!-- module:schema_design -->\nold tables"

        text = await GenerationOrchestrator(FakeGenerator(completion=completion)).regenerate(
            "5. Schema Design", original
        )

        assert text == "### 5. Schema Design\n<!-- module:schema_design -->\nusers(id)"

    def test_keep_marker_on_heading_only(self):
        marker = "<!-- module:prd -->"
        assert keep_marker("### 1. PRD\n", marker) == "### 1. PRD\n<!-- module:prd -->"
