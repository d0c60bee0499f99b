from specforge.ai.client import OpenAITextGenerator, TextGenerator
from specforge.ai.orchestrator import GenerationOrchestrator
from specforge.ai.prompts import ANALYSIS_PROMPT, MASTER_SPEC_PROMPT, REGENERATION_PROMPT

__all__ = [
    "GenerationOrchestrator",
    "OpenAITextGenerator",
    "TextGenerator",
    "ANALYSIS_PROMPT",
    "MASTER_SPEC_PROMPT",
    "REGENERATION_PROMPT",
]
