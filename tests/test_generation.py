"""
Guarded Generation Tests

The provider is only called for prompts rated safe. A scripted
LLMProvider records every call so blocked prompts can be shown to
never reach it.
"""

from __future__ import annotations

from typing import Optional

import pytest

from adshield.errors import GenerationUnavailable, InvalidInputError
from adshield.generation import GENERATION_SYSTEM_INSTRUCTION, generate_if_safe
from adshield.llm import LLMProvider
from adshield.models import ContentItem

RISKY = "URGENT: ACT NOW, this offer expires soon, guaranteed results!"
CLEAN = "Write a short note about our product that helps you save time."


class ScriptedLLM(LLMProvider):
    """Returns a fixed response, or raises a fixed error."""

    name = "scripted"

    def __init__(self, response: str = "", error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.calls: list[dict] = []

    async def generate(self, prompt, system_instruction=None, temperature=0.0, json_mode=False):
        self.calls.append({
            "prompt": prompt,
            "system_instruction": system_instruction,
            "json_mode": json_mode,
        })
        if self.error is not None:
            raise self.error
        return self.response


class TestGenerateIfSafe:

    @pytest.mark.asyncio
    async def test_unsafe_prompt_blocked(self):
        llm = ScriptedLLM("never used")
        outcome = await generate_if_safe(ContentItem(RISKY, "email"), llm)
        assert outcome.blocked is True
        assert outcome.generated_text is None
        assert outcome.analysis.verdict.threat_level == "high"
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_pii_alone_blocks(self):
        llm = ScriptedLLM("never used")
        outcome = await generate_if_safe(ContentItem(f"{CLEAN} Mail jane@example.com."), llm)
        assert outcome.blocked is True
        assert outcome.analysis.verdict.threat_level == "low"
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_blocked_without_provider(self):
        outcome = await generate_if_safe(ContentItem(RISKY, "email"), None)
        assert outcome.blocked is True

    @pytest.mark.asyncio
    async def test_safe_prompt_generates(self):
        llm = ScriptedLLM("  Save an hour a day with a calmer workflow.\n")
        outcome = await generate_if_safe(ContentItem(CLEAN), llm)
        assert outcome.blocked is False
        assert outcome.generated_text == "Save an hour a day with a calmer workflow."
        assert outcome.analysis.verdict.threat_level == "safe"
        assert len(llm.calls) == 1
        assert llm.calls[0]["prompt"] == CLEAN
        assert llm.calls[0]["system_instruction"] == GENERATION_SYSTEM_INSTRUCTION
        assert llm.calls[0]["json_mode"] is False

    @pytest.mark.asyncio
    async def test_envelope(self):
        data = (await generate_if_safe(ContentItem(CLEAN), ScriptedLLM("Copy."))).to_dict()
        assert data["success"] is True
        assert data["blocked"] is False
        assert data["request_id"] == data["analysis"]["request_id"]
        assert data["timestamp"] == data["analysis"]["metadata"]["timestamp"]
        assert data["processing_time"] >= 0

    @pytest.mark.asyncio
    async def test_blocked_envelope(self):
        data = (await generate_if_safe(ContentItem(RISKY, "email"), None)).to_dict()
        assert data["success"] is False
        assert data["blocked"] is True
        assert data["generated_text"] is None
        assert data["analysis"]["threat_level"] == "high"

    @pytest.mark.asyncio
    async def test_safe_prompt_without_provider(self):
        with pytest.raises(GenerationUnavailable):
            await generate_if_safe(ContentItem(CLEAN), None)

    @pytest.mark.asyncio
    async def test_provider_error(self):
        llm = ScriptedLLM(error=RuntimeError("quota exceeded"))
        with pytest.raises(GenerationUnavailable, match="quota exceeded"):
            await generate_if_safe(ContentItem(CLEAN), llm)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", ["", "   \n"])
    async def test_empty_generation(self, response):
        with pytest.raises(GenerationUnavailable):
            await generate_if_safe(ContentItem(CLEAN), ScriptedLLM(response))

    @pytest.mark.asyncio
    async def test_empty_prompt(self):
        llm = ScriptedLLM("never used")
        with pytest.raises(InvalidInputError):
            await generate_if_safe(ContentItem("  "), llm)
        assert llm.calls == []
