"""
LLM Provider — Abstract Interface

One provider serves both model-backed features:
  - risk scoring (ml_signal.py) asks for a JSON object
  - guarded generation (generation.py) asks for plain text, and only
    ever for prompts the pipeline rated safe

Swap providers by changing ADSHIELD_ML_PROVIDER in env.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from typing import Optional

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


class LLMProvider(ABC):
    """Abstract base for LLM providers."""

    name: str = "unknown"

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.0,
        json_mode: bool = False,
    ) -> str:
        """Generate a text response from the LLM."""
        ...

    async def generate_json(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.0,
    ) -> dict:
        """
        Generate and parse a JSON object.

        Raises:
            ValueError: the answer is not JSON, or not a JSON object.
        """
        text = await self.generate(
            prompt=prompt,
            system_instruction=system_instruction,
            temperature=temperature,
            json_mode=True,
        )
        cleaned = _FENCE.sub("", text.strip())
        try:
            payload = json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise ValueError(
                f"{self.name} returned invalid JSON: {e}. Raw response: {text[:300]}"
            ) from e
        if not isinstance(payload, dict):
            raise ValueError(f"{self.name} returned {type(payload).__name__}, expected an object")
        return payload
