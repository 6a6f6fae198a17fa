"""
LLM Provider factory.
"""

from __future__ import annotations

from typing import Optional

from adshield.llm import LLMProvider


def get_provider(provider_name: str = "none") -> Optional[LLMProvider]:
    """Return the configured provider, or None when ML scoring is off."""
    if provider_name in ("", "none"):
        return None
    if provider_name == "gemini":
        from adshield.llm.gemini import GeminiProvider
        return GeminiProvider()
    raise ValueError(f"Unknown ML provider: {provider_name}")
