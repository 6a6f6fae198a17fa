"""
AdShield Configuration

Central settings loaded from environment variables.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    # --- Versioning ---
    ENGINE_VERSION: str = "1.0.0"
    API_VERSION: str = "1"

    # --- External ML signal ---
    # "none" runs pattern-only (degraded) scoring; "gemini" asks the LLM
    ML_PROVIDER: str = os.getenv("ADSHIELD_ML_PROVIDER", "none")
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

    # --- Fusion ---
    PII_ESCALATION_THRESHOLD: int = int(
        os.getenv("ADSHIELD_PII_THRESHOLD", "2")
    )

    # --- Batch ---
    BATCH_MAX_WORKERS: int = int(os.getenv("ADSHIELD_BATCH_WORKERS", "4"))
    MAX_FILES: int = int(os.getenv("ADSHIELD_MAX_FILES", "20"))
    MAX_UPLOAD_BYTES: int = int(
        os.getenv("ADSHIELD_MAX_UPLOAD_BYTES", str(5 * 1024 * 1024))
    )

    # --- CORS ---
    CORS_ORIGINS: str = os.getenv("ADSHIELD_CORS_ORIGINS", "*")


settings = Settings()
