"""
PolicyLens Configuration

Central settings loaded from environment variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_DEFAULT_REFERENCE_PATH = str(Path(__file__).resolve().parent / "data" / "reference.json")


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    # --- Versioning ---
    VERSION: str = "1.0.0"

    # --- Analysis ---
    CHUNK_SIZE: int = int(os.getenv("POLICYLENS_CHUNK_SIZE", "4"))
    MAX_POLICY_CHARS: int = int(os.getenv("POLICYLENS_MAX_POLICY_CHARS", "200000"))
    MAX_BODY_BYTES: int = int(os.getenv("POLICYLENS_MAX_BODY_BYTES", "1048576"))

    # --- Reference data ---
    REFERENCE_PATH: str = os.getenv("POLICYLENS_REFERENCE_PATH", _DEFAULT_REFERENCE_PATH)

    # --- Result storage ---
    RESULTS_DIR: str = os.getenv("POLICYLENS_RESULTS_DIR", os.path.join("data", "results"))

    # --- Server ---
    HOST: str = os.getenv("POLICYLENS_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("POLICYLENS_PORT", "8080"))

    # --- CORS ---
    CORS_ORIGINS: str = os.getenv("POLICYLENS_CORS_ORIGINS", "*")


settings = Settings()
