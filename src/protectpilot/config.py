"""
ProtectPilot Configuration

Settings are read from PP_* environment variables. Engines never read the
environment directly; they receive values from Settings (or explicit
arguments, which always win).
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


# =============================================================================
# Configuration
# =============================================================================

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "json"
DEFAULT_REGISTRY_LATENCY_SECONDS = 1.0
DEFAULT_REGISTRY_TIMEOUT_SECONDS = 5.0

LOG_FORMATS = ("json", "text")


@dataclass(frozen=True)
class Settings:
    """
    Process configuration.

    Attributes:
        log_level: Level of the "protectpilot" logger
        log_format: "json" (structured) or "text"
        catalog_dir: Directory with the YAML catalogs (None = packaged)
        registry_latency_seconds: Simulated licence register latency
        registry_timeout_seconds: Default licence register timeout
    """
    log_level: str = DEFAULT_LOG_LEVEL
    log_format: str = DEFAULT_LOG_FORMAT
    catalog_dir: Optional[Path] = None
    registry_latency_seconds: float = DEFAULT_REGISTRY_LATENCY_SECONDS
    registry_timeout_seconds: float = DEFAULT_REGISTRY_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> Settings:
        """
        Build settings from the environment.

        Raises:
            ValueError: If a variable holds an unusable value
        """
        log_level = os.getenv("PP_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
        log_format = os.getenv("PP_LOG_FORMAT", DEFAULT_LOG_FORMAT).lower()
        if log_format not in LOG_FORMATS:
            raise ValueError(f"PP_LOG_FORMAT must be one of {LOG_FORMATS}, got '{log_format}'")

        catalog_dir = os.getenv("PP_CATALOG_DIR")

        latency = float(os.getenv(
            "PP_REGISTRY_LATENCY_SECONDS", str(DEFAULT_REGISTRY_LATENCY_SECONDS)
        ))
        timeout = float(os.getenv(
            "PP_REGISTRY_TIMEOUT_SECONDS", str(DEFAULT_REGISTRY_TIMEOUT_SECONDS)
        ))
        if latency < 0:
            raise ValueError("PP_REGISTRY_LATENCY_SECONDS must not be negative")
        if timeout <= 0:
            raise ValueError("PP_REGISTRY_TIMEOUT_SECONDS must be positive")

        return cls(
            log_level=log_level,
            log_format=log_format,
            catalog_dir=Path(catalog_dir) if catalog_dir else None,
            registry_latency_seconds=latency,
            registry_timeout_seconds=timeout,
        )


def get_settings() -> Settings:
    """Current settings (read fresh from the environment)."""
    return Settings.from_env()
