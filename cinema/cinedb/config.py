"""
Configuration for CineDB.

Uses pydantic-settings for environment variable loading. All settings have
sensible defaults for local use; override with CINEDB_* variables.

Invariants:
    - hall_max_capacity bounds every hall's declared capacity
    - compression and log_format only accept the listed values

How to change safely:
    - Add new settings with defaults that keep existing documents loadable
    - Never change document_name defaults without a migration note
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """CineDB configuration loaded from environment."""

    # Persistence
    data_dir: str = Field(default="data", description="Directory holding the extent document")
    document_name: str = Field(default="cinema-extents.json", description="Extent document file name")
    compression: Literal["none", "gzip"] = Field(default="none", description="Document compression")

    # Model limits
    hall_max_capacity: int = Field(default=150, gt=0, description="Absolute seat cap for any hall")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: Literal["text", "json"] = Field(default="text", description="Log output format")

    model_config = {"env_prefix": "CINEDB_"}

    @property
    def document_path(self) -> Path:
        """Full path of the extent document."""
        name = self.document_name
        if self.compression == "gzip" and not name.endswith(".gz"):
            name += ".gz"
        return Path(self.data_dir) / name

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "CineDB configuration loaded",
            extra={
                "data_dir": self.data_dir,
                "document_path": str(self.document_path),
                "compression": self.compression,
                "hall_max_capacity": self.hall_max_capacity,
                "log_level": self.log_level,
            },
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings()
