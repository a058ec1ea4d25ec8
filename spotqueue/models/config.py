"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

import os
import shutil
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

# Maps user-facing quality names to display metadata
QUALITY_MAP = {
    "normal": {"name": "OGG Vorbis 96kbps", "short": "96k", "color": "yellow"},
    "high": {"name": "OGG Vorbis 160kbps", "short": "160k", "color": "green"},
    "very_high": {"name": "OGG Vorbis 320kbps", "short": "320k", "color": "cyan"},
}

DEFAULT_CHUNK_SIZE = 65536
MIN_CHUNK_SIZE = 4096
MAX_CHUNK_SIZE = 4 * 1024 * 1024


def get_quality_info(quality: str) -> dict[str, str]:
    """Gets all information for a given quality name from the central map."""
    return QUALITY_MAP.get(
        quality, {"name": "Unknown", "short": "Unknown", "color": "white"}
    )


def resolve_helper(helper: str) -> str | None:
    """Resolves a helper program given as a path or a command on $PATH."""
    if not helper:
        return None
    path = Path(helper).expanduser()
    if path.is_file() and os.access(path, os.X_OK):
        return str(path)
    return shutil.which(helper)


class DownloadConfig(BaseModel):
    """A validated configuration model for the application."""

    # Authentication
    username: str = ""
    password: str = Field("", repr=False)  # CLI or environment only, never saved
    stored_credentials: str = ""

    # Download Settings
    output_dir: str = "."
    helper: str = ""
    quality: str = "very_high"
    chunk_size: int = DEFAULT_CHUNK_SIZE
    skip_existing: bool = False
    dry_run: bool = False

    # Internal fields not loaded from INI file
    config_path: str = Field("", repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("quality")
    @classmethod
    def validate_quality(cls, v: str) -> str:
        """Ensures quality is one of the known Vorbis bitrates."""
        v = v.lower().replace("-", "_")
        if v not in QUALITY_MAP:
            raise ValueError(
                f"Quality must be one of {', '.join(QUALITY_MAP)}, but got: {v}"
            )
        return v

    @field_validator("chunk_size")
    @classmethod
    def validate_chunk_size(cls, v: int) -> int:
        """Ensures a reasonable read size for audio streams."""
        if v < MIN_CHUNK_SIZE or v > MAX_CHUNK_SIZE:
            raise ValueError(
                f"Chunk size must be between {MIN_CHUNK_SIZE} and {MAX_CHUNK_SIZE} bytes."
            )
        return v

    @field_validator("output_dir")
    @classmethod
    def validate_output_dir(cls, v: str) -> str:
        if not v:
            raise ValueError("Output directory cannot be empty.")
        return v

    @field_validator("helper")
    @classmethod
    def validate_helper(cls, v: str) -> str:
        """Ensures the helper program, if any, can actually be executed."""
        if v and resolve_helper(v) is None:
            raise ValueError(f"Helper program '{v}' was not found or is not executable.")
        return v

    @model_validator(mode="after")
    def validate_auth_config(self) -> "DownloadConfig":
        """Validates that some way of logging in is available."""
        has_password = bool(self.username and self.password)
        has_stored = bool(
            self.stored_credentials
            and Path(self.stored_credentials).expanduser().is_file()
        )

        if not has_password and not has_stored:
            raise ValueError(
                "Authentication not configured. Provide a username and password or "
                "run 'spotqueue init' to store credentials."
            )
        return self

    @property
    def helper_path(self) -> str | None:
        return resolve_helper(self.helper)

    @property
    def uses_stored_credentials(self) -> bool:
        return not (self.username and self.password)

    @classmethod
    def get_ini_keys(cls) -> list[str]:
        """Returns the keys that are expected in the INI file, in model order."""
        internal_fields = {"config_path", "password", "dry_run"}
        return [key for key in cls.model_fields if key not in internal_fields]
