"""Application settings model."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from checkform.utils.constants import (
    APP_DATA_DIR,
    GRID_SIZE,
    MAX_HISTORY_DEPTH,
    SNAP_THRESHOLD,
)


class Settings(BaseSettings):
    """Application settings.

    Loaded from ``CHECKFORM_``-prefixed environment variables and a ``.env``
    file.

    Attributes:
        log_level: Log level
        data_dir: Root of the local data directory
        templates_dir: Template storage, ``<data_dir>/templates`` when unset
        assets_dir: Uploaded images, ``<data_dir>/assets`` when unset
        database_path: Version database, ``<data_dir>/versions.db`` when unset
        checklist_file: JSON file with checklist templates
        preset_file: JSON file with section presets
        grid_size: Snap grid spacing in points
        snap_threshold: Edge snap distance in points
        max_history_depth: Undo log length
        snap_to_grid: Grid snapping on by default
        snap_to_edges: Edge snapping on by default
        background_saves: Save on a worker thread
        debug: Debug mode
    """

    model_config = SettingsConfigDict(
        env_prefix="CHECKFORM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Log level")

    # Storage
    data_dir: Path = Field(default=APP_DATA_DIR, description="Data directory")
    templates_dir: Optional[Path] = Field(default=None, description="Template directory")
    assets_dir: Optional[Path] = Field(default=None, description="Asset directory")
    database_path: Optional[Path] = Field(default=None, description="Version database")
    checklist_file: Optional[Path] = Field(default=None, description="Checklist templates file")
    preset_file: Optional[Path] = Field(default=None, description="Section presets file")

    # Editor
    grid_size: int = Field(default=GRID_SIZE, ge=1, le=100, description="Grid spacing")
    snap_threshold: int = Field(default=SNAP_THRESHOLD, ge=0, le=100, description="Edge snap distance")
    max_history_depth: int = Field(default=MAX_HISTORY_DEPTH, ge=1, le=1000, description="Undo depth")
    snap_to_grid: bool = Field(default=True, description="Snap to grid")
    snap_to_edges: bool = Field(default=True, description="Snap to section edges")
    background_saves: bool = Field(default=True, description="Save on a worker thread")

    debug: bool = Field(default=False, description="Debug mode")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate the log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}, expected one of {sorted(valid_levels)}")
        return upper_v

    @property
    def resolved_templates_dir(self) -> Path:
        return self.templates_dir or self.data_dir / "templates"

    @property
    def resolved_assets_dir(self) -> Path:
        return self.assets_dir or self.data_dir / "assets"

    @property
    def db_path(self) -> Path:
        """Version database path."""
        return self.database_path or self.data_dir / "versions.db"

    @property
    def preferences_path(self) -> Path:
        """User preferences file."""
        return self.data_dir / "preferences.json"
