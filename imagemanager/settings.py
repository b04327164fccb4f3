"""Configuration file loading.

The YAML file is parsed into pydantic models (camelCase keys), then turned
into the frozen core configuration values. CLI flags override file values.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .core.config import (
    DEFAULT_EXIF_STRATEGIES,
    DEFAULT_IMAGE_EXTENSIONS,
    DEFAULT_STRATEGY_ORDER,
    DateConfig,
    DedupConfig,
    ExifStrategy,
    SortConfig,
)
from .core.errors import ConfigurationError


class _Section(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


def _expand(value: Optional[Path]) -> Optional[Path]:
    if value is None:
        return None
    return value.expanduser()


class ExifStrategySettings(_Section):
    field_name: str = Field(..., alias="fieldName", description="EXIF tag name")
    layout: str = Field(..., description="strptime layout the tag value is parsed with")


class DateSettings(_Section):
    strategy_order: List[str] = Field(
        default_factory=lambda: [s.value for s in DEFAULT_STRATEGY_ORDER],
        alias="strategyOrder",
        description="Date sources to try, in order: exif, modTime, creationTime",
    )
    exif_strategies: List[ExifStrategySettings] = Field(
        default_factory=lambda: [
            ExifStrategySettings(field_name=s.field_name, layout=s.layout)
            for s in DEFAULT_EXIF_STRATEGIES
        ],
        alias="exifStrategies",
        description="EXIF fields tried, in order, by the exif strategy",
    )

    def to_config(self) -> DateConfig:
        return DateConfig(
            strategy_order=tuple(self.strategy_order),
            exif_strategies=tuple(ExifStrategy(s.field_name, s.layout) for s in self.exif_strategies),
        )


class DedupSettings(_Section):
    source: Optional[Path] = Field(default=None, description="Directory to deduplicate")
    action_strategy: str = Field(default="dryRun", alias="actionStrategy")
    keep_strategy: str = Field(default="keepOldest", alias="keepStrategy")
    trash_path: Optional[Path] = Field(
        default=None,
        alias="trashPath",
        description="Trash directory (default: <source>/.trash)",
    )
    workers: int = Field(default=0, description="Worker threads (0 = one per CPU)")
    threshold: int = Field(default=1, description="Minimum extra copies before a group counts")

    @field_validator("source", "trash_path")
    @classmethod
    def expand_paths(cls, value: Optional[Path]) -> Optional[Path]:
        return _expand(value)


class SortSettings(_Section):
    source: Optional[Path] = Field(default=None, description="Directory to sort")
    destination: Optional[Path] = Field(default=None, description="Root of the dated folders")
    action_strategy: str = Field(default="dryRun", alias="actionStrategy")
    workers: int = Field(default=0, description="Worker threads (0 = one per CPU)")
    date: DateSettings = Field(default_factory=DateSettings)

    @field_validator("source", "destination")
    @classmethod
    def expand_paths(cls, value: Optional[Path]) -> Optional[Path]:
        return _expand(value)


class FilesSettings(_Section):
    application_log: Path = Field(default=Path("application.log"), alias="applicationLog")
    dedup_dry_run_log: Path = Field(default=Path("dedup_dry_run_log.csv"), alias="dedupDryRunLog")
    sort_dry_run_log: Path = Field(default=Path("sort_dry_run_log.csv"), alias="sortDryRunLog")


class Settings(_Section):
    """Top-level configuration file model.

    Missing sections and keys take their defaults; an absent file means
    all defaults.
    """
    allowed_image_extensions: List[str] = Field(
        default_factory=lambda: list(DEFAULT_IMAGE_EXTENSIONS),
        alias="allowedImageExtensions",
    )
    language: str = Field(default="en", description="Message language: en or de")
    deduplicator: DedupSettings = Field(default_factory=DedupSettings)
    sorter: SortSettings = Field(default_factory=SortSettings)
    files: FilesSettings = Field(default_factory=FilesSettings)

    def dedup_config(self, **overrides: Any) -> DedupConfig:
        """Build the dedup run configuration. ``None`` overrides are ignored.

        Raises:
            ConfigurationError: A value is missing or invalid.
        """
        d = self.deduplicator
        values = {
            "source": d.source,
            "action_strategy": d.action_strategy,
            "keep_strategy": d.keep_strategy,
            "trash_path": d.trash_path,
            "workers": d.workers,
            "threshold": d.threshold,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return DedupConfig(
            allowed_extensions=tuple(self.allowed_image_extensions),
            dry_run_log=self.files.dedup_dry_run_log,
            **values,
        )

    def sort_config(self, **overrides: Any) -> SortConfig:
        """Build the sort run configuration. ``None`` overrides are ignored.

        Raises:
            ConfigurationError: A value is missing or invalid.
        """
        s = self.sorter
        values = {
            "source": s.source,
            "destination": s.destination,
            "action_strategy": s.action_strategy,
            "workers": s.workers,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return SortConfig(
            date=s.date.to_config(),
            allowed_extensions=tuple(self.allowed_image_extensions),
            dry_run_log=self.files.sort_dry_run_log,
            **values,
        )


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"])
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def parse_settings(text: str, source: str = "<string>") -> Settings:
    """Parse YAML text into Settings.

    Raises:
        ConfigurationError: Malformed YAML or an invalid schema.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Cannot parse {source}: {e}", setting="config", value=source) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"{source} must contain a mapping at the top level",
            setting="config",
            value=source,
        )

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration in {source}: {_format_validation_error(e)}",
            setting="config",
            value=source,
        ) from e


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings from a YAML file; ``None`` means all defaults.

    Raises:
        ConfigurationError: The file is missing, unreadable or invalid.
    """
    if path is None:
        return Settings()

    path = Path(path).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read configuration file {path}: {e}",
            setting="config",
            value=str(path),
        ) from e
    return parse_settings(text, str(path))
