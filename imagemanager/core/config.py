"""Configuration dataclasses with validation.

These are the only configuration objects the core sees. They are frozen:
an orchestrator receives one value per run and nothing mutates it.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Type, TypeVar

from .errors import ConfigurationError


class ActionStrategy(Enum):
    """What to do with selected files."""
    DRY_RUN = "dryRun"
    MOVE_TO_TRASH = "moveToTrash"  # dedup only
    COPY = "copy"                  # sort only


class KeepStrategy(Enum):
    """Which member of a duplicate group survives."""
    KEEP_OLDEST = "keepOldest"
    KEEP_SHORTEST_PATH = "keepShortestPath"


class DateStrategy(Enum):
    """Sources tried, in configured order, to date a file."""
    EXIF = "exif"
    MOD_TIME = "modTime"
    CREATION_TIME = "creationTime"


DEDUP_ACTIONS = frozenset({ActionStrategy.DRY_RUN, ActionStrategy.MOVE_TO_TRASH})
SORT_ACTIONS = frozenset({ActionStrategy.DRY_RUN, ActionStrategy.COPY})

DEFAULT_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif")
DEFAULT_TRASH_DIR = ".trash"

E = TypeVar("E", bound=Enum)


def coerce_enum(enum_type: Type[E], value: "E | str", setting: str) -> E:
    """Turn a configured name into its enum member, or fail validation."""
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        choices = ", ".join(m.value for m in enum_type)
        raise ConfigurationError(
            f"Invalid {setting}: {value!r} (expected one of: {choices})",
            setting=setting,
            value=str(value),
            choices=choices,
        ) from None


def resolve_worker_count(workers: Optional[int]) -> int:
    """Non-positive means one worker per logical CPU. Never less than one."""
    if workers is None or workers <= 0:
        workers = os.cpu_count() or 1
    return max(1, workers)


def normalize_extensions(extensions: Iterable[str]) -> tuple[str, ...]:
    """Lower-case extensions and make sure each starts with a dot."""
    result = []
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        if not ext.startswith("."):
            ext = f".{ext}"
        if ext not in result:
            result.append(ext)
    return tuple(result)


def _require_path(value: Optional[Path | str], setting: str) -> Path:
    if value is None or str(value).strip() == "":
        raise ConfigurationError(f"Missing required path: {setting}", setting=setting)
    return _absolute(Path(value).expanduser())


def _absolute(path: Path) -> Path:
    """Anchor a relative path at the working directory and drop ``..`` parts."""
    return Path(os.path.abspath(path))


@dataclass(frozen=True, slots=True)
class ExifStrategy:
    """An EXIF field name paired with the strptime layout it is parsed with."""
    field_name: str
    layout: str

    def __post_init__(self) -> None:
        if not self.field_name:
            raise ConfigurationError("EXIF strategy needs a field name", setting="fieldName")
        if not self.layout:
            raise ConfigurationError(
                f"EXIF strategy {self.field_name} needs a layout",
                setting="layout",
            )


DEFAULT_EXIF_STRATEGIES = (
    ExifStrategy("DateTimeOriginal", "%Y:%m:%d %H:%M:%S"),
    ExifStrategy("DateTime", "%Y:%m:%d %H:%M:%S"),
    ExifStrategy("SubSecDateTimeOriginal", "%Y:%m:%d %H:%M:%S.%f"),
    ExifStrategy("GPSDateStamp", "%Y:%m:%d"),
)

DEFAULT_STRATEGY_ORDER = (
    DateStrategy.EXIF,
    DateStrategy.MOD_TIME,
    DateStrategy.CREATION_TIME,
)


@dataclass(frozen=True, slots=True)
class DateConfig:
    """Ordered date strategy chain."""
    strategy_order: tuple[DateStrategy, ...] = DEFAULT_STRATEGY_ORDER
    exif_strategies: tuple[ExifStrategy, ...] = DEFAULT_EXIF_STRATEGIES

    def __post_init__(self) -> None:
        order = tuple(
            coerce_enum(DateStrategy, name, "date.strategyOrder")
            for name in self.strategy_order
        )
        if not order:
            raise ConfigurationError(
                "date.strategyOrder must name at least one strategy",
                setting="date.strategyOrder",
            )
        object.__setattr__(self, "strategy_order", order)
        object.__setattr__(self, "exif_strategies", tuple(self.exif_strategies))


@dataclass(frozen=True, slots=True)
class DedupConfig:
    """Configuration for one deduplication run.

    All fields are validated on construction; string strategy names are
    resolved into enum members here so nothing downstream compares strings.
    """
    source: Path
    action_strategy: ActionStrategy = ActionStrategy.DRY_RUN
    keep_strategy: KeepStrategy = KeepStrategy.KEEP_OLDEST
    trash_path: Optional[Path] = None
    workers: int = 0
    threshold: int = 1
    allowed_extensions: tuple[str, ...] = DEFAULT_IMAGE_EXTENSIONS
    dry_run_log: Path = Path("dedup_dry_run_log.csv")

    def __post_init__(self) -> None:
        source = _require_path(self.source, "deduplicator.source")
        action = coerce_enum(ActionStrategy, self.action_strategy, "deduplicator.actionStrategy")
        if action not in DEDUP_ACTIONS:
            raise ConfigurationError(
                f"Action {action.value!r} is not available for deduplication",
                setting="deduplicator.actionStrategy",
                value=action.value,
            )
        keep = coerce_enum(KeepStrategy, self.keep_strategy, "deduplicator.keepStrategy")
        if self.threshold < 0:
            raise ConfigurationError(
                "Threshold must be non-negative",
                setting="deduplicator.threshold",
                value=str(self.threshold),
            )

        # A relative trash path lives inside the source tree.
        trash = Path(self.trash_path).expanduser() if self.trash_path else Path(DEFAULT_TRASH_DIR)
        trash = _absolute(source / trash)

        extensions = normalize_extensions(self.allowed_extensions)
        if not extensions:
            raise ConfigurationError(
                "At least one image extension is required",
                setting="allowedImageExtensions",
            )

        object.__setattr__(self, "source", source)
        object.__setattr__(self, "action_strategy", action)
        object.__setattr__(self, "keep_strategy", keep)
        object.__setattr__(self, "trash_path", trash)
        object.__setattr__(self, "workers", resolve_worker_count(self.workers))
        object.__setattr__(self, "allowed_extensions", extensions)
        object.__setattr__(self, "dry_run_log", Path(self.dry_run_log))

    @property
    def dry_run(self) -> bool:
        return self.action_strategy is ActionStrategy.DRY_RUN


@dataclass(frozen=True, slots=True)
class SortConfig:
    """Configuration for one sort run."""
    source: Path
    destination: Path
    action_strategy: ActionStrategy = ActionStrategy.DRY_RUN
    workers: int = 0
    date: DateConfig = field(default_factory=DateConfig)
    allowed_extensions: tuple[str, ...] = DEFAULT_IMAGE_EXTENSIONS
    dry_run_log: Path = Path("sort_dry_run_log.csv")

    def __post_init__(self) -> None:
        source = _require_path(self.source, "sorter.source")
        destination = _require_path(self.destination, "sorter.destination")
        action = coerce_enum(ActionStrategy, self.action_strategy, "sorter.actionStrategy")
        if action not in SORT_ACTIONS:
            raise ConfigurationError(
                f"Action {action.value!r} is not available for sorting",
                setting="sorter.actionStrategy",
                value=action.value,
            )
        extensions = normalize_extensions(self.allowed_extensions)
        if not extensions:
            raise ConfigurationError(
                "At least one image extension is required",
                setting="allowedImageExtensions",
            )

        object.__setattr__(self, "source", source)
        object.__setattr__(self, "destination", destination)
        object.__setattr__(self, "action_strategy", action)
        object.__setattr__(self, "workers", resolve_worker_count(self.workers))
        object.__setattr__(self, "allowed_extensions", extensions)
        object.__setattr__(self, "dry_run_log", Path(self.dry_run_log))

    @property
    def dry_run(self) -> bool:
        return self.action_strategy is ActionStrategy.DRY_RUN
