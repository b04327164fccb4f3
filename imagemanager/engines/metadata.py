"""EXIF reading and the date strategy chain."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

from PIL import ExifTags, Image, ImageFile, UnidentifiedImageError

from ..core.config import DateConfig, DateStrategy, ExifStrategy
from ..core.errors import NoDateFound
from ..core.models import DateStrategyResult
from ..core.protocols import FileSystem

logger = logging.getLogger(__name__)

# Allow loading truncated images
ImageFile.LOAD_TRUNCATED_IMAGES = True

# Joined into the SubSecDateTimeOriginal field.
_DATETIME_ORIGINAL = "DateTimeOriginal"
_SUBSEC_ORIGINAL = "SubsecTimeOriginal"


def _clean(value: Any) -> Any:
    """Normalize raw tag values: bytes to str, strip NUL padding."""
    if isinstance(value, bytes):
        try:
            value = value.decode("ascii")
        except UnicodeDecodeError:
            return None
    if isinstance(value, str):
        return value.strip().rstrip("\x00").strip()
    return value


class ExifReader:
    """Reads EXIF fields by name using Pillow.

    Fields from IFD0, the Exif sub-IFD and the GPS IFD are merged into one
    flat dict keyed by tag name (e.g. ``DateTimeOriginal``, ``GPSDateStamp``).
    """

    def __init__(self, fs: FileSystem):
        self._fs = fs

    def read(self, path: Path) -> dict[str, Any]:
        """Return the EXIF fields of an image, or an empty dict.

        A file that is not an image, or has no EXIF block, is not an error
        here: the EXIF strategy simply fails and the chain moves on.
        """
        try:
            with self._fs.open(path) as handle, Image.open(handle) as img:
                exif = img.getexif()
                fields = self._named(exif, ExifTags.TAGS)
                fields.update(self._named(exif.get_ifd(ExifTags.IFD.Exif), ExifTags.TAGS))
                fields.update(self._named(exif.get_ifd(ExifTags.IFD.GPSInfo), ExifTags.GPSTAGS))
        except (OSError, UnidentifiedImageError, ValueError, SyntaxError) as e:
            logger.debug("No EXIF for %s: %s", path, e)
            return {}

        original = fields.get(_DATETIME_ORIGINAL)
        subsec = fields.get(_SUBSEC_ORIGINAL)
        if isinstance(original, str) and isinstance(subsec, str) and subsec.isdigit():
            fields["SubSecDateTimeOriginal"] = f"{original}.{subsec}"
        return fields

    @staticmethod
    def _named(tags: Any, names: dict[int, str]) -> dict[str, Any]:
        result = {}
        for tag_id, value in tags.items():
            name = names.get(tag_id)
            if name is None:
                continue
            value = _clean(value)
            if value is not None:
                result[name] = value
        return result


def parse_exif_field(fields: dict[str, Any], strategy: ExifStrategy) -> Optional[datetime]:
    """Parse one configured field. None if it is missing or does not match."""
    value = fields.get(strategy.field_name)
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.strptime(value, strategy.layout)
    except ValueError:
        return None


# (path, lazily read EXIF fields) -> result or None
_Strategy = Callable[[Path, Callable[[], dict[str, Any]]], Optional[DateStrategyResult]]


class DateResolver:
    """Runs the configured date strategy chain for a file.

    The chain halts at the first strategy that yields a timestamp. Within
    the EXIF strategy, each configured field is tried in order.
    """

    def __init__(
        self,
        fs: FileSystem,
        date_config: DateConfig,
        exif_reader: Optional[ExifReader] = None,
    ):
        """Initialize the resolver.

        Args:
            fs: File system for stat() calls.
            date_config: Validated strategy order and EXIF field layouts.
            exif_reader: EXIF source; defaults to a Pillow reader over fs.
        """
        self._fs = fs
        self._exif_reader = exif_reader or ExifReader(fs)
        self._exif_strategies = date_config.exif_strategies
        builders: dict[DateStrategy, _Strategy] = {
            DateStrategy.EXIF: self._from_exif,
            DateStrategy.MOD_TIME: self._from_mod_time,
            DateStrategy.CREATION_TIME: self._from_creation_time,
        }
        # Resolved once; the hot path never looks at strategy names.
        self._chain = [builders[name] for name in date_config.strategy_order]

    def resolve(self, path: Path) -> DateStrategyResult:
        """Return the first timestamp any strategy produces.

        Raises:
            NoDateFound: Every strategy failed.
        """
        cache: dict[str, dict[str, Any]] = {}

        def exif_fields() -> dict[str, Any]:
            if "fields" not in cache:
                cache["fields"] = self._exif_reader.read(path)
            return cache["fields"]

        last_error: Optional[Exception] = None
        for strategy in self._chain:
            try:
                result = strategy(path, exif_fields)
            except OSError as e:
                last_error = e
                continue
            if result is not None:
                return result
        raise NoDateFound(path, last_error or "no date strategy succeeded")

    def _from_exif(self, path: Path, exif_fields: Callable[[], dict[str, Any]]) -> Optional[DateStrategyResult]:
        fields = exif_fields()
        if not fields:
            return None
        for strategy in self._exif_strategies:
            parsed = parse_exif_field(fields, strategy)
            if parsed is not None:
                return DateStrategyResult(DateStrategy.EXIF, parsed, strategy.field_name)
        return None

    def _from_mod_time(self, path: Path, _exif: Callable[[], dict[str, Any]]) -> Optional[DateStrategyResult]:
        return DateStrategyResult(DateStrategy.MOD_TIME, self._fs.stat(path).mod_time)

    def _from_creation_time(self, path: Path, _exif: Callable[[], dict[str, Any]]) -> Optional[DateStrategyResult]:
        st = self._fs.stat(path)
        # Without a recorded birth time, modification time is the best guess.
        return DateStrategyResult(DateStrategy.CREATION_TIME, st.birth_time or st.mod_time)
