"""Exception hierarchy for imagemanager.

Every error carries a stable message ``key`` and a ``params`` dict so the
presentation layer can translate it. The English ``str()`` form is only a
fallback for logs and tracebacks.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Optional


class ImageManagerError(Exception):
    """Base exception for all imagemanager errors."""

    key = "Error"

    def __init__(self, message: str, **params: Any):
        super().__init__(message)
        self.params: dict[str, Any] = params


class ConfigurationError(ImageManagerError):
    """Invalid or incomplete configuration. Fatal, raised before any file I/O."""

    key = "ConfigurationError"


class FileError(ImageManagerError):
    """Base for per-file failures that are recorded and skipped."""

    key = "FileError"

    def __init__(self, path: Path, cause: object, message: Optional[str] = None):
        self.path = Path(path)
        self.cause = cause
        super().__init__(
            message or f"{self.path}: {cause}",
            path=str(self.path),
            cause=str(cause),
        )


class ReadError(FileError):
    """A file could not be read (or stopped being readable mid-stream)."""

    key = "ReadError"


class StatError(FileError):
    """File metadata could not be read."""

    key = "StatError"


class NoDateFound(FileError):
    """Every configured date strategy failed for a file."""

    key = "NoDateFound"

    def __init__(self, path: Path, cause: object = "no date strategy succeeded"):
        super().__init__(path, cause)


class RelocationError(FileError):
    """A rename, move or copy failed."""

    key = "RelocationError"

    def __init__(self, path: Path, target: Path, cause: object):
        self.target = Path(target)
        super().__init__(path, cause, message=f"{path} -> {target}: {cause}")
        self.params["target"] = str(self.target)


class FingerprintMismatchError(ImageManagerError):
    """Two records share a fingerprint but differ in size.

    This means the hashing is broken, not that the files are duplicates.
    """

    key = "FingerprintMismatch"

    def __init__(self, fingerprint: str, first: Path, second: Path):
        super().__init__(
            f"fingerprint {fingerprint[:16]} shared by files of different size: "
            f"{first}, {second}",
            fingerprint=fingerprint,
            first=str(first),
            second=str(second),
        )
