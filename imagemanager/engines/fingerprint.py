"""Content fingerprinting.

A fingerprint is the SHA-256 digest of a file's bytes. Equal fingerprints
stand in for byte-for-byte equality.
"""
from __future__ import annotations

import hashlib
from pathlib import Path

from ..core.errors import ReadError
from ..core.models import FileRecord
from ..core.protocols import FileSystem

DEFAULT_CHUNK_SIZE = 1024 * 1024


class FingerprintComputer:
    """Streams files through SHA-256 in bounded chunks.

    Memory use depends on ``chunk_size`` only, never on the file size.
    Safe to share between threads: it holds no per-file state.
    """

    algorithm = "sha256"

    def __init__(self, fs: FileSystem, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """Initialize the computer.

        Args:
            fs: File system to read through.
            chunk_size: Bytes read per step.
        """
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self._fs = fs
        self._chunk_size = chunk_size

    def fingerprint(self, path: Path) -> tuple[str, int]:
        """Compute the fingerprint of one file.

        Returns:
            (hex digest, number of bytes hashed)

        Raises:
            ReadError: The file could not be opened or stopped being readable.
        """
        digest = hashlib.sha256()
        size = 0
        try:
            with self._fs.open(path) as handle:
                for chunk in iter(lambda: handle.read(self._chunk_size), b""):
                    digest.update(chunk)
                    size += len(chunk)
        except OSError as e:
            raise ReadError(path, e) from e
        return digest.hexdigest(), size

    def fingerprint_record(self, record: FileRecord) -> FileRecord:
        """Worker entry point: return a copy of record with its fingerprint set."""
        fingerprint, size = self.fingerprint(record.path)
        return record.with_fingerprint(fingerprint, size)
