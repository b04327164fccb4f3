"""Tests for content fingerprinting."""
import hashlib

import pytest
from datetime import datetime
from pathlib import Path

from imagemanager.core.errors import ReadError
from imagemanager.core.models import FileRecord
from imagemanager.engines.fingerprint import FingerprintComputer
from imagemanager.infrastructure.filesystem import LocalFileSystem

from .fakes import MemoryFileSystem


class TestFingerprintComputer:
    """Tests for SHA-256 fingerprinting."""

    @pytest.fixture
    def computer(self):
        return FingerprintComputer(LocalFileSystem())

    def test_matches_sha256(self, computer, tmp_path: Path):
        """Test the fingerprint is the SHA-256 hex digest."""
        path = tmp_path / "a.jpg"
        path.write_bytes(b"hello world")

        digest, size = computer.fingerprint(path)

        assert digest == hashlib.sha256(b"hello world").hexdigest()
        assert size == 11

    def test_identical_content(self, computer, tmp_path: Path):
        """Test equal bytes give equal fingerprints regardless of name."""
        (tmp_path / "a.jpg").write_bytes(b"x" * 5000)
        (tmp_path / "b.jpg").write_bytes(b"x" * 5000)

        assert computer.fingerprint(tmp_path / "a.jpg") == computer.fingerprint(tmp_path / "b.jpg")

    def test_different_content(self, computer, tmp_path: Path):
        """Test one differing byte changes the fingerprint."""
        (tmp_path / "a.jpg").write_bytes(b"x" * 5000)
        (tmp_path / "b.jpg").write_bytes(b"x" * 4999 + b"y")

        assert computer.fingerprint(tmp_path / "a.jpg")[0] != computer.fingerprint(tmp_path / "b.jpg")[0]

    def test_small_chunks(self, tmp_path: Path):
        """Test chunking does not change the digest."""
        data = bytes(range(256)) * 10
        path = tmp_path / "a.jpg"
        path.write_bytes(data)

        digest, size = FingerprintComputer(LocalFileSystem(), chunk_size=7).fingerprint(path)

        assert digest == hashlib.sha256(data).hexdigest()
        assert size == len(data)

    def test_missing_file(self, computer, tmp_path: Path):
        """Test a missing file raises ReadError."""
        with pytest.raises(ReadError) as exc_info:
            computer.fingerprint(tmp_path / "missing.jpg")

        assert exc_info.value.path == tmp_path / "missing.jpg"

    def test_unreadable_file(self):
        """Test a read failure raises ReadError."""
        fs = MemoryFileSystem()
        path = fs.add_file("/photos/a.jpg", b"data")
        fs.fail_reads.add(path)

        with pytest.raises(ReadError):
            FingerprintComputer(fs).fingerprint(path)

    def test_invalid_chunk_size(self):
        """Test chunk size must be positive."""
        with pytest.raises(ValueError):
            FingerprintComputer(MemoryFileSystem(), chunk_size=0)

    def test_fingerprint_record(self):
        """Test the worker entry point fills fingerprint and size."""
        fs = MemoryFileSystem()
        path = fs.add_file("/photos/a.jpg", b"abc")
        record = FileRecord(path=path, size=3, mod_time=datetime(2020, 1, 1))

        result = FingerprintComputer(fs).fingerprint_record(record)

        assert result.fingerprint == hashlib.sha256(b"abc").hexdigest()
        assert result.size == 3
        assert record.fingerprint is None
