"""Tests for the sort service."""
import csv
import io

import pytest
from datetime import datetime
from pathlib import Path

from imagemanager.core.config import DateConfig, SortConfig
from imagemanager.core.errors import ConfigurationError, NoDateFound
from imagemanager.infrastructure.filesystem import LocalFileSystem
from imagemanager.services.pool import StopToken
from imagemanager.services.sorter import Sorter

from .fakes import MemoryFileSystem, RecordingReporter
from .test_metadata import DATETIME_ORIGINAL, jpeg_bytes

SOURCE = Path("/photos")
DEST = Path("/sorted")
LOG = Path("/logs/sort.csv")


def _run(fs, stop=None, date=None, destination=DEST, **kwargs):
    config = SortConfig(
        source=SOURCE,
        destination=destination,
        workers=2,
        dry_run_log=LOG,
        date=date or DateConfig(),
        **kwargs,
    )
    reporter = RecordingReporter()
    outcome = Sorter(config, fs, reporter, stop=stop).run()
    return outcome, reporter


def _log_rows(fs: MemoryFileSystem) -> list[list[str]]:
    return list(csv.reader(io.StringIO(fs.files[LOG].decode("utf-8"))))


class TestSorterCopy:
    """Tests for sorting with the copy action."""

    def test_mod_time_fallback(self):
        """Test a file without EXIF is filed by its modification date."""
        fs = MemoryFileSystem()
        fs.add_file("/photos/a.jpg", b"no exif here", mod_time=datetime(2018, 3, 4, 5, 6, 7))

        outcome, _ = _run(fs, action_strategy="copy")

        assert outcome.relocated == 1
        assert fs.files[Path("/sorted/2018/03/04/a.jpg")] == b"no exif here"
        assert Path("/photos/a.jpg") in fs.files
        assert outcome.errors == []

    def test_undated_goes_to_unsorted(self):
        """Test a file no strategy can date is copied to unsorted and reported."""
        fs = MemoryFileSystem()
        fs.add_file("/photos/a.jpg", b"not an image")

        outcome, reporter = _run(fs, action_strategy="copy", date=DateConfig(strategy_order=("exif",)))

        assert Path("/sorted/unsorted/a.jpg") in fs.files
        assert outcome.relocated == 1
        assert len(outcome.errors) == 1
        assert isinstance(outcome.errors[0].cause, NoDateFound)
        assert reporter.at("error")

    def test_rerun_skips_sorted_files(self):
        """Test a second run finds every file already in place."""
        fs = MemoryFileSystem()
        fs.add_file("/photos/a.jpg", b"aaa", mod_time=datetime(2018, 3, 4))
        fs.add_file("/photos/b.jpg", b"bbb", mod_time=datetime(2019, 5, 6))
        _run(fs, action_strategy="copy")
        before = fs.snapshot()

        outcome, _ = _run(fs, action_strategy="copy")

        assert outcome.relocated == 0
        assert outcome.errors == []
        assert fs.snapshot() == before

    def test_name_collision(self):
        """Test different files with one name on one day are both kept."""
        fs = MemoryFileSystem()
        day = datetime(2020, 7, 1)
        fs.add_file("/photos/x/img.jpg", b"first", mod_time=day)
        fs.add_file("/photos/y/img.jpg", b"second", mod_time=day)

        outcome, _ = _run(fs, action_strategy="copy")

        assert outcome.relocated == 2
        assert fs.files[Path("/sorted/2020/07/01/img.jpg")] == b"first"
        assert fs.files[Path("/sorted/2020/07/01/img_1.jpg")] == b"second"

    def test_rerun_after_name_collision(self):
        """Test a file placed under a numbered name is not copied again."""
        fs = MemoryFileSystem()
        day = datetime(2020, 7, 1)
        fs.add_file("/photos/x/img.jpg", b"first", mod_time=day)
        fs.add_file("/photos/y/img.jpg", b"second", mod_time=day)
        _run(fs, action_strategy="copy")
        before = fs.snapshot()

        outcome, _ = _run(fs, action_strategy="copy")

        assert outcome.relocated == 0
        assert fs.snapshot() == before
        assert Path("/sorted/2020/07/01/img_2.jpg") not in fs.files

    def test_destination_inside_source(self):
        """Test sorted copies are not picked up again by the scan."""
        fs = MemoryFileSystem()
        fs.add_file("/photos/a.jpg", b"aaa", mod_time=datetime(2018, 3, 4))
        _run(fs, action_strategy="copy", destination=SOURCE / "sorted")

        outcome, _ = _run(fs, action_strategy="copy", destination=SOURCE / "sorted")

        assert outcome.processed_count == 1
        assert outcome.relocated == 0


class TestSorterDryRun:
    """Tests for dry-run sorting."""

    def test_log_only(self):
        """Test a dry run writes planned copies and touches nothing else."""
        fs = MemoryFileSystem()
        fs.add_file("/photos/b.jpg", b"bbb", mod_time=datetime(2019, 5, 6))
        fs.add_file("/photos/a.jpg", b"aaa", mod_time=datetime(2018, 3, 4))
        before = fs.snapshot()

        outcome, _ = _run(fs)

        after = fs.snapshot()
        after.pop(LOG)
        assert after == before
        assert outcome.relocated == 0
        rows = _log_rows(fs)
        assert rows[1:] == [
            ["/photos/a.jpg", "copy", "/sorted/2018/03/04/a.jpg", "modTime"],
            ["/photos/b.jpg", "copy", "/sorted/2019/05/06/b.jpg", "modTime"],
        ]

    def test_emptied_source_rewrites_log(self):
        """Test a dry run over an emptied source leaves only the header."""
        fs = MemoryFileSystem()
        fs.add_file("/photos/a.jpg", b"aaa", mod_time=datetime(2018, 3, 4))
        _run(fs)
        fs.remove(Path("/photos/a.jpg"))

        _run(fs)

        assert _log_rows(fs) == [["path", "action", "survivor_or_destination", "reason"]]

    def test_no_date_reason(self):
        """Test undated files are logged with the unsorted destination."""
        fs = MemoryFileSystem()
        fs.add_file("/photos/a.jpg", b"not an image")

        _run(fs, date=DateConfig(strategy_order=("exif",)))

        assert _log_rows(fs)[1] == ["/photos/a.jpg", "copy", "/sorted/unsorted/a.jpg", "noDate"]


class TestSorterErrors:
    """Tests for error handling and cancellation."""

    def test_missing_source(self):
        """Test a missing source is a configuration error."""
        with pytest.raises(ConfigurationError):
            _run(MemoryFileSystem())

    def test_stat_failure_isolated(self):
        """Test an unreadable file is recorded and the others are sorted."""
        fs = MemoryFileSystem()
        fs.add_file("/photos/a.jpg", b"aaa", mod_time=datetime(2018, 3, 4))
        fs.add_file("/photos/b.jpg", b"bbb")
        fs.fail_stats.add(Path("/photos/b.jpg"))

        outcome, _ = _run(fs, action_strategy="copy")

        assert outcome.relocated == 1
        assert [e.path for e in outcome.errors] == [Path("/photos/b.jpg")]

    def test_stopped_run(self):
        """Test a stopped run is cancelled and copies nothing."""
        fs = MemoryFileSystem()
        fs.add_file("/photos/a.jpg", b"aaa")
        stop = StopToken()
        stop.stop()

        outcome, _ = _run(fs, stop=stop, action_strategy="copy")

        assert outcome.cancelled
        assert outcome.relocated == 0
        assert not any(p.is_relative_to(DEST) for p in fs.files)


class TestSorterLocal:
    """End-to-end run on a real directory."""

    def test_sorts_by_exif(self, tmp_path: Path):
        """Test a JPEG is filed by its DateTimeOriginal."""
        source = tmp_path / "camera"
        source.mkdir()
        (source / "shot.jpg").write_bytes(jpeg_bytes(exif_ifd={DATETIME_ORIGINAL: "2021:06:15 10:30:45"}))
        destination = tmp_path / "library"

        config = SortConfig(
            source=source,
            destination=destination,
            action_strategy="copy",
            workers=2,
            dry_run_log=tmp_path / "sort.csv",
        )
        outcome = Sorter(config, LocalFileSystem(), RecordingReporter()).run()

        assert outcome.relocated == 1
        assert (destination / "2021" / "06" / "15" / "shot.jpg").exists()
        assert (source / "shot.jpg").exists()
