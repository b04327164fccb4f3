"""Tests for duplicate grouping and survivor selection."""
import pytest
from datetime import datetime
from pathlib import Path

from imagemanager.core.config import KeepStrategy
from imagemanager.core.errors import ConfigurationError, FingerprintMismatchError
from imagemanager.core.models import FileRecord
from imagemanager.services.grouper import DuplicateGrouper
from imagemanager.services.keep import (
    KeepOldest,
    KeepSelector,
    KeepShortestPath,
    keep_selector_for,
)


def _record(path: str, fingerprint="aa", size=10, mod_time=datetime(2020, 1, 1)) -> FileRecord:
    return FileRecord(path=Path(path), size=size, mod_time=mod_time, fingerprint=fingerprint)


class TestDuplicateGrouper:
    """Tests for DuplicateGrouper."""

    def test_groups_by_fingerprint(self):
        """Test records sharing a fingerprint form one group."""
        records = [
            _record("/p/a.jpg", "aa"),
            _record("/p/b.jpg", "bb"),
            _record("/p/c.jpg", "aa"),
        ]

        groups = DuplicateGrouper().group(records)

        assert len(groups) == 1
        assert [m.path.name for m in groups[0].members] == ["a.jpg", "c.jpg"]

    def test_singletons_dropped(self):
        """Test a unique fingerprint is never reported."""
        assert DuplicateGrouper().group([_record("/p/a.jpg", "aa")]) == []

    def test_first_observed_order(self):
        """Test groups come out in the order their fingerprint first appears."""
        records = [
            _record("/p/1.jpg", "zz"),
            _record("/p/2.jpg", "aa"),
            _record("/p/3.jpg", "aa"),
            _record("/p/4.jpg", "zz"),
        ]

        groups = DuplicateGrouper().group(records)

        assert [g.fingerprint for g in groups] == ["zz", "aa"]

    def test_threshold_floor(self):
        """Test threshold raises the minimum group size."""
        records = [
            _record("/p/a.jpg", "aa"),
            _record("/p/b.jpg", "aa"),
            _record("/p/c.jpg", "bb"),
            _record("/p/d.jpg", "bb"),
            _record("/p/e.jpg", "bb"),
        ]

        groups = DuplicateGrouper(threshold=2).group(records)

        assert [g.fingerprint for g in groups] == ["bb"]

    def test_threshold_zero_still_needs_pairs(self):
        """Test a group always needs two members."""
        grouper = DuplicateGrouper(threshold=0)
        assert grouper.min_group_size == 2
        assert grouper.group([_record("/p/a.jpg")]) == []

    def test_negative_threshold(self):
        """Test a negative threshold is rejected."""
        with pytest.raises(ValueError):
            DuplicateGrouper(threshold=-1)

    def test_unfingerprinted_ignored(self):
        """Test records without a fingerprint are skipped."""
        records = [_record("/p/a.jpg", None), _record("/p/b.jpg", None)]
        assert DuplicateGrouper().group(records) == []

    def test_size_mismatch(self):
        """Test equal fingerprints with different sizes raise."""
        records = [_record("/p/a.jpg", "aa", size=10), _record("/p/b.jpg", "aa", size=11)]

        with pytest.raises(FingerprintMismatchError):
            DuplicateGrouper().group(records)

    def test_survivor_uses_selector(self):
        """Test the survivor comes from the configured selector."""
        records = [
            _record("/p/deep/nested/a.jpg", "aa", mod_time=datetime(2010, 1, 1)),
            _record("/p/b.jpg", "aa", mod_time=datetime(2020, 1, 1)),
        ]

        oldest = DuplicateGrouper(KeepOldest()).group(records)[0]
        shortest = DuplicateGrouper(KeepShortestPath()).group(records)[0]

        assert oldest.survivor.path == Path("/p/deep/nested/a.jpg")
        assert shortest.survivor.path == Path("/p/b.jpg")


class TestKeepSelectors:
    """Tests for survivor selection."""

    def test_oldest(self):
        """Test keepOldest picks the earliest modification time."""
        members = [
            _record("/p/a.jpg", mod_time=datetime(2021, 1, 1)),
            _record("/p/b.jpg", mod_time=datetime(2019, 1, 1)),
        ]
        assert KeepOldest().select(members).path == Path("/p/b.jpg")

    def test_oldest_tie_breaks_on_path(self):
        """Test equal times fall back to the smallest path."""
        members = [_record("/p/z.jpg"), _record("/p/m.jpg"), _record("/p/q.jpg")]
        assert KeepOldest().select(members).path == Path("/p/m.jpg")

    def test_shortest_path(self):
        """Test keepShortestPath picks the shortest path."""
        members = [_record("/p/long_name.jpg"), _record("/p/s.jpg")]
        assert KeepShortestPath().select(members).path == Path("/p/s.jpg")

    def test_shortest_path_tie(self):
        """Test equal lengths fall back to the smallest path."""
        members = [_record("/p/b.jpg"), _record("/p/a.jpg")]
        assert KeepShortestPath().select(members).path == Path("/p/a.jpg")

    def test_selection_independent_of_order(self):
        """Test the same survivor whatever order members arrive in."""
        members = [_record("/p/c.jpg"), _record("/p/a.jpg"), _record("/p/b.jpg")]
        assert KeepOldest().select(members) == KeepOldest().select(list(reversed(members)))

    def test_empty(self):
        """Test an empty group has no survivor."""
        with pytest.raises(ValueError):
            KeepOldest().select([])

    def test_factory(self):
        """Test names resolve into selector variants."""
        assert isinstance(keep_selector_for("keepOldest"), KeepOldest)
        assert isinstance(keep_selector_for(KeepStrategy.KEEP_SHORTEST_PATH), KeepShortestPath)

    def test_factory_unknown(self):
        """Test an unknown name is a configuration error."""
        with pytest.raises(ConfigurationError):
            keep_selector_for("keepLargest")

    def test_base_is_abstract(self):
        """Test the base selector cannot be used without a sort key."""
        with pytest.raises(TypeError):
            KeepSelector()
