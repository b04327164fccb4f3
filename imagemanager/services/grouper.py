"""Duplicate grouping by exact fingerprint equality."""
from __future__ import annotations

from typing import Iterable

from ..core.errors import FingerprintMismatchError
from ..core.models import DuplicateGroup, FileRecord
from .keep import KeepOldest, KeepSelector


class DuplicateGrouper:
    """Groups records that share a content fingerprint.

    ``threshold`` is a floor on group size, not a similarity distance: a
    fingerprint is reported when it is shared by at least
    ``max(2, threshold + 1)`` files. With the default of 1, any two
    identical files form a group.
    """

    def __init__(self, selector: KeepSelector | None = None, threshold: int = 1):
        """Initialize the grouper.

        Args:
            selector: Picks the survivor of each group.
            threshold: Minimum number of extra copies before a group counts.
        """
        if threshold < 0:
            raise ValueError("threshold must be non-negative")
        self._selector = selector or KeepOldest()
        self._threshold = threshold

    @property
    def min_group_size(self) -> int:
        return max(2, self._threshold + 1)

    def group(self, records: Iterable[FileRecord]) -> list[DuplicateGroup]:
        """Group records by fingerprint.

        Args:
            records: Fingerprinted records in scan order. Records without a
                fingerprint are ignored.

        Returns:
            Groups in first-observed order of their fingerprint; members
            keep input order.

        Raises:
            FingerprintMismatchError: Equal fingerprints with different sizes.
        """
        buckets: dict[str, list[FileRecord]] = {}

        for record in records:
            if record.fingerprint is None:
                continue
            bucket = buckets.setdefault(record.fingerprint, [])
            if bucket and bucket[0].size != record.size:
                raise FingerprintMismatchError(record.fingerprint, bucket[0].path, record.path)
            bucket.append(record)

        return [
            DuplicateGroup(
                fingerprint=fingerprint,
                members=tuple(members),
                survivor=self._selector.select(members),
            )
            for fingerprint, members in buckets.items()
            if len(members) >= self.min_group_size
        ]
