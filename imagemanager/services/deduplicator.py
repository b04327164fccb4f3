"""Duplicate detection and resolution service."""
from __future__ import annotations

import logging
from typing import Optional

from ..core.config import DedupConfig
from ..core.models import DuplicateGroup, FileRecord, ItemState, TaskOutcome
from ..core.protocols import FileSystem, Localizer, ProgressReporter
from ..engines.fingerprint import FingerprintComputer
from .actions import ActionExecutor
from .grouper import DuplicateGrouper
from .keep import keep_selector_for
from .pool import StopToken, WorkerPool
from .scanner import DirectoryScanner, group_by_size
from .task import TaskRunner

logger = logging.getLogger(__name__)


class Deduplicator(TaskRunner):
    """Finds byte-identical images and resolves each group.

    Pipeline:
    1. Scan: collect image files below the source (trash excluded)
    2. Size filter: only files sharing a size can be duplicates
    3. Fingerprint: SHA-256 per file on the worker pool
    4. Group: exact fingerprint equality, one survivor per group
    5. Act: dry-run log or move every non-survivor to the trash
    """

    def __init__(
        self,
        config: DedupConfig,
        fs: FileSystem,
        reporter: ProgressReporter,
        localizer: Optional[Localizer] = None,
        stop: Optional[StopToken] = None,
        fingerprinter: Optional[FingerprintComputer] = None,
    ):
        """Initialize the deduplicator.

        Args:
            config: Validated run configuration.
            fs: File system capability set.
            reporter: Log sink with progress phases.
            localizer: Message catalog; English by default.
            stop: Token the caller sets to interrupt the run.
            fingerprinter: Content hasher; SHA-256 over fs by default.
        """
        super().__init__(fs, reporter, localizer, stop)
        self._config = config
        self._fingerprinter = fingerprinter or FingerprintComputer(fs)
        self._grouper = DuplicateGrouper(keep_selector_for(config.keep_strategy), config.threshold)

    def run(self) -> TaskOutcome:
        """Run one deduplication task.

        Returns:
            The finalized outcome. Per-file failures are in ``errors``.

        Raises:
            ConfigurationError: The source directory does not exist.
        """
        cfg = self._config
        self._require_source(cfg.source, "deduplicator.source")
        outcome = TaskOutcome()

        self._reporter.info(self._t("DedupProcessStarting", source=cfg.source))
        if not cfg.dry_run:
            self._reporter.info(self._t("MoveToTrashSetup", trash=cfg.trash_path))

        records = self._scan(outcome)
        if not records:
            self._reporter.info(self._t("NoImageFilesFound", source=cfg.source))
            # The dry-run log is rewritten even when there is nothing to plan.
            self._resolve([], outcome)
            return self._finish(outcome, "DedupProcessCompleted")

        candidates = group_by_size(records)
        self._reporter.debug(self._t("SizeCandidates", count=len(candidates)))
        fingerprinted = self._fingerprint(candidates, outcome)
        if self._stop.stopped:
            return self._finish(outcome, "DedupProcessCompleted")

        # Completion order is arbitrary; group in scan order.
        fingerprinted.sort(key=lambda r: str(r.path))
        groups = self._grouper.group(fingerprinted)
        logger.debug("%d groups from %d fingerprinted files", len(groups), len(fingerprinted))
        outcome.duplicates_found = len(groups)
        if groups:
            self._reporter.info(self._t("PotentialDuplicateGroupsFound", count=len(groups)))
        else:
            self._reporter.info(self._t("SummaryNoDuplicates"))

        self._resolve(groups, outcome)
        return self._finish(outcome, "DedupProcessCompleted")

    def _scan(self, outcome: TaskOutcome) -> list[FileRecord]:
        cfg = self._config
        self._reporter.info(self._t("ScanningForFiles", source=cfg.source))
        scanner = DirectoryScanner(self._fs, cfg.allowed_extensions, exclude=(cfg.trash_path,))
        result = scanner.scan(cfg.source)
        for failure in result.failures:
            self._fail(outcome, failure.path, failure)
        if result.skipped_empty:
            self._reporter.debug(self._t("EmptyFilesSkipped", count=result.skipped_empty))
        outcome.processed_count = len(result.records)
        self._reporter.info(self._t("FilesFound", count=len(result.records)))
        return result.records

    def _fingerprint(self, candidates: list[FileRecord], outcome: TaskOutcome) -> list[FileRecord]:
        pool = WorkerPool(self._config.workers, self._stop)
        fingerprinted: list[FileRecord] = []

        self._reporter.start_phase(self._t("HashingStarted"), total=len(candidates))
        try:
            for result in pool.run(candidates, self._fingerprinter.fingerprint_record):
                if result.ok:
                    fingerprinted.append(result.value)
                else:
                    self._fail(outcome, result.item.path, result.error)
                self._reporter.advance_phase()
        finally:
            self._reporter.end_phase()

        self._reporter.debug(self._t("HashingFinished", count=len(fingerprinted)))
        return fingerprinted

    def _resolve(self, groups: list[DuplicateGroup], outcome: TaskOutcome) -> None:
        cfg = self._config
        with self._dry_run_log(cfg.dry_run, cfg.dry_run_log) as log:
            executor = ActionExecutor(
                self._fs,
                cfg.action_strategy,
                dry_run_log=log,
                trash_dir=cfg.trash_path,
            )
            for group in groups:
                if self._stop.stopped:
                    break
                self._reporter.debug(self._t(
                    "DuplicateGroup",
                    count=group.count,
                    fingerprint=group.fingerprint[:12],
                    survivor=group.survivor.path,
                ))
                for result in executor.resolve_group(group):
                    self._record(outcome, result)
                    if result.state in (ItemState.RELOCATED, ItemState.LOGGED):
                        outcome.bytes_reclaimed += result.record.size
                    if result.state is ItemState.RELOCATED:
                        self._reporter.debug(self._t(
                            "MovingFile", path=result.record.path, target=result.destination,
                        ))
