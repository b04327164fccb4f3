"""Date-based sorting service."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..core.config import ActionStrategy, SortConfig
from ..core.errors import NoDateFound
from ..core.models import DateStrategyResult, FileRecord, ItemState, TaskOutcome
from ..core.protocols import FileSystem, Localizer, ProgressReporter
from ..engines.metadata import DateResolver
from .actions import ActionExecutor, destination_for
from .pool import StopToken, WorkerPool
from .scanner import DirectoryScanner
from .task import TaskRunner

logger = logging.getLogger(__name__)

NO_DATE_REASON = "noDate"


def _describe(result: DateStrategyResult) -> str:
    if result.field_name:
        return f"{result.source.value}:{result.field_name}"
    return result.source.value


class Sorter(TaskRunner):
    """Copies images into ``destination/YYYY/MM/DD/`` by their date.

    Pipeline:
    1. Scan: collect image files below the source
    2. Date: run the date strategy chain per file on the worker pool
    3. Act: dry-run log or copy each file to its dated folder

    Files without any date go to ``destination/unsorted/`` and are also
    recorded as errors.
    """

    def __init__(
        self,
        config: SortConfig,
        fs: FileSystem,
        reporter: ProgressReporter,
        localizer: Optional[Localizer] = None,
        stop: Optional[StopToken] = None,
        resolver: Optional[DateResolver] = None,
    ):
        """Initialize the sorter.

        Args:
            config: Validated run configuration.
            fs: File system capability set.
            reporter: Log sink with progress phases.
            localizer: Message catalog; English by default.
            stop: Token the caller sets to interrupt the run.
            resolver: Date strategy chain; built from config by default.
        """
        super().__init__(fs, reporter, localizer, stop)
        self._config = config
        self._resolver = resolver or DateResolver(fs, config.date)

    def run(self) -> TaskOutcome:
        """Run one sort task.

        Raises:
            ConfigurationError: The source directory does not exist.
        """
        cfg = self._config
        self._require_source(cfg.source, "sorter.source")
        outcome = TaskOutcome()

        self._reporter.info(self._t("SortProcessStarting", source=cfg.source, destination=cfg.destination))
        records = self._scan(outcome)
        if not records:
            self._reporter.info(self._t("NoImageFilesFound", source=cfg.source))
            self._place([], outcome)
            return self._finish(outcome, "SortProcessCompleted")

        dated = self._date(records, outcome)
        if self._stop.stopped:
            return self._finish(outcome, "SortProcessCompleted")

        dated.sort(key=lambda pair: str(pair[0].path))
        self._place(dated, outcome)
        return self._finish(outcome, "SortProcessCompleted")

    def _scan(self, outcome: TaskOutcome) -> list[FileRecord]:
        cfg = self._config
        self._reporter.info(self._t("ScanningForFiles", source=cfg.source))
        # A destination inside the source must not be sorted into itself.
        scanner = DirectoryScanner(self._fs, cfg.allowed_extensions, exclude=(cfg.destination,))
        result = scanner.scan(cfg.source)
        for failure in result.failures:
            self._fail(outcome, failure.path, failure)
        if result.skipped_empty:
            self._reporter.debug(self._t("EmptyFilesSkipped", count=result.skipped_empty))
        outcome.processed_count = len(result.records)
        self._reporter.info(self._t("FilesFound", count=len(result.records)))
        return result.records

    def _resolve_date(self, record: FileRecord) -> tuple[FileRecord, DateStrategyResult]:
        result = self._resolver.resolve(record.path)
        return record.with_date(result.timestamp), result

    def _date(self, records: list[FileRecord], outcome: TaskOutcome) -> list[tuple[FileRecord, str]]:
        pool = WorkerPool(self._config.workers, self._stop)
        dated: list[tuple[FileRecord, str]] = []

        self._reporter.start_phase(self._t("DatingStarted"), total=len(records))
        try:
            for result in pool.run(records, self._resolve_date):
                if result.ok:
                    record, date = result.value
                    dated.append((record, _describe(date)))
                elif isinstance(result.error, NoDateFound):
                    # Still sorted, into the unsorted bucket.
                    self._fail(outcome, result.item.path, result.error)
                    dated.append((result.item, NO_DATE_REASON))
                else:
                    self._fail(outcome, result.item.path, result.error)
                self._reporter.advance_phase()
        finally:
            self._reporter.end_phase()

        self._reporter.debug(self._t("DatingFinished", count=len(dated)))
        return dated

    def _place(self, dated: list[tuple[FileRecord, str]], outcome: TaskOutcome) -> None:
        cfg = self._config
        with self._dry_run_log(cfg.dry_run, cfg.dry_run_log) as log:
            executor = ActionExecutor(
                self._fs,
                cfg.action_strategy,
                dry_run_log=log,
                dry_run_verb=ActionStrategy.COPY.value,
            )
            for record, reason in dated:
                if self._stop.stopped:
                    break
                destination: Path = destination_for(cfg.destination, record)
                result = executor.place(record, destination, reason)
                self._record(outcome, result)
                if result.state is ItemState.RELOCATED:
                    self._reporter.debug(self._t("FileCopied", path=record.path, target=result.destination))
                elif result.state is ItemState.SKIPPED:
                    self._reporter.debug(self._t("AlreadySorted", path=record.path, target=result.destination))
        logger.debug("Placed %d files under %s", len(dated), cfg.destination)
