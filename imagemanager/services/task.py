"""Shared plumbing for the dedup and sort orchestrators."""
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from ..core.errors import ConfigurationError
from ..core.models import ActionResult, ItemState, TaskOutcome
from ..core.protocols import FileSystem, Localizer, ProgressReporter
from ..i18n.localizer import CatalogLocalizer, describe_error
from .dryrun_log import DryRunLog
from .pool import StopToken


class TaskRunner:
    """Base class holding the collaborators every task needs.

    All dependencies are passed in explicitly; there is no global state.
    Everything here runs on the collecting thread only.
    """

    def __init__(
        self,
        fs: FileSystem,
        reporter: ProgressReporter,
        localizer: Optional[Localizer] = None,
        stop: Optional[StopToken] = None,
    ):
        self._fs = fs
        self._reporter = reporter
        self._localizer = localizer or CatalogLocalizer()
        self._stop = stop or StopToken()

    def _t(self, key: str, **params: Any) -> str:
        return self._localizer.translate(key, params)

    def _require_source(self, source: Path, setting: str) -> None:
        """The source must exist before any other file I/O happens."""
        if not self._fs.exists(source):
            raise ConfigurationError(
                f"Source directory does not exist: {source}",
                setting=setting,
                value=str(source),
            )

    def _fail(self, outcome: TaskOutcome, path: Path, error: Exception) -> None:
        outcome.record_error(path, error)
        self._reporter.error(describe_error(self._localizer, error))

    def _record(self, outcome: TaskOutcome, result: ActionResult) -> None:
        outcome.record_action(result)
        if result.state is ItemState.FAILED:
            self._reporter.error(describe_error(self._localizer, result.error))

    @contextmanager
    def _dry_run_log(self, enabled: bool, path: Path) -> Iterator[Optional[DryRunLog]]:
        if not enabled:
            yield None
            return
        with DryRunLog(self._fs, path) as log:
            yield log
        self._reporter.info(self._t("DryRunLogWritten", rows=log.rows, path=path))

    def _finish(self, outcome: TaskOutcome, completed_key: str) -> TaskOutcome:
        if self._stop.stopped:
            outcome.cancelled = True
            self._reporter.warning(self._t("ProcessInterrupted"))
        outcome.finalize()
        self._reporter.info(self._t(
            "Summary",
            processed=outcome.processed_count,
            duplicates=outcome.duplicates_found,
            reclaimed=outcome.bytes_reclaimed,
            relocated=outcome.relocated,
            errors=outcome.error_count,
        ))
        if not outcome.cancelled:
            self._reporter.info(self._t(completed_key))
        return outcome
