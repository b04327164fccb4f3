"""Tests for the Rich console reporter and the application log."""
import io
import logging

from pathlib import Path
from rich.console import Console

from imagemanager.core.models import TaskOutcome
from imagemanager.logging.rich_logger import (
    APPLICATION_LOGGER,
    QuietLogger,
    RichLogger,
    close_application_log,
    open_application_log,
)


def _console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, force_terminal=False, width=120), buffer


class TestRichLogger:
    """Tests for RichLogger."""

    def test_info(self):
        """Test info messages are printed."""
        console, buffer = _console()
        RichLogger(console=console).info("Found 3 image files")
        assert "Found 3 image files" in buffer.getvalue()

    def test_quiet_hides_info(self):
        """Test quiet mode hides info but keeps errors."""
        console, buffer = _console()
        logger = RichLogger(quiet=True, console=console)

        logger.info("hidden")
        logger.error("shown")

        assert "hidden" not in buffer.getvalue()
        assert "shown" in buffer.getvalue()

    def test_debug_needs_verbose(self):
        """Test debug output only appears in verbose mode."""
        console, buffer = _console()
        RichLogger(console=console).debug("quiet detail")
        RichLogger(verbose=True, console=console).debug("loud detail")

        assert "quiet detail" not in buffer.getvalue()
        assert "loud detail" in buffer.getvalue()

    def test_markup_escaped(self):
        """Test file names with brackets are printed literally."""
        console, buffer = _console()
        RichLogger(console=console).warning("/photos/[2020] trip/a.jpg")
        assert "[2020] trip" in buffer.getvalue()

    def test_phase(self):
        """Test a phase can be started, advanced and ended."""
        console, _ = _console()
        with RichLogger(console=console) as logger:
            logger.start_phase("Fingerprinting", total=2)
            logger.advance_phase()
            logger.advance_phase()
        logger.end_phase()

    def test_outcome_table(self):
        """Test the outcome table lists the counters."""
        console, buffer = _console()
        outcome = TaskOutcome(processed_count=4, duplicates_found=1, bytes_reclaimed=2000)
        outcome.cancelled = True

        RichLogger(console=console).print_outcome(outcome, "Deduplication finished")

        text = buffer.getvalue()
        assert "Deduplication finished" in text
        assert "2.0 kB" in text
        assert "interrupted" in text

    def test_mirror(self):
        """Test messages are mirrored into a stdlib logger."""
        console, _ = _console()
        records = []

        class _Collect(logging.Handler):
            def emit(self, record):
                records.append((record.levelno, record.getMessage()))

        mirror = logging.getLogger("imagemanager.tests.mirror")
        mirror.setLevel(logging.DEBUG)
        mirror.propagate = False
        handler = _Collect()
        mirror.addHandler(handler)
        try:
            logger = RichLogger(console=console, mirror=mirror)
            logger.info("hello")
            logger.error("broken")
        finally:
            mirror.removeHandler(handler)

        assert records == [(logging.INFO, "hello"), (logging.ERROR, "broken")]


class TestQuietLogger:
    """Tests for QuietLogger."""

    def test_errors_to_stderr(self, capsys):
        """Test only warnings and errors are printed."""
        logger = QuietLogger()
        logger.info("nope")
        logger.warning("careful")
        logger.error("failed")

        err = capsys.readouterr().err
        assert "nope" not in err
        assert "WARNING: careful" in err
        assert "ERROR: failed" in err


class TestApplicationLog:
    """Tests for the application log file."""

    def test_writes_file(self, tmp_path: Path):
        """Test messages land in the log file."""
        path = tmp_path / "logs" / "application.log"
        log = open_application_log(path)
        try:
            log.info("run started")
            log.debug("not at info level")
        finally:
            close_application_log(log)

        text = path.read_text(encoding="utf-8")
        assert "[INFO] run started" in text
        assert "not at info level" not in text

    def test_reopen_replaces_handler(self, tmp_path: Path):
        """Test reopening does not duplicate handlers."""
        log = open_application_log(tmp_path / "a.log")
        log = open_application_log(tmp_path / "b.log", verbose=True)
        try:
            assert len(log.handlers) == 1
            assert log.name == APPLICATION_LOGGER
            assert log.level == logging.DEBUG
        finally:
            close_application_log(log)
        assert log.handlers == []

    def test_close_none(self):
        """Test closing without a log is a no-op."""
        close_application_log(None)
