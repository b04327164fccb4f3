"""CLI with subcommands: dedup and sort."""
from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from .core.config import DEDUP_ACTIONS, SORT_ACTIONS, KeepStrategy
from .core.errors import ConfigurationError
from .core.models import TaskOutcome
from .core.protocols import Localizer
from .i18n.localizer import SUPPORTED_LANGUAGES, CatalogLocalizer, describe_error
from .infrastructure.filesystem import LocalFileSystem
from .logging.rich_logger import (
    QuietLogger,
    RichLogger,
    close_application_log,
    open_application_log,
)
from .services.deduplicator import Deduplicator
from .services.pool import StopToken
from .services.sorter import Sorter
from .settings import Settings, load_settings

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130


def create_parser(localizer: Optional[Localizer] = None) -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    t = (localizer or CatalogLocalizer()).translate
    parser = argparse.ArgumentParser(prog="imagemanager", description=t("AppDesc"))

    # Global options
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress non-essential output")
    parser.add_argument("--config", type=Path, help=t("CustomConfigFlagDesc"))
    parser.add_argument("--lang", choices=SUPPORTED_LANGUAGES, help=t("LanguageFlagDesc"))

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ============ DEDUP command ============
    dedup_parser = subparsers.add_parser("dedup", help=t("DedupCommandDesc"))
    dedup_parser.add_argument("--source", type=Path, help="Directory to deduplicate")
    dedup_parser.add_argument(
        "--action",
        choices=sorted(a.value for a in DEDUP_ACTIONS),
        help="dryRun writes a CSV log; moveToTrash moves duplicates into the trash",
    )
    dedup_parser.add_argument(
        "--keep",
        choices=[k.value for k in KeepStrategy],
        help="Which copy of a duplicate to keep",
    )
    dedup_parser.add_argument("--trash", type=Path, help="Trash directory (default: SOURCE/.trash)")
    dedup_parser.add_argument("--workers", type=int, help="Worker threads (0 = one per CPU)")
    dedup_parser.add_argument("--threshold", type=int, help="Minimum extra copies before a group counts")

    # ============ SORT command ============
    sort_parser = subparsers.add_parser("sort", help=t("SortCommandDesc"))
    sort_parser.add_argument("--source", type=Path, help="Directory to sort")
    sort_parser.add_argument("--destination", type=Path, help="Root of the YYYY/MM/DD folders")
    sort_parser.add_argument(
        "--action",
        choices=sorted(a.value for a in SORT_ACTIONS),
        help="dryRun writes a CSV log; copy copies files into place",
    )
    sort_parser.add_argument("--workers", type=int, help="Worker threads (0 = one per CPU)")

    return parser


def _peek_language(argv: Optional[list[str]]) -> Optional[str]:
    """Find --lang before full parsing so help text is translated too."""
    peek = argparse.ArgumentParser(add_help=False)
    peek.add_argument("--lang", choices=SUPPORTED_LANGUAGES)
    known, _ = peek.parse_known_args(argv)
    return known.lang


def _configure_library_logging(verbose: bool) -> None:
    """Route module-level debug records to the console in verbose mode."""
    log = logging.getLogger("imagemanager")
    if verbose and not any(isinstance(h, RichHandler) for h in log.handlers):
        log.addHandler(RichHandler(show_path=False))
        log.setLevel(logging.DEBUG)


def cmd_dedup(args: argparse.Namespace, settings: Settings, fs, reporter, localizer, stop: StopToken) -> TaskOutcome:
    """Run the dedup command."""
    config = settings.dedup_config(
        source=args.source,
        action_strategy=args.action,
        keep_strategy=args.keep,
        trash_path=args.trash,
        workers=args.workers,
        threshold=args.threshold,
    )
    reporter.print_config({
        "Source": config.source,
        "Action": config.action_strategy.value,
        "Keep": config.keep_strategy.value,
        "Trash": config.trash_path,
        "Workers": config.workers,
        "Threshold": config.threshold,
    })
    outcome = Deduplicator(config, fs, reporter, localizer, stop).run()
    reporter.print_outcome(outcome, localizer.translate("DedupProcessCompleted"))
    return outcome


def cmd_sort(args: argparse.Namespace, settings: Settings, fs, reporter, localizer, stop: StopToken) -> TaskOutcome:
    """Run the sort command."""
    config = settings.sort_config(
        source=args.source,
        destination=args.destination,
        action_strategy=args.action,
        workers=args.workers,
    )
    reporter.print_config({
        "Source": config.source,
        "Destination": config.destination,
        "Action": config.action_strategy.value,
        "Workers": config.workers,
        "Date order": ", ".join(s.value for s in config.date.strategy_order),
    })
    outcome = Sorter(config, fs, reporter, localizer, stop).run()
    reporter.print_outcome(outcome, localizer.translate("SortProcessCompleted"))
    return outcome


COMMANDS = {
    "dedup": cmd_dedup,
    "sort": cmd_sort,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser(CatalogLocalizer(_peek_language(argv) or "en"))
    args = parser.parse_args(argv)

    # No command specified - show help
    if not args.command:
        parser.print_help()
        return EXIT_OK

    bootstrap = QuietLogger() if args.quiet else RichLogger(verbose=args.verbose)
    try:
        settings = load_settings(args.config)
        localizer = CatalogLocalizer(args.lang or settings.language)
    except ConfigurationError as e:
        bootstrap.error(describe_error(CatalogLocalizer(), e))
        return EXIT_CONFIG

    mirror = open_application_log(settings.files.application_log, verbose=args.verbose)
    if args.quiet:
        reporter = QuietLogger(mirror=mirror)
    else:
        reporter = RichLogger(verbose=args.verbose, mirror=mirror)
    _configure_library_logging(args.verbose)

    # First Ctrl+C stops dispatching new work; a second one aborts.
    stop = StopToken()

    def _on_sigint(signum, frame):
        if stop.stopped:
            raise KeyboardInterrupt
        stop.stop()

    previous = signal.signal(signal.SIGINT, _on_sigint)
    reporter.print_header(f"imagemanager {args.command}")
    try:
        outcome = COMMANDS[args.command](args, settings, LocalFileSystem(), reporter, localizer, stop)
        return EXIT_INTERRUPTED if outcome.cancelled else EXIT_OK
    except ConfigurationError as e:
        reporter.error(describe_error(localizer, e))
        return EXIT_CONFIG
    except KeyboardInterrupt:
        # Clean exit on Ctrl+C - no stack trace
        return EXIT_INTERRUPTED
    except Exception as e:
        reporter.error(describe_error(localizer, e))
        if args.verbose:
            import traceback
            traceback.print_exc()
        return EXIT_FAILURE
    finally:
        signal.signal(signal.SIGINT, previous)
        close_application_log(mirror)


if __name__ == "__main__":
    sys.exit(main())
