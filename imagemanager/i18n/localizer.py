"""Message catalogs for user-facing output.

Messages are looked up by a stable key. Translated text is for display
only; nothing in the program branches on it.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

from ..core.errors import ConfigurationError

DEFAULT_LANGUAGE = "en"

CATALOGS: dict[str, dict[str, str]] = {
    "en": {
        # Task flow
        "DedupProcessStarting": "Starting deduplication in {source}",
        "DedupProcessCompleted": "Deduplication finished",
        "SortProcessStarting": "Sorting {source} into {destination}",
        "SortProcessCompleted": "Sorting finished",
        "ScanningForFiles": "Scanning {source} for image files",
        "FilesFound": "Found {count} image files",
        "NoImageFilesFound": "No image files found in {source}",
        "EmptyFilesSkipped": "Skipped {count} empty files",
        "SizeCandidates": "{count} files share their size with another file",
        "HashingStarted": "Fingerprinting",
        "HashingFinished": "Fingerprinted {count} files",
        "DatingStarted": "Reading dates",
        "DatingFinished": "Dated {count} files",
        "PotentialDuplicateGroupsFound": "Found {count} duplicate groups",
        "SummaryNoDuplicates": "No duplicates found",
        "DuplicateGroup": "{count} copies of {fingerprint}, keeping {survivor}",
        "MoveToTrashSetup": "Duplicates will be moved to {trash}",
        "MovingFile": "Moved {path} to {target}",
        "FileCopied": "Copied {path} to {target}",
        "AlreadySorted": "{path} is already sorted at {target}",
        "DryRunLogWritten": "Dry run: {rows} planned actions written to {path}",
        "ProcessInterrupted": "Interrupted, reporting partial results",
        "Summary": (
            "Processed {processed} files: {duplicates} duplicate groups, "
            "{reclaimed} bytes reclaimable, {relocated} relocated, {errors} errors"
        ),
        # Errors
        "Error": "{message}",
        "ConfigurationError": "Configuration error: {message}",
        "FileError": "{path}: {cause}",
        "ReadError": "Could not read {path}: {cause}",
        "StatError": "Could not read file info for {path}: {cause}",
        "NoDateFound": "No date found for {path}, using the unsorted folder",
        "RelocationError": "Could not move {path} to {target}: {cause}",
        "FingerprintMismatch": "Fingerprint {fingerprint} is shared by files of different size: {first}, {second}",
        # CLI
        "AppDesc": "Find duplicate images and sort images into dated folders.",
        "DedupCommandDesc": "Find duplicate images and move extra copies to the trash.",
        "SortCommandDesc": "Copy images into YYYY/MM/DD folders by the date they were taken.",
        "CustomConfigFlagDesc": "Path to a YAML configuration file",
        "LanguageFlagDesc": "Language for messages (en, de)",
    },
    "de": {
        "DedupProcessStarting": "Starte Duplikatsuche in {source}",
        "DedupProcessCompleted": "Duplikatsuche abgeschlossen",
        "SortProcessStarting": "Sortiere {source} nach {destination}",
        "SortProcessCompleted": "Sortierung abgeschlossen",
        "ScanningForFiles": "Durchsuche {source} nach Bilddateien",
        "FilesFound": "{count} Bilddateien gefunden",
        "NoImageFilesFound": "Keine Bilddateien in {source} gefunden",
        "EmptyFilesSkipped": "{count} leere Dateien übersprungen",
        "SizeCandidates": "{count} Dateien teilen ihre Größe mit einer anderen Datei",
        "HashingStarted": "Berechne Fingerabdrücke",
        "HashingFinished": "Fingerabdrücke für {count} Dateien berechnet",
        "DatingStarted": "Lese Aufnahmedaten",
        "DatingFinished": "Datum für {count} Dateien bestimmt",
        "PotentialDuplicateGroupsFound": "{count} Duplikatgruppen gefunden",
        "SummaryNoDuplicates": "Keine Duplikate gefunden",
        "DuplicateGroup": "{count} Kopien von {fingerprint}, behalte {survivor}",
        "MoveToTrashSetup": "Duplikate werden nach {trash} verschoben",
        "MovingFile": "{path} nach {target} verschoben",
        "FileCopied": "{path} nach {target} kopiert",
        "AlreadySorted": "{path} liegt bereits in {target}",
        "DryRunLogWritten": "Probelauf: {rows} geplante Aktionen in {path} geschrieben",
        "ProcessInterrupted": "Abgebrochen, Teilergebnisse folgen",
        "Summary": (
            "{processed} Dateien verarbeitet: {duplicates} Duplikatgruppen, "
            "{reclaimed} Bytes freigebbar, {relocated} verschoben, {errors} Fehler"
        ),
        "Error": "{message}",
        "ConfigurationError": "Konfigurationsfehler: {message}",
        "FileError": "{path}: {cause}",
        "ReadError": "{path} konnte nicht gelesen werden: {cause}",
        "StatError": "Dateiinformationen für {path} nicht lesbar: {cause}",
        "NoDateFound": "Kein Datum für {path} gefunden, verwende den Ordner unsorted",
        "RelocationError": "{path} konnte nicht nach {target} verschoben werden: {cause}",
        "FingerprintMismatch": "Fingerabdruck {fingerprint} gehört zu Dateien unterschiedlicher Größe: {first}, {second}",
        "AppDesc": "Findet doppelte Bilder und sortiert Bilder in Datumsordner.",
        "DedupCommandDesc": "Doppelte Bilder finden und zusätzliche Kopien in den Papierkorb verschieben.",
        "SortCommandDesc": "Bilder nach Aufnahmedatum in JJJJ/MM/TT-Ordner kopieren.",
        "CustomConfigFlagDesc": "Pfad zu einer YAML-Konfigurationsdatei",
        "LanguageFlagDesc": "Sprache der Meldungen (en, de)",
    },
}

SUPPORTED_LANGUAGES = tuple(CATALOGS)


class _Params(dict):
    """Leaves unknown placeholders in place instead of raising KeyError."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


class CatalogLocalizer:
    """Localizer backed by the in-package catalogs.

    Lookup order: the selected language, then English, then the key itself.
    """

    def __init__(self, language: str = DEFAULT_LANGUAGE):
        language = (language or DEFAULT_LANGUAGE).lower()
        if language not in CATALOGS:
            raise ConfigurationError(
                f"Unsupported language: {language!r}",
                setting="language",
                value=language,
            )
        self._language = language
        self._catalog = CATALOGS[language]
        self._fallback = CATALOGS[DEFAULT_LANGUAGE]

    @property
    def language(self) -> str:
        return self._language

    def translate(self, key: str, params: Optional[Mapping[str, Any]] = None) -> str:
        template = self._catalog.get(key) or self._fallback.get(key)
        if template is None:
            return key
        return template.format_map(_Params(params or {}))


def describe_error(localizer, error: BaseException) -> str:
    """Translate an exception using its key and params, when it has them."""
    key = getattr(error, "key", None)
    if key is None:
        return str(error)
    params = {"message": str(error), **getattr(error, "params", {})}
    return localizer.translate(key, params)
