"""Fingerprint and metadata engines."""
from .fingerprint import FingerprintComputer
from .metadata import DateResolver, ExifReader

__all__ = [
    "FingerprintComputer",
    "DateResolver",
    "ExifReader",
]
