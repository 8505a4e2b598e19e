"""Utility functions for hashing and UTC time handling."""

from .hashing import compute_job_key, hash_string, normalize_url
from .timestamps import ensure_utc, format_timestamp, parse_timestamp, utc_now

__all__ = [
    "compute_job_key",
    "hash_string",
    "normalize_url",
    "utc_now",
    "ensure_utc",
    "format_timestamp",
    "parse_timestamp",
]
