"""Soft checks that warn about legal but questionable settings."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """Inspect the raw configuration dictionary and collect warning messages."""
    warning_messages = []

    search = config_dict.get("search") or {}
    if isinstance(search, dict):
        if search.get("search_depth") == "deep":
            warning_messages.append(
                "search_depth 'deep' is slower and consumes more provider credits per search"
            )
        days = search.get("default_days_ago")
        if isinstance(days, int) and days > 30:
            warning_messages.append(
                f"default_days_ago ({days}) is wide; older postings are often already filled"
            )

    ingestion = config_dict.get("ingestion") or {}
    if isinstance(ingestion, dict):
        workers = ingestion.get("max_workers")
        if isinstance(workers, int) and workers > 8:
            warning_messages.append(
                f"max_workers ({workers}) above 8 mostly adds lock contention on SQLite"
            )

    scoring = config_dict.get("scoring") or {}
    if isinstance(scoring, dict):
        keywords = scoring.get("exclude_keywords") or []
        if isinstance(keywords, list):
            normalized = [k.strip().lower() for k in keywords if isinstance(k, str)]
            duplicates = sorted({k for k in normalized if normalized.count(k) > 1})
            if duplicates:
                warning_messages.append(
                    f"Duplicate exclude_keywords will be deduplicated: {', '.join(duplicates)}"
                )
            if len(set(normalized)) > 4:
                warning_messages.append(
                    "More than 4 exclude_keywords can exhaust the 10 point risk cap on a single job"
                )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit each message through the warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
