"""Deterministic keys for stored jobs."""

import hashlib


def normalize_url(url: str) -> str:
    """Canonical form of a posting URL used for identity.

    Only surrounding whitespace and a trailing slash are removed; query strings
    are kept because some boards encode the posting id there.
    """
    cleaned = (url or "").strip()
    if cleaned.endswith("/") and cleaned.count("/") > 3:
        cleaned = cleaned.rstrip("/")
    return cleaned


def compute_job_key(owner_id: str, url: str) -> str:
    """SHA-256 of ``owner_id:url``, used as the job's primary key.

    Jobs are partitioned per owner, so the same posting URL seen by two users
    yields two different keys.

    Example:
        >>> len(compute_job_key("user-1", "https://jobs.lever.co/acme/abc"))
        64
    """
    composite_key = f"{owner_id.strip()}:{normalize_url(url)}"
    return hash_string(composite_key)


def hash_string(value: str) -> str:
    """Hex SHA-256 digest of a string."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()
