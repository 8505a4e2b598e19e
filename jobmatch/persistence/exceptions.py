"""Persistence layer exceptions.

Every error raised by the repositories derives from PersistenceError, so the
ingestion engine can count a failed record with a single except clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Database URL invalid, unreachable, or not initialised yet."""

    pass


class RecordNotFoundError(PersistenceError):
    """A record the caller required does not exist.

    Lookups that may legitimately miss return None instead.
    """

    pass


class DataIntegrityError(PersistenceError):
    """A uniqueness, foreign key or check constraint was violated.

    During ingestion this usually means another URL already claimed the same
    ``(owner, ats, external_id)`` posting.
    """

    pass
