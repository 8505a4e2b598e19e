"""Persistence layer: engine lifecycle, ORM schema and repositories.

Example usage:
    >>> from jobmatch.persistence import init_database, get_session, JobRepository
    >>> init_database("sqlite:///./data/jobmatch.db")
    >>> with get_session() as session:
    ...     jobs = JobRepository(session).list_for_owner("user-1")
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import (
    ApplicationRepository,
    JobRepository,
    JobView,
    MatchRepository,
    ResumeRepository,
    UpsertOutcome,
)

__all__ = [
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    "JobRepository",
    "MatchRepository",
    "ResumeRepository",
    "ApplicationRepository",
    "JobView",
    "UpsertOutcome",
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
