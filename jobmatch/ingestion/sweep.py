"""Opt-in deactivation of postings that have not been seen for a while.

Ingestion never deactivates anything; a job that stops appearing in results
stays active until a sweep marks it otherwise. Re-ingesting a swept job
reactivates it.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List

from jobmatch.logging import get_logger
from jobmatch.persistence.database import get_session
from jobmatch.persistence.repositories import JobRepository
from jobmatch.utils.timestamps import utc_now

logger = get_logger(__name__, component="sweeper")


@dataclass
class SweepResult:
    """Jobs deactivated by one sweep."""

    owner_id: str
    cutoff: datetime
    deactivated: int = 0
    job_keys: List[str] = field(default_factory=list)


class StalenessSweeper:
    """Marks an owner's jobs inactive when ``last_seen_at`` is older than N days."""

    def __init__(self, session_factory: Callable = get_session, clock: Callable = utc_now):
        self.session_factory = session_factory
        self.clock = clock

    def sweep(self, owner_id: str, older_than_days: int) -> SweepResult:
        """
        Deactivate the owner's jobs not seen in the last ``older_than_days`` days.

        Raises:
            ValueError: If ``older_than_days`` is less than 1
        """
        if older_than_days < 1:
            raise ValueError("older_than_days must be at least 1")

        cutoff = self.clock() - timedelta(days=older_than_days)
        with self.session_factory() as session:
            repo = JobRepository(session)
            stale_keys = [job.job_key for job in repo.get_stale_jobs(owner_id, cutoff)]
            deactivated = repo.deactivate(stale_keys)

        logger.info(
            f"Deactivated {deactivated} stale jobs",
            extra={
                "event": "sweeper.run.completed",
                "owner_id": owner_id,
                "older_than_days": older_than_days,
                "deactivated": deactivated,
            },
        )
        return SweepResult(owner_id=owner_id, cutoff=cutoff, deactivated=deactivated, job_keys=stale_keys)
