"""Data models for ingestion and rescoring results."""

from dataclasses import dataclass, field
from typing import List, Optional

from jobmatch.domain.models import Job, JobMatch


@dataclass
class IngestedJob:
    """A job as stored by one ingestion, with its full match when scored."""

    job: Job
    match: Optional[JobMatch] = None

    def to_dict(self) -> dict:
        return {
            "job": self.job.model_dump(mode="json"),
            "match": self.match.model_dump(mode="json") if self.match else None,
        }


@dataclass
class IngestionResult:
    """
    Outcome of one ``ingest_and_score`` call.

    ``jobs_found`` and ``jobs_upserted`` are deliberately separate numbers: a
    shortfall between them is how partial failure shows up.

    Attributes:
        query: Query string sent to the search provider
        jobs_found: Raw results returned by the provider
        jobs_upserted: Records written successfully (duplicates in the batch count)
        jobs_failed: Records that could not be written or scored
        jobs_new: Jobs inserted for the first time
        jobs_updated: Jobs that already existed and were overwritten
        matches_scored: JobMatch rows written
        jobs: One entry per distinct stored job, in result order
        duration_seconds: Wall time of the whole call
        similarity_error: Message of a similarity outage hit during scoring
    """

    query: str = ""
    jobs_found: int = 0
    jobs_upserted: int = 0
    jobs_failed: int = 0
    jobs_new: int = 0
    jobs_updated: int = 0
    matches_scored: int = 0
    jobs: List[IngestedJob] = field(default_factory=list)
    duration_seconds: float = 0.0
    similarity_error: Optional[str] = None

    @property
    def had_errors(self) -> bool:
        return self.jobs_failed > 0 or self.similarity_error is not None

    @property
    def message(self) -> str:
        if self.jobs_found == 0:
            return "No jobs found for this search"
        text = f"Found {self.jobs_found} jobs, upserted {self.jobs_upserted} new/updated jobs"
        if self.jobs_failed:
            text += f" ({self.jobs_failed} failed)"
        return text

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "jobs_found": self.jobs_found,
            "jobs_upserted": self.jobs_upserted,
            "jobs_failed": self.jobs_failed,
            "jobs_new": self.jobs_new,
            "jobs_updated": self.jobs_updated,
            "matches_scored": self.matches_scored,
            "had_errors": self.had_errors,
            "message": self.message,
            "duration_seconds": round(self.duration_seconds, 3),
            "jobs": [item.to_dict() for item in self.jobs],
        }


@dataclass
class RescoreResult:
    """
    Outcome of rescoring an owner's active jobs.

    Attributes:
        jobs_considered: Active jobs found for the owner
        matches_scored: Matches written
        jobs_failed: Jobs whose scoring or write failed
        resume_found: False when the owner has no usable resume (nothing is scored)
        duration_seconds: Wall time of the rescore
    """

    jobs_considered: int = 0
    matches_scored: int = 0
    jobs_failed: int = 0
    resume_found: bool = True
    duration_seconds: float = 0.0

    @property
    def had_errors(self) -> bool:
        return self.jobs_failed > 0

    def to_dict(self) -> dict:
        return {
            "jobs_considered": self.jobs_considered,
            "matches_scored": self.matches_scored,
            "jobs_failed": self.jobs_failed,
            "resume_found": self.resume_found,
            "had_errors": self.had_errors,
            "duration_seconds": round(self.duration_seconds, 3),
        }
