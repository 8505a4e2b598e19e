"""Repositories: data access that speaks domain models.

Writes that must be race-free use the database's native
``INSERT ... ON CONFLICT DO UPDATE`` so concurrent ingestion of the same URL
resolves through the unique constraint rather than a read-then-write check.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from jobmatch.domain.models import Application, Job, JobMatch, ParsedJob, Resume
from jobmatch.utils.hashing import compute_job_key, normalize_url
from jobmatch.utils.timestamps import format_timestamp, utc_now

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import ApplicationModel, JobMatchModel, JobModel, ResumeModel

logger = logging.getLogger(__name__)

# Columns overwritten when an existing (owner, url) row is observed again.
# created_at is deliberately absent.
JOB_MUTABLE_COLUMNS = (
    "title",
    "company",
    "location",
    "remote_type",
    "description_raw",
    "description_clean",
    "required_skills",
    "visa_sponsorship",
    "visa_keywords_found",
    "ats_type",
    "external_id",
    "years_experience",
    "salary_range",
    "job_source",
    "posted_at",
    "last_seen_at",
    "is_active",
)


def _insert_for(session: Session):
    """Dialect-specific ``insert`` construct that supports ON CONFLICT."""
    dialect = session.get_bind().dialect.name
    if dialect == "sqlite":
        return sqlite.insert
    if dialect == "postgresql":
        return postgresql.insert
    raise PersistenceError(f"Atomic upsert is not supported on the '{dialect}' dialect")


@dataclass
class UpsertOutcome:
    """Persisted job plus whether this write created it."""

    job: Job
    is_new: bool


# (job, match, application) as returned by JobRepository.list_views
JobView = Tuple[Job, Optional[JobMatch], Optional[Application]]


class JobRepository:
    """Repository for per-owner job records."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_key(self, job_key: str) -> Optional[Job]:
        """Job by primary key, or None."""
        try:
            job_model = self.session.execute(
                select(JobModel).where(JobModel.job_key == job_key)
            ).scalar_one_or_none()
            return job_model.to_domain() if job_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving job by key {job_key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve job: {e}") from e

    def find_by_owner_and_url(self, owner_id: str, url: str) -> Optional[Job]:
        """Job stored for ``owner_id`` under ``url``, or None."""
        return self.get_by_key(compute_job_key(owner_id, url))

    def upsert(
        self,
        owner_id: str,
        parsed: ParsedJob,
        seen_at: datetime,
        match_score: Optional[int] = None,
    ) -> UpsertOutcome:
        """Insert the job or overwrite the existing ``(owner_id, url)`` row.

        A single ``INSERT ... ON CONFLICT (owner_id, url) DO UPDATE`` statement
        does the work. On conflict every descriptive field is replaced with the
        latest observation, ``last_seen_at`` moves to ``seen_at``, the job is
        reactivated and ``created_at`` is left alone. ``match_score`` is only
        replaced when a new value is given.

        Args:
            owner_id: Owner partition key.
            parsed: Latest observation of the posting.
            seen_at: Observation time; becomes ``created_at`` for new rows.
            match_score: Preliminary score, or None to keep the stored one.

        Raises:
            DataIntegrityError: If another URL already holds the same
                ``(owner, ats_type, external_id)``.
            PersistenceError: On any other database error.
        """
        url = normalize_url(parsed.url)
        job_key = compute_job_key(owner_id, url)
        seen_str = format_timestamp(seen_at)
        values = {
            "job_key": job_key,
            "owner_id": owner_id,
            "url": url,
            "title": parsed.title,
            "company": parsed.company,
            "location": parsed.location,
            "remote_type": parsed.remote_type,
            "description_raw": parsed.description_raw,
            "description_clean": parsed.description_clean,
            "required_skills": list(parsed.required_skills),
            "visa_sponsorship": parsed.visa_sponsorship,
            "visa_keywords_found": list(parsed.visa_keywords_found),
            "ats_type": parsed.ats_type,
            "external_id": parsed.external_id,
            "years_experience": parsed.years_experience,
            "salary_range": parsed.salary_range,
            "job_source": parsed.job_source,
            "posted_at": format_timestamp(parsed.posted_at),
            "is_active": True,
            "match_score": match_score,
            "created_at": seen_str,
            "last_seen_at": seen_str,
        }

        try:
            stmt = _insert_for(self.session)(JobModel).values(**values)
            set_ = {name: stmt.excluded[name] for name in JOB_MUTABLE_COLUMNS}
            set_["match_score"] = func.coalesce(stmt.excluded.match_score, JobModel.match_score)
            stmt = stmt.on_conflict_do_update(index_elements=["owner_id", "url"], set_=set_)
            self.session.execute(stmt)

            job_model = self.session.execute(
                select(JobModel)
                .where(JobModel.job_key == job_key)
                .execution_options(populate_existing=True)
            ).scalar_one()
        except IntegrityError as e:
            logger.error(f"Integrity error upserting job {parsed.url}: {e}")
            raise DataIntegrityError(f"Failed to upsert job due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting job {parsed.url}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert job: {e}") from e

        # created_at only equals this observation's timestamp when the row was inserted now
        return UpsertOutcome(job=job_model.to_domain(), is_new=job_model.created_at == seen_str)

    def update_match_score(self, job_key: str, score: int) -> None:
        """Replace the stored score with the full match score.

        Raises:
            RecordNotFoundError: If ``job_key`` does not exist.
        """
        try:
            result = self.session.execute(
                update(JobModel).where(JobModel.job_key == job_key).values(match_score=score)
            )
        except SQLAlchemyError as e:
            logger.error(f"Error updating match score for job {job_key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update match score: {e}") from e
        if result.rowcount == 0:
            raise RecordNotFoundError(f"Job with key {job_key} not found")

    def list_for_owner(self, owner_id: str, active_only: bool = True) -> List[Job]:
        """Owner's jobs, most recently seen first."""
        try:
            stmt = select(JobModel).where(JobModel.owner_id == owner_id)
            if active_only:
                stmt = stmt.where(JobModel.is_active.is_(True))
            stmt = stmt.order_by(JobModel.last_seen_at.desc(), JobModel.job_key)
            return [m.to_domain() for m in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing jobs for owner {owner_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list jobs: {e}") from e

    def list_views(self, owner_id: str, active_only: bool = True) -> List[JobView]:
        """Owner's jobs joined with their match and application, if any."""
        try:
            stmt = (
                select(JobModel, JobMatchModel, ApplicationModel)
                .outerjoin(
                    JobMatchModel,
                    (JobMatchModel.job_key == JobModel.job_key)
                    & (JobMatchModel.owner_id == JobModel.owner_id),
                )
                .outerjoin(
                    ApplicationModel,
                    (ApplicationModel.job_key == JobModel.job_key)
                    & (ApplicationModel.owner_id == JobModel.owner_id),
                )
                .where(JobModel.owner_id == owner_id)
            )
            if active_only:
                stmt = stmt.where(JobModel.is_active.is_(True))
            stmt = stmt.order_by(JobModel.last_seen_at.desc(), JobModel.job_key)

            views: List[JobView] = []
            for job_model, match_model, application_model in self.session.execute(stmt).all():
                views.append(
                    (
                        job_model.to_domain(),
                        match_model.to_domain() if match_model else None,
                        application_model.to_domain() if application_model else None,
                    )
                )
            return views
        except SQLAlchemyError as e:
            logger.error(f"Error listing job views for owner {owner_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list jobs: {e}") from e

    def get_stale_jobs(self, owner_id: str, cutoff: datetime) -> List[Job]:
        """Active jobs not seen since ``cutoff``, oldest first."""
        try:
            stmt = (
                select(JobModel)
                .where(
                    JobModel.owner_id == owner_id,
                    JobModel.is_active.is_(True),
                    JobModel.last_seen_at < format_timestamp(cutoff),
                )
                .order_by(JobModel.last_seen_at.asc())
            )
            return [m.to_domain() for m in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving stale jobs: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve stale jobs: {e}") from e

    def deactivate(self, job_keys: List[str]) -> int:
        """Flip ``is_active`` off for the given jobs and return how many changed."""
        if not job_keys:
            return 0
        try:
            result = self.session.execute(
                update(JobModel)
                .where(JobModel.job_key.in_(job_keys), JobModel.is_active.is_(True))
                .values(is_active=False)
            )
            return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Error deactivating jobs: {e}", exc_info=True)
            raise PersistenceError(f"Failed to deactivate jobs: {e}") from e


class MatchRepository:
    """Repository for job match scores."""

    def __init__(self, session: Session):
        self.session = session

    def find_by_owner_and_job(self, owner_id: str, job_key: str) -> Optional[JobMatch]:
        try:
            match_model = self.session.get(JobMatchModel, {"owner_id": owner_id, "job_key": job_key})
            return match_model.to_domain() if match_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving match for job {job_key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve match: {e}") from e

    def upsert(self, match: JobMatch) -> JobMatch:
        """Insert the match or replace the existing one for ``(owner, job)``."""
        values = JobMatchModel.values_from_domain(match)
        if values["scored_at"] is None:
            values["scored_at"] = format_timestamp(utc_now())

        try:
            stmt = _insert_for(self.session)(JobMatchModel).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=["owner_id", "job_key"],
                set_={
                    name: stmt.excluded[name]
                    for name in values
                    if name not in ("owner_id", "job_key")
                },
            )
            self.session.execute(stmt)
            match_model = self.session.execute(
                select(JobMatchModel)
                .where(
                    JobMatchModel.owner_id == match.owner_id,
                    JobMatchModel.job_key == match.job_key,
                )
                .execution_options(populate_existing=True)
            ).scalar_one()
            return match_model.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error upserting match for job {match.job_key}: {e}")
            raise DataIntegrityError(f"Failed to upsert match due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting match for job {match.job_key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert match: {e}") from e

    def list_for_owner(self, owner_id: str) -> List[JobMatch]:
        """Owner's matches, best first."""
        try:
            stmt = (
                select(JobMatchModel)
                .where(JobMatchModel.owner_id == owner_id)
                .order_by(JobMatchModel.score_total.desc(), JobMatchModel.job_key)
            )
            return [m.to_domain() for m in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing matches for owner {owner_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list matches: {e}") from e


class ResumeRepository:
    """Repository for the owner's primary resume."""

    def __init__(self, session: Session):
        self.session = session

    def get_primary(self, owner_id: str) -> Optional[Resume]:
        try:
            resume_model = self.session.get(ResumeModel, owner_id)
            return resume_model.to_domain() if resume_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving resume for owner {owner_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve resume: {e}") from e

    def save(self, resume: Resume) -> Resume:
        """Store ``resume`` as the owner's primary resume, replacing any previous one."""
        if resume.updated_at is None:
            resume = resume.model_copy(update={"updated_at": utc_now()})
        try:
            resume_model = self.session.merge(ResumeModel.from_domain(resume))
            self.session.flush()
            return resume_model.to_domain()
        except SQLAlchemyError as e:
            logger.error(f"Error saving resume for owner {resume.owner_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to save resume: {e}") from e


class ApplicationRepository:
    """Read access to application pipeline state, plus a setter used by tooling."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, owner_id: str, job_key: str) -> Optional[Application]:
        try:
            application_model = self.session.get(
                ApplicationModel, {"owner_id": owner_id, "job_key": job_key}
            )
            return application_model.to_domain() if application_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving application for job {job_key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve application: {e}") from e

    def set_status(self, owner_id: str, job_key: str, status: str) -> Application:
        """Create or update the application for a job."""
        try:
            application_model = self.session.merge(
                ApplicationModel(
                    owner_id=owner_id,
                    job_key=job_key,
                    status=status,
                    updated_at=format_timestamp(utc_now()),
                )
            )
            self.session.flush()
            return application_model.to_domain()
        except IntegrityError as e:
            raise DataIntegrityError(f"Failed to save application: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error saving application for job {job_key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to save application: {e}") from e
