"""ORM models and conversions to and from domain models.

Timestamps are stored as fixed-width ISO-8601 UTC strings and list fields as
JSON, which keeps the schema portable between SQLite and PostgreSQL.
"""

import logging

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    inspect,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from jobmatch.domain.models import (
    Application,
    Job,
    JobMatch,
    Resume,
    ResumeProject,
    ScoreBreakdown,
)
from jobmatch.utils.timestamps import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

Base = declarative_base()


class JobModel(Base):
    """ORM model for the jobs table."""

    __tablename__ = "jobs"

    job_key = Column(String(64), primary_key=True, nullable=False)
    owner_id = Column(String(255), nullable=False)
    url = Column(Text, nullable=False)

    title = Column(Text, nullable=False)
    company = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    remote_type = Column(String(16), nullable=False)
    description_raw = Column(Text, nullable=False, default="")
    description_clean = Column(Text, nullable=False, default="")
    required_skills = Column(JSON, nullable=False, default=list)
    visa_sponsorship = Column(String(16), nullable=False)
    visa_keywords_found = Column(JSON, nullable=False, default=list)
    ats_type = Column(String(50), nullable=False)
    external_id = Column(String(255), nullable=True)
    years_experience = Column(Integer, nullable=True)
    salary_range = Column(String(100), nullable=True)
    job_source = Column(String(50), nullable=False)

    is_active = Column(Boolean, nullable=False, default=True)
    match_score = Column(Integer, nullable=True)

    posted_at = Column(String(50), nullable=True)
    created_at = Column(String(50), nullable=False)
    last_seen_at = Column(String(50), nullable=False)

    __table_args__ = (
        UniqueConstraint("owner_id", "url", name="uq_jobs_owner_url"),
        # NULL external ids never collide, so unknown vendors are unconstrained
        UniqueConstraint("owner_id", "ats_type", "external_id", name="uq_jobs_owner_source_external"),
        CheckConstraint("match_score IS NULL OR (match_score >= 0 AND match_score <= 100)", name="ck_jobs_match_score"),
        Index("idx_jobs_owner_last_seen", "owner_id", "last_seen_at"),
        Index("idx_jobs_owner_active", "owner_id", "is_active"),
    )

    def to_domain(self) -> Job:
        return Job(
            job_key=self.job_key,
            owner_id=self.owner_id,
            url=self.url,
            title=self.title,
            company=self.company,
            location=self.location,
            remote_type=self.remote_type,
            description_raw=self.description_raw or "",
            description_clean=self.description_clean or "",
            required_skills=list(self.required_skills or []),
            visa_sponsorship=self.visa_sponsorship,
            visa_keywords_found=list(self.visa_keywords_found or []),
            ats_type=self.ats_type,
            external_id=self.external_id,
            years_experience=self.years_experience,
            salary_range=self.salary_range,
            job_source=self.job_source,
            is_active=bool(self.is_active),
            match_score=self.match_score,
            posted_at=parse_timestamp(self.posted_at),
            created_at=parse_timestamp(self.created_at),
            last_seen_at=parse_timestamp(self.last_seen_at),
        )

    @classmethod
    def from_domain(cls, job: Job) -> "JobModel":
        return cls(
            job_key=job.job_key,
            owner_id=job.owner_id,
            url=job.url,
            title=job.title,
            company=job.company,
            location=job.location,
            remote_type=job.remote_type,
            description_raw=job.description_raw,
            description_clean=job.description_clean,
            required_skills=list(job.required_skills),
            visa_sponsorship=job.visa_sponsorship,
            visa_keywords_found=list(job.visa_keywords_found),
            ats_type=job.ats_type,
            external_id=job.external_id,
            years_experience=job.years_experience,
            salary_range=job.salary_range,
            job_source=job.job_source,
            is_active=job.is_active,
            match_score=job.match_score,
            posted_at=format_timestamp(job.posted_at),
            created_at=format_timestamp(job.created_at),
            last_seen_at=format_timestamp(job.last_seen_at),
        )


class JobMatchModel(Base):
    """ORM model for job_matches: one row per (owner, job)."""

    __tablename__ = "job_matches"

    owner_id = Column(String(255), primary_key=True, nullable=False)
    job_key = Column(
        String(64), ForeignKey("jobs.job_key", ondelete="CASCADE"), primary_key=True, nullable=False
    )

    score_total = Column(Integer, nullable=False)
    skill_overlap = Column(Integer, nullable=False, default=0)
    semantic_similarity = Column(Integer, nullable=False, default=0)
    project_relevance = Column(Integer, nullable=False, default=0)
    risk_penalty = Column(Integer, nullable=False, default=0)

    matching_skills = Column(JSON, nullable=False, default=list)
    missing_skills = Column(JSON, nullable=False, default=list)
    matching_bullets = Column(JSON, nullable=False, default=list)
    recommended_projects = Column(JSON, nullable=False, default=list)
    why_match = Column(Text, nullable=False, default="")
    risk_flags = Column(JSON, nullable=False, default=list)
    scored_at = Column(String(50), nullable=True)

    __table_args__ = (
        CheckConstraint("score_total >= 0 AND score_total <= 100", name="ck_job_matches_score_total"),
        Index("idx_job_matches_owner_score", "owner_id", "score_total"),
    )

    def to_domain(self) -> JobMatch:
        return JobMatch(
            owner_id=self.owner_id,
            job_key=self.job_key,
            score_total=self.score_total,
            score_breakdown=ScoreBreakdown(
                skill_overlap=self.skill_overlap,
                semantic_similarity=self.semantic_similarity,
                project_relevance=self.project_relevance,
                risk_penalty=self.risk_penalty,
            ),
            matching_skills=list(self.matching_skills or []),
            missing_skills=list(self.missing_skills or []),
            matching_bullets=list(self.matching_bullets or []),
            recommended_projects=list(self.recommended_projects or []),
            why_match=self.why_match or "",
            risk_flags=list(self.risk_flags or []),
            scored_at=parse_timestamp(self.scored_at),
        )

    @staticmethod
    def values_from_domain(match: JobMatch) -> dict:
        """Column values for an insert or upsert statement."""
        breakdown = match.score_breakdown
        return {
            "owner_id": match.owner_id,
            "job_key": match.job_key,
            "score_total": match.score_total,
            "skill_overlap": breakdown.skill_overlap,
            "semantic_similarity": breakdown.semantic_similarity,
            "project_relevance": breakdown.project_relevance,
            "risk_penalty": breakdown.risk_penalty,
            "matching_skills": list(match.matching_skills),
            "missing_skills": list(match.missing_skills),
            "matching_bullets": list(match.matching_bullets),
            "recommended_projects": list(match.recommended_projects),
            "why_match": match.why_match,
            "risk_flags": list(match.risk_flags),
            "scored_at": format_timestamp(match.scored_at),
        }


class ResumeModel(Base):
    """ORM model for resumes: the primary resume per owner."""

    __tablename__ = "resumes"

    owner_id = Column(String(255), primary_key=True, nullable=False)
    raw_text = Column(Text, nullable=False, default="")
    skills = Column(JSON, nullable=False, default=list)
    bullets = Column(JSON, nullable=False, default=list)
    projects = Column(JSON, nullable=False, default=list)
    updated_at = Column(String(50), nullable=True)

    def to_domain(self) -> Resume:
        return Resume(
            owner_id=self.owner_id,
            raw_text=self.raw_text or "",
            skills=list(self.skills or []),
            bullets=list(self.bullets or []),
            projects=[ResumeProject.model_validate(p) for p in (self.projects or [])],
            updated_at=parse_timestamp(self.updated_at),
        )

    @classmethod
    def from_domain(cls, resume: Resume) -> "ResumeModel":
        return cls(
            owner_id=resume.owner_id,
            raw_text=resume.raw_text,
            skills=list(resume.skills),
            bullets=list(resume.bullets),
            projects=[p.model_dump() for p in resume.projects],
            updated_at=format_timestamp(resume.updated_at),
        )


class ApplicationModel(Base):
    """ORM model for applications, written by the surrounding application."""

    __tablename__ = "applications"

    owner_id = Column(String(255), primary_key=True, nullable=False)
    job_key = Column(
        String(64), ForeignKey("jobs.job_key", ondelete="CASCADE"), primary_key=True, nullable=False
    )
    status = Column(String(50), nullable=False, default="saved")
    updated_at = Column(String(50), nullable=True)

    def to_domain(self) -> Application:
        return Application(
            owner_id=self.owner_id,
            job_key=self.job_key,
            status=self.status,
            updated_at=parse_timestamp(self.updated_at),
        )


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes that do not exist yet. Safe to call repeatedly."""
    logger.info("Creating database schema if not exists")
    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(sorted(tables))}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
