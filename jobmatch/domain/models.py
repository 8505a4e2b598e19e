"""Core domain models for jobs, matches, resumes and applications.

- ParsedJob: structured record produced by the result parser
- Job: a ParsedJob persisted for one owner, with identity and tracking fields
- ScoreBreakdown / JobMatch: the scored relationship between a job and a resume
- Resume / ResumeProject: collaborator data read by the scorer
- Application: collaborator pipeline state, only ever read here
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from jobmatch.utils.timestamps import ensure_utc

MAX_DESCRIPTION_LENGTH = 50_000


class RemoteType(str, Enum):
    """Where the work happens."""

    REMOTE = "remote"
    HYBRID = "hybrid"
    ONSITE = "onsite"
    UNKNOWN = "unknown"


class VisaSponsorship(str, Enum):
    """Whether the posting offers visa sponsorship."""

    YES = "yes"
    NO = "no"
    UNKNOWN = "unknown"


class ParsedJob(BaseModel):
    """A search result converted into a structured job record."""

    url: str = Field(..., description="Posting URL, the identity of the job per owner")
    title: str = Field("Untitled Job", description="Job title")
    company: str = Field("Unknown Company", description="Hiring company")
    location: str = Field("Remote", description="Free-text location")
    remote_type: RemoteType = Field("onsite", description="remote / hybrid / onsite")
    description_raw: str = Field("", description="Content exactly as returned by the provider")
    description_clean: str = Field("", description="HTML-free, whitespace-collapsed description")
    required_skills: List[str] = Field(
        default_factory=list, description="Vocabulary skills found in the content"
    )
    visa_sponsorship: VisaSponsorship = Field("unknown")
    visa_keywords_found: List[str] = Field(default_factory=list)
    ats_type: str = Field("custom", description="ATS vendor hint derived from the URL")
    external_id: Optional[str] = Field(None, description="Vendor-specific posting id")
    posted_at: Optional[datetime] = Field(None, description="Approximate posting time (UTC)")
    years_experience: Optional[int] = Field(None, ge=0, le=50)
    salary_range: Optional[str] = None
    job_source: str = Field("tavily", description="Search provider that surfaced the job")

    @field_validator("description_raw", "description_clean")
    @classmethod
    def cap_description(cls, v: str) -> str:
        return v[:MAX_DESCRIPTION_LENGTH]

    @field_validator("posted_at")
    @classmethod
    def posted_at_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    model_config = {"use_enum_values": True}


class Job(ParsedJob):
    """A job posting stored for one owner.

    ``job_key`` is derived from ``(owner_id, url)``; ``created_at`` is set on the
    first ingestion and never changes, ``last_seen_at`` moves forward on every
    re-ingestion. ``match_score`` holds the preliminary skill score until the
    full scorer replaces it.
    """

    job_key: str = Field(..., description="SHA-256 of owner_id:url")
    owner_id: str = Field(..., min_length=1)
    is_active: bool = True
    match_score: Optional[int] = Field(None, ge=0, le=100)
    created_at: datetime
    last_seen_at: datetime

    @field_validator("created_at", "last_seen_at")
    @classmethod
    def tracking_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class ScoreBreakdown(BaseModel):
    """The four weighted components of a match score."""

    skill_overlap: int = Field(0, ge=0, le=35)
    semantic_similarity: int = Field(0, ge=0, le=35)
    project_relevance: int = Field(0, ge=0, le=20)
    risk_penalty: int = Field(0, ge=0, le=10)

    @property
    def positive_total(self) -> int:
        return self.skill_overlap + self.semantic_similarity + self.project_relevance

    @property
    def total(self) -> int:
        """Positive components minus the risk penalty, clamped to 0..100."""
        return max(0, min(100, self.positive_total - self.risk_penalty))


class JobMatch(BaseModel):
    """Scored relationship between one job and the owner's resume.

    At most one exists per ``(owner_id, job_key)``; rescoring replaces it.
    """

    owner_id: str
    job_key: str
    score_total: int = Field(0, ge=0, le=100)
    score_breakdown: ScoreBreakdown = Field(default_factory=ScoreBreakdown)
    matching_skills: List[str] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)
    matching_bullets: List[str] = Field(default_factory=list)
    recommended_projects: List[str] = Field(default_factory=list)
    why_match: str = ""
    risk_flags: List[str] = Field(default_factory=list)
    scored_at: Optional[datetime] = None

    @field_validator("scored_at")
    @classmethod
    def scored_at_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @model_validator(mode="after")
    def total_matches_breakdown(self):
        if self.score_total != self.score_breakdown.total:
            raise ValueError(
                f"score_total {self.score_total} does not match breakdown total "
                f"{self.score_breakdown.total}"
            )
        return self


class ResumeProject(BaseModel):
    """A project listed on a resume."""

    name: str
    description: str = ""
    technologies: List[str] = Field(default_factory=list)


class Resume(BaseModel):
    """The owner's primary resume as seen by the scorer."""

    owner_id: str
    raw_text: str = ""
    skills: List[str] = Field(default_factory=list)
    bullets: List[str] = Field(default_factory=list)
    projects: List[ResumeProject] = Field(default_factory=list)
    updated_at: Optional[datetime] = None

    @field_validator("skills", "bullets")
    @classmethod
    def drop_blank_entries(cls, v: List[str]) -> List[str]:
        return [item.strip() for item in v if item and item.strip()]

    @field_validator("updated_at")
    @classmethod
    def updated_at_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to score against."""
        return not self.skills and not self.bullets

    @property
    def narrative(self) -> str:
        """Bullets followed by project descriptions, one per line."""
        parts = list(self.bullets)
        for project in self.projects:
            text = f"{project.name}: {project.description}".strip(": ")
            if text:
                parts.append(text)
        return "\n".join(parts)


class Application(BaseModel):
    """Pipeline state for a job, owned by the surrounding application."""

    owner_id: str
    job_key: str
    status: str = "saved"
    updated_at: Optional[datetime] = None

    @field_validator("updated_at")
    @classmethod
    def updated_at_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)
