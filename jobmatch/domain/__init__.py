"""Domain models."""

from .models import (
    Application,
    Job,
    JobMatch,
    ParsedJob,
    RemoteType,
    Resume,
    ResumeProject,
    ScoreBreakdown,
    VisaSponsorship,
)

__all__ = [
    "Application",
    "Job",
    "JobMatch",
    "ParsedJob",
    "RemoteType",
    "Resume",
    "ResumeProject",
    "ScoreBreakdown",
    "VisaSponsorship",
]
