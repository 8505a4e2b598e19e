"""Ingestion: search, parse, upsert and score jobs for one owner.

This package provides:
- IngestionEngine: ``ingest_and_score`` and ``rescore``
- IngestionResult / IngestedJob / RescoreResult: reporting structures
- StalenessSweeper: opt-in deactivation of jobs that stopped appearing
- preliminary_score: ingestion-time skill overlap percentage
"""

from jobmatch.matching.scorer import preliminary_score

from .engine import IngestionEngine, resume_from_text
from .models import IngestedJob, IngestionResult, RescoreResult
from .sweep import StalenessSweeper, SweepResult

__all__ = [
    "IngestionEngine",
    "IngestedJob",
    "IngestionResult",
    "RescoreResult",
    "StalenessSweeper",
    "SweepResult",
    "preliminary_score",
    "resume_from_text",
]
