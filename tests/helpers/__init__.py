"""Test helper utilities for jobmatch tests."""

from .factories import (
    FIXED_NOW,
    PYTHON_K8S_CONTENT,
    StepClock,
    build_job,
    build_parsed,
    build_resume,
)
from .fakes import FixedSearchClient, FixedSimilarity, make_raw

__all__ = [
    "FIXED_NOW",
    "PYTHON_K8S_CONTENT",
    "StepClock",
    "build_job",
    "build_parsed",
    "build_resume",
    "FixedSearchClient",
    "FixedSimilarity",
    "make_raw",
]
