"""Unit tests for domain models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from jobmatch.domain.models import (
    MAX_DESCRIPTION_LENGTH,
    JobMatch,
    ParsedJob,
    Resume,
    ResumeProject,
    ScoreBreakdown,
)
from tests.helpers import build_job


class TestParsedJob:
    """Tests for ParsedJob defaults and validation."""

    def test_defaults(self):
        job = ParsedJob(url="https://example.com/1")
        assert job.title == "Untitled Job"
        assert job.company == "Unknown Company"
        assert job.location == "Remote"
        assert job.remote_type == "onsite"
        assert job.visa_sponsorship == "unknown"
        assert job.ats_type == "custom"
        assert job.required_skills == []

    def test_descriptions_are_capped(self):
        job = ParsedJob(url="u", description_raw="x" * (MAX_DESCRIPTION_LENGTH + 10))
        assert len(job.description_raw) == MAX_DESCRIPTION_LENGTH

    def test_invalid_enum_values(self):
        with pytest.raises(ValidationError):
            ParsedJob(url="u", remote_type="spaceship")
        with pytest.raises(ValidationError):
            ParsedJob(url="u", visa_sponsorship="maybe")

    def test_naive_posted_at_becomes_utc(self):
        job = ParsedJob(url="u", posted_at=datetime(2024, 5, 1, 12))
        assert job.posted_at.tzinfo == timezone.utc


class TestJob:
    def test_owner_required(self):
        with pytest.raises(ValidationError):
            build_job(owner_id="")

    def test_match_score_bounds(self):
        with pytest.raises(ValidationError):
            build_job(match_score=101)


class TestScoreBreakdown:
    """Tests for ScoreBreakdown totals."""

    def test_total(self):
        breakdown = ScoreBreakdown(skill_overlap=35, semantic_similarity=20, project_relevance=10, risk_penalty=4)
        assert breakdown.positive_total == 65
        assert breakdown.total == 61

    def test_total_never_negative(self):
        assert ScoreBreakdown(risk_penalty=10).total == 0

    @pytest.mark.parametrize(
        "fields",
        [{"skill_overlap": 36}, {"semantic_similarity": -1}, {"project_relevance": 21}, {"risk_penalty": 11}],
    )
    def test_component_bounds(self, fields):
        with pytest.raises(ValidationError):
            ScoreBreakdown(**fields)


class TestJobMatch:
    def test_total_must_match_breakdown(self):
        with pytest.raises(ValidationError):
            JobMatch(owner_id="u", job_key="k", score_total=50, score_breakdown=ScoreBreakdown(skill_overlap=35))

    def test_consistent_total(self):
        match = JobMatch(owner_id="u", job_key="k", score_total=35, score_breakdown=ScoreBreakdown(skill_overlap=35))
        assert match.score_total == 35


class TestResume:
    """Tests for Resume helpers."""

    def test_blank_entries_dropped(self):
        resume = Resume(owner_id="u", skills=[" Python ", "", "  "], bullets=["", "Shipped"])
        assert resume.skills == ["Python"]
        assert resume.bullets == ["Shipped"]

    @pytest.mark.parametrize(
        "fields,expected",
        [({}, True), ({"skills": ["Python"]}, False), ({"bullets": ["Shipped"]}, False), ({"raw_text": "text"}, True)],
    )
    def test_is_empty(self, fields, expected):
        assert Resume(owner_id="u", **fields).is_empty is expected

    def test_narrative(self):
        resume = Resume(
            owner_id="u",
            bullets=["Shipped billing"],
            projects=[
                ResumeProject(name="Ledger", description="Double-entry service"),
                ResumeProject(name="Notes"),
            ],
        )
        assert resume.narrative == "Shipped billing\nLedger: Double-entry service\nNotes"
