"""Tests for the staleness sweeper."""

from datetime import timedelta

import pytest

from jobmatch.ingestion import StalenessSweeper
from jobmatch.persistence import JobRepository, get_session
from tests.helpers import FIXED_NOW, build_parsed


def seed(url, seen_at, owner_id="user-1", external_id=None):
    with get_session() as session:
        outcome = JobRepository(session).upsert(
            owner_id, build_parsed(url, external_id=external_id), seen_at
        )
    return outcome.job.job_key


class TestStalenessSweeper:
    """Tests for StalenessSweeper.sweep."""

    def test_deactivates_only_old_jobs(self, memory_database):
        old_key = seed("https://jobs.lever.co/acme/old", FIXED_NOW - timedelta(days=45))
        fresh_key = seed("https://jobs.lever.co/acme/fresh", FIXED_NOW - timedelta(days=2))
        other_owner_key = seed(
            "https://jobs.lever.co/acme/old", FIXED_NOW - timedelta(days=45), owner_id="user-2"
        )

        result = StalenessSweeper(clock=lambda: FIXED_NOW).sweep("user-1", older_than_days=30)

        assert result.owner_id == "user-1"
        assert result.cutoff == FIXED_NOW - timedelta(days=30)
        assert result.deactivated == 1
        assert result.job_keys == [old_key]

        with get_session() as session:
            repo = JobRepository(session)
            assert repo.get_by_key(old_key).is_active is False
            assert repo.get_by_key(fresh_key).is_active is True
            assert repo.get_by_key(other_owner_key).is_active is True

    def test_second_sweep_is_a_no_op(self, memory_database):
        seed("https://jobs.lever.co/acme/old", FIXED_NOW - timedelta(days=45))
        sweeper = StalenessSweeper(clock=lambda: FIXED_NOW)

        sweeper.sweep("user-1", older_than_days=30)
        result = sweeper.sweep("user-1", older_than_days=30)

        assert result.deactivated == 0
        assert result.job_keys == []

    def test_reingest_reactivates_swept_job(self, memory_database):
        key = seed("https://jobs.lever.co/acme/old", FIXED_NOW - timedelta(days=45))
        StalenessSweeper(clock=lambda: FIXED_NOW).sweep("user-1", older_than_days=30)

        seed("https://jobs.lever.co/acme/old", FIXED_NOW)

        with get_session() as session:
            assert JobRepository(session).get_by_key(key).is_active is True

    @pytest.mark.parametrize("days", [0, -3])
    def test_invalid_window(self, memory_database, days):
        with pytest.raises(ValueError):
            StalenessSweeper().sweep("user-1", older_than_days=days)
