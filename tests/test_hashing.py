"""Unit tests for hashing utilities."""

import pytest

from jobmatch.utils.hashing import compute_job_key, hash_string, normalize_url


class TestComputeJobKey:
    """Tests for compute_job_key function."""

    def test_compute_job_key_basic(self):
        """64-character hex SHA-256."""
        job_key = compute_job_key("user-1", "https://jobs.lever.co/acme/1")
        assert len(job_key) == 64
        assert all(c in "0123456789abcdef" for c in job_key)

    def test_compute_job_key_matches_composite_hash(self):
        assert compute_job_key("user-1", "https://jobs.lever.co/acme/1") == hash_string(
            "user-1:https://jobs.lever.co/acme/1"
        )

    def test_partitioned_by_owner(self):
        url = "https://jobs.lever.co/acme/1"
        assert compute_job_key("user-1", url) != compute_job_key("user-2", url)

    def test_normalized_inputs_give_same_key(self):
        assert compute_job_key(" user-1 ", " https://jobs.lever.co/acme/1/ ") == compute_job_key(
            "user-1", "https://jobs.lever.co/acme/1"
        )


class TestNormalizeUrl:
    """Tests for normalize_url."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://jobs.lever.co/acme/1/", "https://jobs.lever.co/acme/1"),
            ("  https://jobs.lever.co/acme/1  ", "https://jobs.lever.co/acme/1"),
            ("https://boards.greenhouse.io/acme?gh_jid=5", "https://boards.greenhouse.io/acme?gh_jid=5"),
            ("https://example.com/", "https://example.com/"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_normalize_url(self, url, expected):
        assert normalize_url(url) == expected


class TestHashString:
    def test_known_digest(self):
        assert hash_string("") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

    def test_deterministic(self):
        assert hash_string("hello") == hash_string("hello")
