"""Tests for the command-line entry point.

Each test runs ``main`` against a throwaway SQLite file; the Tavily client is
replaced with an in-process fake.
"""

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from jobmatch.main import (
    EXIT_ERROR,
    EXIT_OK,
    EXIT_PARTIAL,
    build_arg_parser,
    load_resume_file,
    load_runtime_config,
    main,
)
from jobmatch.search import InvalidInput, UpstreamUnavailable
from tests.helpers import PYTHON_K8S_CONTENT, FixedSearchClient, make_raw

QUIET = ["--log-level", "ERROR"]


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Working directory without config.yaml, a private database and a search key."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("TAVILY_API_KEY", "tvly-test")
    for name in ("OPENAI_API_KEY", "LOG_LEVEL", "ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


@pytest.fixture
def resume_file(cli_env):
    path = cli_env / "resume.txt"
    path.write_text("- Built billing services in Python\n- Ran Kubernetes clusters\n", encoding="utf-8")
    return path


def lever_client(count=2):
    return FixedSearchClient(
        [make_raw(f"https://jobs.lever.co/acme/{i}", content=PYTHON_K8S_CONTENT) for i in range(count)]
    )


def run_search(client, *extra):
    with patch("jobmatch.main.TavilySearchClient", return_value=client):
        return main(["search", "--owner", "user-1", "--role", "Backend Engineer", *QUIET, *extra])


class TestArgParser:
    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            build_arg_parser().parse_args([])

    def test_repeatable_filters(self):
        args = build_arg_parser().parse_args(
            ["search", "--owner", "u", "--role", "r", "--city", "Austin", "--city", "Dallas", "--work-type", "remote"]
        )
        assert args.city == ["Austin", "Dallas"]
        assert args.work_type == ["remote"]
        assert args.state == []

    def test_invalid_category(self):
        with pytest.raises(SystemExit):
            build_arg_parser().parse_args(["list", "--owner", "u", "--category", "amazing"])


class TestLoadRuntimeConfig:
    """Log level priority: CLI > environment > config file."""

    def test_cli_wins(self, cli_env, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        _, env_config = load_runtime_config(None, "DEBUG")
        assert env_config.log_level == "DEBUG"

    def test_environment_beats_config(self, cli_env, monkeypatch):
        (cli_env / "config.yaml").write_text("logging:\n  level: ERROR\n", encoding="utf-8")
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        _, env_config = load_runtime_config(None, None)
        assert env_config.log_level == "WARNING"

    def test_config_file_default(self, cli_env):
        (cli_env / "config.yaml").write_text("logging:\n  level: ERROR\n", encoding="utf-8")
        _, env_config = load_runtime_config(None, None)
        assert env_config.log_level == "ERROR"


class TestLoadResumeFile:
    """Tests for reading resumes from disk."""

    def test_plain_text(self, resume_file):
        resume = load_resume_file("user-1", resume_file)
        assert resume.skills == ["Python", "Kubernetes"]
        assert resume.bullets == ["Built billing services in Python", "Ran Kubernetes clusters"]

    def test_structured_yaml(self, tmp_path):
        path = tmp_path / "resume.yaml"
        path.write_text(
            "skills: [python, Kubernetes]\n"
            "bullets: [Built billing services]\n"
            "projects:\n"
            "  - name: Ledger\n"
            "    technologies: [Python]\n",
            encoding="utf-8",
        )
        resume = load_resume_file("user-1", path)
        assert resume.owner_id == "user-1"
        assert resume.skills == ["python", "Kubernetes"]
        assert resume.projects[0].name == "Ledger"

    def test_owner_in_file_is_ignored(self, tmp_path):
        path = tmp_path / "resume.json"
        path.write_text('{"owner_id": "someone-else", "skills": ["Go"]}', encoding="utf-8")
        assert load_resume_file("user-1", path).owner_id == "user-1"

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidInput, match="not found"):
            load_resume_file("user-1", tmp_path / "missing.txt")

    @pytest.mark.parametrize("text", ["- a\n- b\n", "skills: 5\n", "skills: [unclosed\n"])
    def test_invalid_structured_resume(self, tmp_path, text):
        path = tmp_path / "resume.yml"
        path.write_text(text, encoding="utf-8")
        with pytest.raises(InvalidInput):
            load_resume_file("user-1", path)


class TestImportResumeCommand:
    def test_import_plain_text(self, resume_file, capsys):
        exit_code = main(["import-resume", "--owner", "user-1", "--file", str(resume_file), *QUIET])

        assert exit_code == EXIT_OK
        assert "Stored resume for user-1: 2 skills, 2 bullets, 0 projects" in capsys.readouterr().out

    def test_import_json_output(self, resume_file, capsys):
        exit_code = main(["import-resume", "--owner", "user-1", "--file", str(resume_file), "--json", *QUIET])

        assert exit_code == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["owner_id"] == "user-1"
        assert data["skills"] == ["Python", "Kubernetes"]

    def test_missing_file(self, cli_env, capsys):
        exit_code = main(["import-resume", "--owner", "user-1", "--file", "nope.txt", *QUIET])
        assert exit_code == EXIT_ERROR
        assert "Invalid input" in capsys.readouterr().err


class TestSearchCommand:
    """Tests for the search command."""

    def test_search(self, resume_file, capsys):
        main(["import-resume", "--owner", "user-1", "--file", str(resume_file), *QUIET])
        capsys.readouterr()
        client = lever_client()

        exit_code = run_search(client, "--city", "Austin", "--days-ago", "3")

        assert exit_code == EXIT_OK
        out = capsys.readouterr().out
        assert "Found 2 jobs, upserted 2 new/updated jobs" in out
        assert "https://jobs.lever.co/acme/0" in out
        assert '("Austin")' in client.calls[0]["query"]
        assert client.calls[0]["depth"] == "basic"

    def test_search_json_and_depth_override(self, cli_env, capsys):
        client = lever_client()

        exit_code = run_search(client, "--json", "--depth", "deep")

        assert exit_code == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["jobs_found"] == 2
        assert data["jobs_upserted"] == 2
        assert len(data["jobs"]) == 2
        assert client.calls[0]["depth"] == "deep"

    def test_search_with_resume_file(self, resume_file, capsys):
        client = lever_client(1)

        exit_code = run_search(client, "--resume-file", str(resume_file), "--json")

        assert exit_code == EXIT_OK
        assert "(Python OR Kubernetes)" in client.calls[0]["query"]
        data = json.loads(capsys.readouterr().out)
        assert data["matches_scored"] == 1

    def test_structured_resume_file_keeps_projects(self, cli_env, capsys):
        """A YAML resume scores the same as one stored with import-resume."""
        path = cli_env / "resume.yaml"
        path.write_text(
            "raw_text: Backend developer\n"
            "skills: [Python, Kubernetes]\n"
            "bullets: [Built billing services]\n"
            "projects:\n"
            "  - name: Ledger\n"
            "    technologies: [Python, Kubernetes]\n",
            encoding="utf-8",
        )
        client = lever_client(1)

        exit_code = run_search(client, "--resume-file", str(path), "--json")

        assert exit_code == EXIT_OK
        match = json.loads(capsys.readouterr().out)["jobs"][0]["match"]
        assert match["score_breakdown"]["project_relevance"] == 20
        assert match["recommended_projects"] == ["Ledger"]
        assert match["matching_skills"] == ["Python", "Kubernetes"]
        assert "(Python OR Kubernetes)" in client.calls[0]["query"]

    def test_resume_file_matches_imported_resume(self, cli_env, capsys):
        path = cli_env / "resume.yaml"
        path.write_text(
            "skills: [Python, Kubernetes]\n"
            "projects:\n"
            "  - name: Ledger\n"
            "    technologies: [Python, Kubernetes]\n",
            encoding="utf-8",
        )
        run_search(lever_client(1), "--resume-file", str(path), "--json")
        from_file = json.loads(capsys.readouterr().out)["jobs"][0]["match"]

        main(["import-resume", "--owner", "user-1", "--file", str(path), *QUIET])
        capsys.readouterr()
        run_search(lever_client(1), "--json")
        from_store = json.loads(capsys.readouterr().out)["jobs"][0]["match"]

        assert from_file["score_breakdown"] == from_store["score_breakdown"]
        assert from_file["score_total"] == from_store["score_total"]

    def test_zero_days_ago_is_rejected(self, cli_env, capsys):
        client = lever_client()
        exit_code = run_search(client, "--days-ago", "0")
        assert exit_code == EXIT_ERROR
        assert "Invalid input" in capsys.readouterr().err
        assert client.calls == []

    def test_partial_failure_exit_code(self, cli_env):
        client = FixedSearchClient(
            [
                make_raw("https://boards.greenhouse.io/acme/jobs/100"),
                make_raw("https://boards.greenhouse.io/acme/jobs/100?gh_src=feed"),
            ]
        )
        assert run_search(client) == EXIT_PARTIAL

    def test_missing_api_key(self, cli_env, monkeypatch, capsys):
        monkeypatch.delenv("TAVILY_API_KEY")
        exit_code = main(["search", "--owner", "user-1", "--role", "Engineer", *QUIET])
        assert exit_code == EXIT_ERROR
        assert "Configuration Error" in capsys.readouterr().err

    def test_upstream_failure(self, cli_env, capsys):
        client = FixedSearchClient(error=UpstreamUnavailable("search down", status_code=503))
        assert run_search(client) == EXIT_ERROR
        assert "Provider unavailable (HTTP 503)" in capsys.readouterr().err

    def test_invalid_params(self, cli_env, capsys):
        client = lever_client()
        exit_code = run_search(client, "--work-type", "spaceship")
        assert exit_code == EXIT_ERROR
        assert client.calls == []


class TestListRescoreSweep:
    """Tests for the read-side and maintenance commands."""

    def test_list_after_search(self, cli_env, capsys):
        run_search(lever_client())
        capsys.readouterr()

        exit_code = main(["list", "--owner", "user-1", "--json", *QUIET])

        assert exit_code == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert sorted(item["url"] for item in data) == [
            "https://jobs.lever.co/acme/0",
            "https://jobs.lever.co/acme/1",
        ]
        assert all(item["category"] == "slight_match" for item in data)

    def test_list_empty(self, cli_env, capsys):
        assert main(["list", "--owner", "user-1", *QUIET]) == EXIT_OK
        assert "No jobs to show" in capsys.readouterr().out

    def test_list_min_score_filters(self, cli_env, capsys):
        run_search(lever_client())
        capsys.readouterr()
        main(["list", "--owner", "user-1", "--min-score", "1", "--json", *QUIET])
        assert json.loads(capsys.readouterr().out) == []

    def test_rescore_without_resume(self, cli_env, capsys):
        assert main(["rescore", "--owner", "user-1", *QUIET]) == EXIT_ERROR
        assert "No resume stored for user-1" in capsys.readouterr().out

    def test_rescore(self, resume_file, capsys):
        run_search(lever_client())
        main(["import-resume", "--owner", "user-1", "--file", str(resume_file), *QUIET])
        capsys.readouterr()

        exit_code = main(["rescore", "--owner", "user-1", *QUIET])

        assert exit_code == EXIT_OK
        assert "Rescored 2 of 2 jobs" in capsys.readouterr().out

    def test_sweep(self, cli_env, capsys):
        run_search(lever_client())
        capsys.readouterr()

        assert main(["sweep", "--owner", "user-1", "--days", "30", *QUIET]) == EXIT_OK
        assert "Deactivated 0 jobs" in capsys.readouterr().out

    def test_sweep_invalid_days(self, cli_env):
        assert main(["sweep", "--owner", "user-1", "--days", "0", *QUIET]) == EXIT_ERROR

    def test_missing_config_file(self, cli_env, capsys):
        exit_code = main(["list", "--owner", "user-1", "--config", str(Path("missing.yaml")), *QUIET])
        assert exit_code == EXIT_ERROR
        assert "not found" in capsys.readouterr().err


class TestValidateConfigCommand:
    """Tests for validate-config."""

    def test_valid_file(self, cli_env, capsys):
        (cli_env / "config.yaml").write_text("ingestion:\n  max_workers: 2\n", encoding="utf-8")
        assert main(["validate-config"]) == EXIT_OK
        assert "config.yaml is valid" in capsys.readouterr().out

    def test_invalid_file(self, cli_env, capsys):
        path = cli_env / "bad.yaml"
        path.write_text("ingestion:\n  max_workers: 0\n", encoding="utf-8")
        assert main(["validate-config", "--config", str(path)]) == EXIT_ERROR
        assert "validation failed" in capsys.readouterr().out

    def test_no_file_uses_defaults(self, cli_env, capsys):
        assert main(["validate-config"]) == EXIT_OK
        assert "built-in defaults apply" in capsys.readouterr().out

    def test_missing_explicit_file(self, cli_env, capsys):
        assert main(["validate-config", "--config", "missing.yaml"]) == EXIT_ERROR
        assert "not found" in capsys.readouterr().out
