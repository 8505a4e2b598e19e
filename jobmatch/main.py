"""Command-line entry point for the job ingestion and matching engine."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

import yaml
from pydantic import ValidationError

from jobmatch.config.environment import EnvironmentConfig
from jobmatch.config.exceptions import ConfigurationError
from jobmatch.config.loader import load_config, validate_config_file
from jobmatch.config.models import AppConfig
from jobmatch.domain.models import Resume
from jobmatch.ingestion import IngestionEngine, StalenessSweeper, resume_from_text
from jobmatch.logging import get_logger
from jobmatch.logging.config import configure_logging
from jobmatch.matching import (
    Category,
    JobListing,
    MatchScorer,
    build_similarity,
    group_by_category,
    rank_jobs,
)
from jobmatch.persistence import (
    JobRepository,
    PersistenceError,
    ResumeRepository,
    close_database,
    get_session,
    init_database,
)
from jobmatch.search import InvalidInput, TavilySearchClient, UpstreamUnavailable

logger = get_logger(__name__, component="cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PARTIAL = 2

STRUCTURED_RESUME_SUFFIXES = (".yaml", ".yml", ".json")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load and prepare runtime configuration.

    Args:
        config_path: Path to configuration file, or None to search the defaults
        log_level_override: Log level from CLI (takes precedence)

    Returns:
        Tuple of (AppConfig, EnvironmentConfig) with the effective log level set

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    # Log level priority: CLI > Environment > Config
    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    return app_config, env_config


def build_arg_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml or config/config.yaml)",
    )
    common.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    common.add_argument("--json", action="store_true", help="Print machine-readable JSON output")

    parser = argparse.ArgumentParser(
        prog="jobmatch",
        description="JobMatch - search job boards, store postings and score them against a resume",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    search = subparsers.add_parser(
        "search", parents=[common], help="Search for jobs, store them and score them"
    )
    search.add_argument("--owner", required=True, help="Owner id the jobs belong to")
    search.add_argument("--role", required=True, help="Role or title to search for")
    search.add_argument("--location", help="Free-form location, e.g. 'New York'")
    search.add_argument("--state", action="append", default=[], help="State filter (repeatable)")
    search.add_argument("--city", action="append", default=[], help="City filter (repeatable)")
    search.add_argument(
        "--work-type",
        action="append",
        default=[],
        help="remote, hybrid or onsite (repeatable)",
    )
    search.add_argument("--days-ago", type=int, default=None, help="Recency window in days")
    search.add_argument(
        "--resume-file",
        type=Path,
        help="Resume (plain text or YAML/JSON) to use for this search instead of the stored one",
    )
    search.add_argument("--depth", choices=["basic", "deep"], help="Search depth override")

    rescore = subparsers.add_parser(
        "rescore", parents=[common], help="Rescore active jobs against the current resume"
    )
    rescore.add_argument("--owner", required=True)

    listing = subparsers.add_parser("list", parents=[common], help="List stored jobs by tier")
    listing.add_argument("--owner", required=True)
    listing.add_argument("--category", choices=[c.value for c in Category])
    listing.add_argument("--min-score", type=int, default=None)
    listing.add_argument("--remote-only", action="store_true")
    listing.add_argument(
        "--include-inactive", action="store_true", help="Also show swept jobs"
    )

    import_resume = subparsers.add_parser(
        "import-resume", parents=[common], help="Store the owner's primary resume"
    )
    import_resume.add_argument("--owner", required=True)
    import_resume.add_argument(
        "--file",
        type=Path,
        required=True,
        help="YAML/JSON structured resume, or any other file read as plain text",
    )

    sweep = subparsers.add_parser(
        "sweep", parents=[common], help="Deactivate jobs not seen for N days"
    )
    sweep.add_argument("--owner", required=True)
    sweep.add_argument("--days", type=int, required=True)

    subparsers.add_parser(
        "validate-config",
        parents=[common],
        help="Check the configuration file without touching the database",
    )

    return parser


def load_resume_file(owner_id: str, path: Path) -> Resume:
    """
    Read a resume from disk.

    ``.yaml``, ``.yml`` and ``.json`` files hold a structured resume (skills,
    bullets, projects, raw_text); anything else is read as plain text.

    Raises:
        InvalidInput: If the file is missing or the structured resume is invalid
    """
    if not path.is_file():
        raise InvalidInput(f"Resume file not found: {path}")

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() not in STRUCTURED_RESUME_SUFFIXES:
        return resume_from_text(owner_id, text)

    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise InvalidInput(f"Could not parse resume file {path}", errors=[str(e)]) from e
    if not isinstance(data, dict):
        raise InvalidInput(f"Resume file {path} must contain a mapping")

    try:
        return Resume.model_validate({**data, "owner_id": owner_id})
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}" for error in e.errors()
        ]
        raise InvalidInput(f"Invalid resume file {path}", errors=errors) from e


def run_search(args, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    search_client = TavilySearchClient(
        api_key=env_config.require_tavily_key(),
        timeout=app_config.advanced.http_request_timeout,
        user_agent=app_config.advanced.user_agent,
    )
    scorer = MatchScorer.from_config(app_config.scoring, build_similarity(app_config, env_config))
    engine = IngestionEngine.from_config(app_config, search_client, scorer)
    if args.depth:
        engine.search_depth = args.depth

    params = {
        "role": args.role,
        "location": args.location,
        "states": args.state,
        "cities": args.city,
        "work_types": args.work_type,
        "days_ago": (
            args.days_ago if args.days_ago is not None else app_config.search.default_days_ago
        ),
    }
    resume = load_resume_file(args.owner, args.resume_file) if args.resume_file else None

    result = engine.ingest_and_score(args.owner, params, resume=resume)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(result.message)
        listings = rank_jobs(JobListing(job=item.job, match=item.match) for item in result.jobs)
        _print_listings(listings)

    return EXIT_PARTIAL if result.had_errors else EXIT_OK


def run_rescore(args, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    scorer = MatchScorer.from_config(app_config.scoring, build_similarity(app_config, env_config))
    engine = IngestionEngine.from_config(app_config, None, scorer)
    result = engine.rescore(args.owner)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    elif not result.resume_found:
        print(f"No resume stored for {args.owner}; run import-resume first")
    else:
        print(f"Rescored {result.matches_scored} of {result.jobs_considered} jobs")

    if not result.resume_found:
        return EXIT_ERROR
    return EXIT_PARTIAL if result.had_errors else EXIT_OK


def run_list(args, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    min_score = args.min_score if args.min_score is not None else app_config.listing.min_score
    with get_session() as session:
        views = JobRepository(session).list_views(args.owner, active_only=not args.include_inactive)

    listings = rank_jobs(
        views, min_score=min_score, category=args.category, remote_only=args.remote_only
    )
    if args.json:
        print(json.dumps([listing.to_dict() for listing in listings], indent=2))
    else:
        _print_listings(listings)
    return EXIT_OK


def run_import_resume(args, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    resume = load_resume_file(args.owner, args.file)
    with get_session() as session:
        stored = ResumeRepository(session).save(resume)

    logger.info(
        "Resume imported",
        extra={
            "event": "resume.imported",
            "owner_id": stored.owner_id,
            "skill_count": len(stored.skills),
            "bullet_count": len(stored.bullets),
            "project_count": len(stored.projects),
        },
    )
    if args.json:
        print(json.dumps(stored.model_dump(mode="json"), indent=2))
    else:
        print(
            f"Stored resume for {stored.owner_id}: {len(stored.skills)} skills, "
            f"{len(stored.bullets)} bullets, {len(stored.projects)} projects"
        )
    return EXIT_OK


def run_sweep(args, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    if args.days < 1:
        raise InvalidInput("--days must be at least 1")
    result = StalenessSweeper().sweep(args.owner, args.days)
    if args.json:
        print(
            json.dumps(
                {"deactivated": result.deactivated, "job_keys": result.job_keys, "cutoff": result.cutoff.isoformat()},
                indent=2,
            )
        )
    else:
        print(f"Deactivated {result.deactivated} jobs not seen since {result.cutoff:%Y-%m-%d}")
    return EXIT_OK


COMMANDS = {
    "search": run_search,
    "rescore": run_rescore,
    "list": run_list,
    "import-resume": run_import_resume,
    "sweep": run_sweep,
}


def _print_listings(listings: List[JobListing]) -> None:
    if not listings:
        print("No jobs to show")
        return
    for category, items in group_by_category(listings).items():
        if not items:
            continue
        print(f"\n{category.label} ({len(items)})")
        for item in items:
            job = item.job
            print(f"  [{item.effective_score:3d}] {job.title} - {job.company} ({job.location}, {job.remote_type})")
            print(f"        {job.url}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the jobmatch CLI.

    Returns:
        Exit code: 0 success, 1 configuration/validation/upstream error,
        2 partial ingestion failure.
    """
    start_time = time.time()
    args = build_arg_parser().parse_args(argv)

    if args.command == "validate-config":
        return EXIT_OK if validate_config_file(args.config) else EXIT_ERROR

    try:
        # Step 1: Load configuration before logging so the format is known
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        # Step 2: Configure logging
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )
        logger.debug(
            f"Running command: {args.command}",
            extra={"event": "cli.command.starting", "command": args.command},
        )

        # Step 3: Initialize database
        init_database(env_config.database_url)

        # Step 4: Dispatch
        try:
            exit_code = COMMANDS[args.command](args, app_config, env_config)
        finally:
            close_database()

        logger.debug(
            f"Command {args.command} finished",
            extra={
                "event": "cli.command.completed",
                "command": args.command,
                "exit_code": exit_code,
                "duration_seconds": round(time.time() - start_time, 2),
            },
        )
        return exit_code

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e.message}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return EXIT_ERROR
    except InvalidInput as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        for error in e.errors:
            print(f"  - {error}", file=sys.stderr)
        return EXIT_ERROR
    except UpstreamUnavailable as e:
        status = f" (HTTP {e.status_code})" if e.status_code else ""
        print(f"Provider unavailable{status}: {e}", file=sys.stderr)
        logger.error(
            f"Upstream provider unavailable: {e}",
            extra={
                "event": "cli.upstream.unavailable",
                "provider": e.provider,
                "status_code": e.status_code,
            },
        )
        return EXIT_ERROR
    except PersistenceError as e:
        print(f"Database error: {e}", file=sys.stderr)
        logger.error(
            f"Database error: {e}",
            extra={"event": "cli.database.error", "error_type": type(e).__name__},
            exc_info=True,
        )
        return EXIT_ERROR
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
