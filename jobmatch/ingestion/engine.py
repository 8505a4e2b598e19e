"""Ingestion orchestration: search, parse, upsert and score for one owner."""

import re
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence
from uuid import uuid4

from jobmatch.config.exceptions import ConfigurationError
from jobmatch.domain.models import Job, ParsedJob, Resume
from jobmatch.logging import get_logger
from jobmatch.logging.context import bind_log_context, log_context
from jobmatch.matching.scorer import MatchScorer, preliminary_score, resolve_resume_skills
from jobmatch.parsing import ParseContext, ResultParser
from jobmatch.persistence.database import get_session
from jobmatch.persistence.repositories import JobRepository, MatchRepository, ResumeRepository
from jobmatch.search.client import DEFAULT_MAX_RESULTS, SearchClient
from jobmatch.search.exceptions import InvalidInput, UpstreamUnavailable
from jobmatch.search.query import SearchParams, build_query, validate_search_params
from jobmatch.utils.timestamps import utc_now
from jobmatch.vocabulary import DEFAULT_VOCABULARY, SkillVocabulary, extract_top_skills

from .models import IngestedJob, IngestionResult, RescoreResult

logger = get_logger(__name__, component="ingestion")

QUERY_SKILL_COUNT = 3
_BULLET_PREFIX = re.compile(r"^\s*(?:[-*•▪]|\d+[.)])\s*")


def resume_from_text(
    owner_id: str, text: str, vocabulary: SkillVocabulary = DEFAULT_VOCABULARY
) -> Resume:
    """Build a resume from plain text: vocabulary skills plus one bullet per non-empty line."""
    bullets = [_BULLET_PREFIX.sub("", line).strip() for line in (text or "").splitlines()]
    return Resume(
        owner_id=owner_id,
        raw_text=text or "",
        skills=vocabulary.match(text),
        bullets=[b for b in bullets if b],
    )


@dataclass
class _GroupOutcome:
    """Counters for all records sharing one URL."""

    upserted: int = 0
    failed: int = 0
    new: int = 0
    updated: int = 0
    matches_scored: int = 0
    ingested: Optional[IngestedJob] = None
    similarity_errors: List[str] = field(default_factory=list)


class IngestionEngine:
    """
    Runs one search for an owner and reconciles the results into storage.

    Every record is written in its own transaction, so a failure only loses that
    record and an interrupted batch keeps whatever was already committed.
    Records are grouped by URL and each group is handled by one worker, which
    applies its records in input order; the last observation of a URL wins.
    """

    def __init__(
        self,
        search_client: Optional[SearchClient],
        scorer: MatchScorer,
        parser: Optional[ResultParser] = None,
        vocabulary: SkillVocabulary = DEFAULT_VOCABULARY,
        max_workers: int = 4,
        max_results: int = DEFAULT_MAX_RESULTS,
        search_depth: str = "basic",
        session_factory: Callable = get_session,
        clock: Callable = utc_now,
    ):
        """
        Initialize the ingestion engine.

        Args:
            search_client: Search provider client; may be None when only rescoring
            scorer: Full match scorer
            parser: Result parser (defaults to one using ``vocabulary``)
            vocabulary: Skill vocabulary for resume and job skills
            max_workers: Upper bound on concurrent record writes
            max_results: Result cap passed to the search provider
            search_depth: "basic" or "deep"
            session_factory: Context manager yielding a database session
            clock: Returns the scan timestamp
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.search_client = search_client
        self.scorer = scorer
        self.vocabulary = vocabulary
        self.parser = parser or ResultParser(vocabulary)
        self.max_workers = max_workers
        self.max_results = max_results
        self.search_depth = search_depth
        self.session_factory = session_factory
        self.clock = clock

    @classmethod
    def from_config(
        cls, app_config, search_client: Optional[SearchClient], scorer: MatchScorer
    ) -> "IngestionEngine":
        return cls(
            search_client=search_client,
            scorer=scorer,
            max_workers=app_config.ingestion.max_workers,
            max_results=app_config.search.max_results,
            search_depth=app_config.search.search_depth,
        )

    def ingest_and_score(
        self, owner_id: str, params, resume: Optional[Resume] = None
    ) -> IngestionResult:
        """
        Search for jobs and store them, scored, for ``owner_id``.

        This method:
        1. Validates the parameters before any I/O
        2. Uses ``resume`` when given, else builds one from ``params.resume_text``,
           else loads the stored primary resume
        3. Builds the query from the role, top resume skills and filters
        4. Calls the search provider (its errors propagate unchanged)
        5. Parses every result
        6. Upserts each record with a preliminary score, then replaces it with
           the full score when a non-empty resume exists
        7. Reports found/upserted/failed counts

        Args:
            owner_id: Owner partition key
            params: SearchParams or a mapping accepted by it
            resume: Resume to score against for this run only; takes precedence
                over ``params.resume_text`` and the stored primary resume

        Returns:
            IngestionResult with counts and the stored jobs

        Raises:
            InvalidInput: If ``owner_id`` or the parameters are invalid
            ConfigurationError: If the search provider rejects the credentials
            UpstreamUnavailable: If the search provider fails, or the similarity
                backend failed while scoring (raised after the batch finishes)
        """
        started = time.time()
        if not owner_id or not str(owner_id).strip():
            raise InvalidInput("An owner id is required", errors=["owner_id: empty"])
        owner_id = str(owner_id).strip()
        params = validate_search_params(params)
        if self.search_client is None:
            raise ConfigurationError("Ingestion requires a search client")

        scan_timestamp = self.clock()
        run_id = uuid4().hex

        with log_context(run_id=run_id, owner_id=owner_id):
            if resume is not None:
                resume = resume.model_copy(update={"owner_id": owner_id})
            else:
                resume = self._load_resume(owner_id, params)
            resume_skills = resolve_resume_skills(resume, self.vocabulary)

            query = build_query(
                params.role,
                self._query_skills(resume, resume_skills),
                params.location_terms,
                params.work_type_terms,
                params.days_ago,
            )
            result = IngestionResult(query=query)

            logger.info(
                "Ingestion started",
                extra={
                    "event": "ingestion.run.started",
                    "role": params.role,
                    "has_resume": resume is not None and not resume.is_empty,
                    "resume_skill_count": len(resume_skills),
                },
            )

            raw_results = self.search_client.search(
                query, max_results=self.max_results, depth=self.search_depth
            )
            result.jobs_found = len(raw_results)

            logger.info(
                f"Search returned {result.jobs_found} results",
                extra={"event": "ingestion.search.completed", "jobs_found": result.jobs_found},
            )

            if not raw_results:
                result.duration_seconds = time.time() - started
                logger.info(result.message, extra={"event": "ingestion.run.completed"})
                return result

            context = ParseContext(
                location_terms=tuple(params.location_terms),
                work_type=params.single_work_type,
                fallback_location=params.location
                or (params.location_terms[0] if params.location_terms else None),
                scanned_at=scan_timestamp,
                job_source=self.search_client.name,
            )
            groups = self._group_by_url(self.parser.parse_many(raw_results, context))

            task = bind_log_context(self._process_group)
            with ThreadPoolExecutor(
                max_workers=min(self.max_workers, len(groups)),
                thread_name_prefix="ingest",
            ) as executor:
                futures = [
                    executor.submit(task, owner_id, records, resume, resume_skills, scan_timestamp)
                    for records in groups.values()
                ]
                outcomes = [future.result() for future in futures]

            similarity_errors: List[str] = []
            for outcome in outcomes:
                result.jobs_upserted += outcome.upserted
                result.jobs_failed += outcome.failed
                result.jobs_new += outcome.new
                result.jobs_updated += outcome.updated
                result.matches_scored += outcome.matches_scored
                similarity_errors.extend(outcome.similarity_errors)
                if outcome.ingested is not None:
                    result.jobs.append(outcome.ingested)

            if similarity_errors:
                result.similarity_error = similarity_errors[0]
            result.duration_seconds = time.time() - started

            logger.info(
                result.message,
                extra={
                    "event": "ingestion.run.completed",
                    "duration_ms": int(result.duration_seconds * 1000),
                    "jobs_found": result.jobs_found,
                    "jobs_upserted": result.jobs_upserted,
                    "jobs_failed": result.jobs_failed,
                    "jobs_new": result.jobs_new,
                    "jobs_updated": result.jobs_updated,
                    "matches_scored": result.matches_scored,
                    "had_errors": result.had_errors,
                },
            )

            if similarity_errors:
                raise UpstreamUnavailable(
                    f"Similarity backend failed while scoring {len(similarity_errors)} jobs: "
                    f"{similarity_errors[0]}",
                    provider=getattr(self.scorer.similarity, "name", None),
                )
            return result

    def rescore(self, owner_id: str) -> RescoreResult:
        """
        Recompute the full score of every active job against the current resume.

        Existing matches are replaced. A missing or empty resume scores nothing.
        A similarity outage propagates immediately; matches already written stay.

        Raises:
            UpstreamUnavailable: If the similarity backend fails
        """
        started = time.time()
        result = RescoreResult()

        with log_context(run_id=uuid4().hex, owner_id=owner_id):
            with self.session_factory() as session:
                resume = ResumeRepository(session).get_primary(owner_id)
                jobs = JobRepository(session).list_for_owner(owner_id, active_only=True)
            result.jobs_considered = len(jobs)

            if resume is None or resume.is_empty:
                result.resume_found = False
                result.duration_seconds = time.time() - started
                logger.warning(
                    "No usable resume; nothing rescored",
                    extra={"event": "ingestion.rescore.skipped", "jobs_considered": len(jobs)},
                )
                return result

            for job in jobs:
                try:
                    self._score_and_store(resume, job)
                    result.matches_scored += 1
                except UpstreamUnavailable:
                    raise
                except Exception as e:
                    result.jobs_failed += 1
                    logger.error(
                        f"Failed to rescore job {job.url}: {e}",
                        extra={
                            "event": "ingestion.rescore.failed",
                            "job_key": job.job_key,
                            "error_type": type(e).__name__,
                        },
                        exc_info=True,
                    )

            result.duration_seconds = time.time() - started
            logger.info(
                f"Rescored {result.matches_scored} of {result.jobs_considered} jobs",
                extra={
                    "event": "ingestion.rescore.completed",
                    "matches_scored": result.matches_scored,
                    "jobs_failed": result.jobs_failed,
                },
            )
        return result

    def _load_resume(self, owner_id: str, params: SearchParams) -> Optional[Resume]:
        if params.resume_text:
            return resume_from_text(owner_id, params.resume_text, self.vocabulary)
        with self.session_factory() as session:
            return ResumeRepository(session).get_primary(owner_id)

    def _query_skills(self, resume: Optional[Resume], resume_skills: List[str]) -> List[str]:
        """Top resume skills used to bias the query."""
        text = resume.raw_text if resume else ""
        skills = extract_top_skills(text, QUERY_SKILL_COUNT, self.vocabulary)
        return skills or resume_skills[:QUERY_SKILL_COUNT]

    @staticmethod
    def _group_by_url(parsed_jobs: Sequence[ParsedJob]) -> Dict[str, List[ParsedJob]]:
        """Records keyed by URL, groups in first-seen order, records in input order."""
        groups: Dict[str, List[ParsedJob]] = {}
        for parsed in parsed_jobs:
            groups.setdefault(parsed.url, []).append(parsed)
        return groups

    def _process_group(
        self,
        owner_id: str,
        records: List[ParsedJob],
        resume: Optional[Resume],
        resume_skills: List[str],
        seen_at,
    ) -> _GroupOutcome:
        """Apply every record for one URL in order; never raises."""
        outcome = _GroupOutcome()

        for parsed in records:
            with log_context(job_url=parsed.url):
                # Step 1: Upsert the job with its preliminary score
                try:
                    with self.session_factory() as session:
                        upserted = JobRepository(session).upsert(
                            owner_id,
                            parsed,
                            seen_at,
                            match_score=self._preliminary(parsed, resume_skills),
                        )
                except Exception as e:
                    outcome.failed += 1
                    logger.error(
                        f"Failed to upsert job {parsed.url}: {e}",
                        extra={"event": "ingestion.record.failed", "error_type": type(e).__name__},
                        exc_info=True,
                    )
                    continue

                # Later records in the group always hit the row the first one wrote
                if upserted.is_new and outcome.upserted == 0:
                    outcome.new += 1
                else:
                    outcome.updated += 1
                outcome.upserted += 1
                outcome.ingested = IngestedJob(job=upserted.job)

                if resume is None or resume.is_empty:
                    continue

                # Step 2: Replace the preliminary score with the full one
                try:
                    outcome.ingested = self._score_and_store(resume, upserted.job)
                    outcome.matches_scored += 1
                except UpstreamUnavailable as e:
                    outcome.similarity_errors.append(str(e))
                    logger.warning(
                        f"Similarity backend unavailable for {parsed.url}: {e}",
                        extra={"event": "ingestion.record.unscored"},
                    )
                except Exception as e:
                    outcome.failed += 1
                    logger.error(
                        f"Failed to score job {parsed.url}: {e}",
                        extra={"event": "ingestion.record.failed", "error_type": type(e).__name__},
                        exc_info=True,
                    )

        return outcome

    @staticmethod
    def _preliminary(parsed: ParsedJob, resume_skills: List[str]) -> Optional[int]:
        """Skill-overlap score, or None to keep the stored one when no resume skills exist."""
        if not resume_skills:
            return None
        return preliminary_score(parsed.required_skills, resume_skills)

    def _score_and_store(self, resume: Resume, job: Job) -> IngestedJob:
        # Scoring may call a remote backend, so it runs outside any transaction
        match = self.scorer.score(resume, job)
        with self.session_factory() as session:
            stored = MatchRepository(session).upsert(match)
            JobRepository(session).update_match_score(job.job_key, stored.score_total)
        return IngestedJob(job=job.model_copy(update={"match_score": stored.score_total}), match=stored)
