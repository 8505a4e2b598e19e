"""Match scoring between a resume and a job.

The score is the sum of three positive bands minus a risk penalty:

- skill_overlap (0-35): share of the job's required skills found on the resume
- semantic_similarity (0-35): similarity of resume narrative and job description
- project_relevance (0-20): resume project technologies that hit job skills
- risk_penalty (0-10): sponsorship mismatch and excluded keywords

``score_total`` is always ``ScoreBreakdown.total``, the clamped sum.
"""

import logging
import math
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from jobmatch.domain.models import Job, JobMatch, Resume, ScoreBreakdown
from jobmatch.logging import get_logger
from jobmatch.utils.timestamps import utc_now
from jobmatch.vocabulary import DEFAULT_VOCABULARY, SkillVocabulary, skill_key

from .similarity import LexicalSimilarity, SimilarityProvider, clamp_unit

logger = get_logger(__name__, component="scorer")

SKILL_OVERLAP_WEIGHT = 35
SEMANTIC_WEIGHT = 35
PROJECT_WEIGHT = 20
MAX_RISK_PENALTY = 10

VISA_REFUSED_PENALTY = 6
VISA_UNKNOWN_PENALTY = 2
EXCLUDE_KEYWORD_PENALTY = 3

MAX_MATCHING_BULLETS = 5
MAX_RECOMMENDED_PROJECTS = 3


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (round(17.5) == 18)."""
    return int(math.floor(value + 0.5))


def preliminary_score(job_skills: Sequence[str], resume_skills: Iterable[str]) -> int:
    """Skill-overlap percentage used before the full score is available.

    ``round(100 * |job ∩ resume| / |job|)``, compared case-insensitively and
    clamped to 0..100. Either side being empty gives 0.

    Example:
        >>> preliminary_score(["Python", "AWS"], ["Python", "React"])
        50
    """
    job_keys = {skill_key(s) for s in job_skills if s and s.strip()}
    resume_keys = {skill_key(s) for s in resume_skills if s and s.strip()}
    if not job_keys or not resume_keys:
        return 0
    overlap = len(job_keys & resume_keys)
    return max(0, min(100, round_half_up(100 * overlap / len(job_keys))))


def resolve_resume_skills(
    resume: Optional[Resume], vocabulary: SkillVocabulary = DEFAULT_VOCABULARY
) -> List[str]:
    """Skills listed on the resume, else vocabulary hits in its raw text."""
    if resume is None:
        return []
    if resume.skills:
        return vocabulary.canonicalize(resume.skills)
    return vocabulary.match(resume.raw_text)


class MatchScorer:
    """Computes the authoritative match score for a (resume, job) pair.

    The scorer itself is pure apart from the similarity capability it is given.
    Malformed or empty data degrades to low scores; only the similarity
    provider may raise (``UpstreamUnavailable`` from a hosted backend).
    """

    def __init__(
        self,
        similarity: Optional[SimilarityProvider] = None,
        require_sponsorship: bool = False,
        exclude_keywords: Sequence[str] = (),
        vocabulary: SkillVocabulary = DEFAULT_VOCABULARY,
        clock: Callable = utc_now,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize MatchScorer.

        Args:
            similarity: Semantic similarity backend (defaults to LexicalSimilarity)
            require_sponsorship: Whether the owner needs visa sponsorship
            exclude_keywords: Terms that add a risk penalty when a job mentions them
            vocabulary: Skill vocabulary used when the resume lists no skills
            clock: Returns the ``scored_at`` timestamp
            logger_instance: Optional logger (defaults to module logger)
        """
        self.similarity = similarity or LexicalSimilarity()
        self.require_sponsorship = require_sponsorship
        self.exclude_keywords = [k.strip().lower() for k in exclude_keywords if k and k.strip()]
        self.vocabulary = vocabulary
        self.clock = clock
        self.logger = logger_instance or logger

    @classmethod
    def from_config(cls, scoring_config, similarity: SimilarityProvider) -> "MatchScorer":
        return cls(
            similarity=similarity,
            require_sponsorship=scoring_config.require_sponsorship,
            exclude_keywords=scoring_config.exclude_keywords,
        )

    def score(self, resume: Optional[Resume], job: Job) -> JobMatch:
        """Score ``job`` against ``resume``.

        Algorithm:
        1. Degrade to an all-zero match when there is no usable resume
        2. Split job skills into matching and missing, in job order
        3. Ask the similarity backend about narrative vs. description
        4. Credit projects whose technologies hit job skills
        5. Accumulate risk signals, capped at 10 points
        6. Build the breakdown and the explanation text

        Args:
            resume: The owner's primary resume, or None
            job: The stored job to score

        Returns:
            JobMatch whose score_total equals its breakdown total
        """
        job_skills = list(dict.fromkeys(s for s in job.required_skills if s and s.strip()))

        # Step 1: Nothing to compare against
        if resume is None or resume.is_empty:
            return self._empty_match(job, job_skills)

        # Step 2: Skill overlap
        resume_keys = {skill_key(s) for s in resolve_resume_skills(resume, self.vocabulary)}
        matching = [s for s in job_skills if skill_key(s) in resume_keys]
        missing = [s for s in job_skills if skill_key(s) not in resume_keys]
        skill_points = (
            round_half_up(SKILL_OVERLAP_WEIGHT * len(matching) / len(job_skills)) if job_skills else 0
        )

        # Step 3: Semantic similarity
        narrative = resume.narrative.strip()
        description = (job.description_clean or job.description_raw).strip()
        similarity = 0.0
        if narrative and description:
            similarity = clamp_unit(self.similarity.similarity(narrative, description))
        semantic_points = round_half_up(SEMANTIC_WEIGHT * similarity)

        # Step 4: Project relevance
        project_points, recommended = self._project_relevance(resume, job_skills)

        # Step 5: Risk
        risk_points, risk_flags = self._risk(job)

        # Step 6: Assemble
        breakdown = ScoreBreakdown(
            skill_overlap=min(SKILL_OVERLAP_WEIGHT, skill_points),
            semantic_similarity=min(SEMANTIC_WEIGHT, semantic_points),
            project_relevance=min(PROJECT_WEIGHT, project_points),
            risk_penalty=risk_points,
        )

        match = JobMatch(
            owner_id=job.owner_id,
            job_key=job.job_key,
            score_total=breakdown.total,
            score_breakdown=breakdown,
            matching_skills=matching,
            missing_skills=missing,
            matching_bullets=self._matching_bullets(resume.bullets, job_skills),
            recommended_projects=recommended,
            why_match=self._explain(matching, job_skills, semantic_points, recommended, risk_flags),
            risk_flags=risk_flags,
            scored_at=self.clock(),
        )

        self.logger.debug(
            f"Scored job {job.job_key[:12]}: {match.score_total}",
            extra={
                "event": "scorer.job.scored",
                "job_key": job.job_key,
                "score_total": match.score_total,
                "skill_overlap": breakdown.skill_overlap,
                "semantic_similarity": breakdown.semantic_similarity,
                "project_relevance": breakdown.project_relevance,
                "risk_penalty": breakdown.risk_penalty,
            },
        )
        return match

    def _empty_match(self, job: Job, job_skills: List[str]) -> JobMatch:
        return JobMatch(
            owner_id=job.owner_id,
            job_key=job.job_key,
            score_total=0,
            score_breakdown=ScoreBreakdown(),
            missing_skills=job_skills,
            why_match="No resume skills or experience to compare against.",
            scored_at=self.clock(),
        )

    @staticmethod
    def _project_relevance(resume: Resume, job_skills: List[str]) -> Tuple[int, List[str]]:
        """Points for projects using job skills, and the project names by overlap."""
        if not job_skills:
            return 0, []

        job_keys = {skill_key(s) for s in job_skills}
        overlaps = []
        for project in resume.projects:
            techs = {skill_key(t) for t in project.technologies if t and t.strip()}
            hits = len(techs & job_keys)
            if hits:
                overlaps.append((project.name, hits))

        total_hits = sum(hits for _, hits in overlaps)
        points = round_half_up(PROJECT_WEIGHT * min(1.0, total_hits / len(job_keys)))
        ranked = sorted(overlaps, key=lambda item: item[1], reverse=True)
        return points, [name for name, _ in ranked[:MAX_RECOMMENDED_PROJECTS]]

    def _risk(self, job: Job) -> Tuple[int, List[str]]:
        penalty = 0
        flags: List[str] = []

        if self.require_sponsorship:
            if job.visa_sponsorship == "no":
                penalty += VISA_REFUSED_PENALTY
                flags.append("Posting does not offer visa sponsorship")
            elif job.visa_sponsorship == "unknown":
                penalty += VISA_UNKNOWN_PENALTY
                flags.append("Visa sponsorship is not mentioned")

        haystack = f"{job.title}\n{job.description_clean or job.description_raw}".lower()
        for keyword in self.exclude_keywords:
            if keyword in haystack:
                penalty += EXCLUDE_KEYWORD_PENALTY
                flags.append(f"Mentions excluded keyword '{keyword}'")

        return min(MAX_RISK_PENALTY, penalty), flags

    @staticmethod
    def _matching_bullets(bullets: List[str], job_skills: List[str]) -> List[str]:
        """Bullets mentioning job skills, most skills first, original order on ties."""
        lowered = [s.lower() for s in job_skills]
        scored = []
        for bullet in bullets:
            text = bullet.lower()
            hits = sum(1 for skill in lowered if skill in text)
            if hits:
                scored.append((bullet, hits))
        scored.sort(key=lambda item: item[1], reverse=True)
        return [bullet for bullet, _ in scored[:MAX_MATCHING_BULLETS]]

    @staticmethod
    def _explain(
        matching: List[str],
        job_skills: List[str],
        semantic_points: int,
        recommended: List[str],
        risk_flags: List[str],
    ) -> str:
        parts = []
        if job_skills:
            line = f"Matches {len(matching)} of {len(job_skills)} required skills"
            if matching:
                line += f" ({', '.join(matching[:5])})"
            parts.append(line + ".")
        else:
            parts.append("The posting lists no recognised skills.")

        if semantic_points >= 21:
            parts.append("Experience closely aligns with the job description.")
        elif semantic_points >= 10:
            parts.append("Experience partly aligns with the job description.")

        if recommended:
            parts.append(f"Relevant projects: {', '.join(recommended)}.")
        if risk_flags:
            parts.append(f"Risks: {'; '.join(risk_flags)}.")
        return " ".join(parts)
