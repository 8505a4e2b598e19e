"""Heuristic conversion of raw search results into structured job records.

The parser never raises for bad input. Each field has its own extractor; if an
extractor fails the field falls back to a conservative default and a warning
is logged, so the worst case is a low-confidence record rather than an error.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from jobmatch.domain.models import MAX_DESCRIPTION_LENGTH, ParsedJob, RemoteType, VisaSponsorship
from jobmatch.logging import get_logger
from jobmatch.search.client import RawResult
from jobmatch.utils.hashing import normalize_url
from jobmatch.utils.timestamps import ensure_utc, utc_now
from jobmatch.vocabulary.ats import (
    CUSTOM_ATS,
    company_slug_from_url,
    detect_ats_type,
    extract_external_id,
    humanize_slug,
)
from jobmatch.vocabulary.skills import DEFAULT_VOCABULARY, SkillVocabulary

from .text import (
    clean_html,
    collapse_whitespace,
    extract_posted_at,
    extract_salary_range,
    extract_years_experience,
)

logger = get_logger(__name__, component="parser")

UNKNOWN_COMPANY = "Unknown Company"
UNTITLED_JOB = "Untitled Job"
DEFAULT_LOCATION = "Remote"
MAX_TITLE_LENGTH = 500

VISA_PHRASES: Tuple[str, ...] = ("visa sponsorship", "sponsor visa", "h1b")
REMOTE_PHRASES: Tuple[str, ...] = ("remote", "work from home", "work-from-home", "wfh")

_NAME = r"[A-Z][A-Za-z0-9&.\-]*(?:\s+[A-Z][A-Za-z0-9&.\-]*){0,4}?"
_COMPANY_HIRING = re.compile(rf"\b({_NAME})\s+is\s+(?:hiring|looking|seeking)\b")
_COMPANY_AT = re.compile(rf"(?:\bat|@)\s+({_NAME})(?:\s+is\b|\s+seeks\b|\s+-|\.|,)")
_NOT_A_COMPANY = frozenset({"we", "the", "our", "this", "you", "it", "team", "who"})

_LOCATED_IN = re.compile(r"(?:located in|based in|office in)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)")
_CITY_STATE = re.compile(r"\b([A-Z][a-z]+(?:\s[A-Z][a-z]+)?,\s*([A-Z]{2}))\b")
US_STATE_CODES = frozenset(
    """
    AL AK AZ AR CA CO CT DE FL GA HI ID IL IN IA KS KY LA ME MD MA MI MN MS MO MT NE
    NV NH NJ NM NY NC ND OH OK OR PA RI SC SD TN TX UT VT VA WA WV WI WY DC
    """.split()
)


@dataclass(frozen=True)
class ParseContext:
    """What the user asked for, used to resolve ambiguous fields.

    Attributes:
        location_terms: Requested locations, matched against the content first
        work_type: The single requested work type (remote/hybrid/onsite), if any
        fallback_location: Location used when nothing is found in the content
        scanned_at: Reference time for relative "posted N days ago" phrases
        job_source: Name of the search provider
    """

    location_terms: Tuple[str, ...] = ()
    work_type: Optional[str] = None
    fallback_location: Optional[str] = None
    scanned_at: datetime = field(default_factory=utc_now)
    job_source: str = "tavily"


class ResultParser:
    """Turns :class:`RawResult` documents into :class:`ParsedJob` records."""

    def __init__(
        self,
        vocabulary: SkillVocabulary = DEFAULT_VOCABULARY,
        logger_instance: Optional[logging.LoggerAdapter] = None,
    ):
        self.vocabulary = vocabulary
        self.logger = logger_instance or logger

    def parse(self, raw: RawResult, context: Optional[ParseContext] = None) -> ParsedJob:
        """Parse one raw result. Never raises."""
        context = context or ParseContext()
        raw_url = raw.url if isinstance(raw.url, str) else ""
        content = raw.content if isinstance(raw.content, str) else ""

        def safe(name: str, extractor: Callable[[], Any], default: Any) -> Any:
            try:
                return extractor()
            except Exception as e:
                self.logger.warning(
                    f"Could not extract {name}; using default",
                    extra={
                        "event": "parser.field.defaulted",
                        "field": name,
                        "url": raw_url,
                        "error_type": type(e).__name__,
                        "error": str(e),
                    },
                )
                return default

        url = safe("url", lambda: normalize_url(raw_url), raw_url.strip())
        ats_type = safe("ats_type", lambda: detect_ats_type(url), CUSTOM_ATS)

        fields = {
            "url": url,
            "title": safe("title", lambda: self._extract_title(raw.title), UNTITLED_JOB),
            "company": safe("company", lambda: self.extract_company(url, content), UNKNOWN_COMPANY),
            "location": safe(
                "location",
                lambda: self.extract_location(content, context),
                context.fallback_location or DEFAULT_LOCATION,
            ),
            "remote_type": safe(
                "remote_type",
                lambda: self.extract_remote_type(content, context.work_type),
                RemoteType.ONSITE,
            ),
            "description_raw": content[:MAX_DESCRIPTION_LENGTH],
            "description_clean": safe(
                "description_clean", lambda: clean_html(content)[:MAX_DESCRIPTION_LENGTH], ""
            ),
            "required_skills": safe("required_skills", lambda: self.vocabulary.match(content), []),
            "ats_type": ats_type,
            "external_id": safe("external_id", lambda: extract_external_id(url, ats_type), None),
            "posted_at": safe(
                "posted_at", lambda: extract_posted_at(content, ensure_utc(context.scanned_at)), None
            ),
            "years_experience": safe("years_experience", lambda: extract_years_experience(content), None),
            "salary_range": safe("salary_range", lambda: extract_salary_range(content), None),
            "job_source": context.job_source,
        }

        visa_found = safe("visa_sponsorship", lambda: self.find_visa_phrases(content), [])
        fields["visa_keywords_found"] = visa_found
        fields["visa_sponsorship"] = VisaSponsorship.YES if visa_found else VisaSponsorship.UNKNOWN

        try:
            parsed = ParsedJob(**fields)
        except ValidationError as e:
            self.logger.warning(
                "Parsed fields failed validation; keeping only the URL",
                extra={"event": "parser.record.degraded", "url": url, "error": str(e)},
            )
            parsed = ParsedJob(url=url, ats_type=ats_type, job_source=context.job_source)

        self.logger.debug(
            "Parsed search result",
            extra={
                "event": "parser.record.parsed",
                "url": parsed.url,
                "company": parsed.company,
                "ats_type": parsed.ats_type,
                "skill_count": len(parsed.required_skills),
            },
        )
        return parsed

    def parse_many(
        self, raws: Iterable[RawResult], context: Optional[ParseContext] = None
    ) -> List[ParsedJob]:
        return [self.parse(raw, context) for raw in raws]

    @staticmethod
    def _extract_title(title: Optional[str]) -> str:
        cleaned = collapse_whitespace(clean_html(title))
        return cleaned[:MAX_TITLE_LENGTH] or UNTITLED_JOB

    @staticmethod
    def extract_company(url: str, content: str) -> str:
        """Company from the ATS URL, else from hiring phrases in the content."""
        slug = company_slug_from_url(url)
        if slug:
            name = humanize_slug(slug)
            if name:
                return name

        for pattern in (_COMPANY_HIRING, _COMPANY_AT):
            for found in pattern.finditer(content or ""):
                name = found.group(1).strip().rstrip(".").strip()
                if name and name.lower() not in _NOT_A_COMPANY:
                    return name
        return UNKNOWN_COMPANY

    @staticmethod
    def extract_location(content: str, context: ParseContext) -> str:
        """Requested location found in the content, else a pattern match, else the fallback."""
        lowered = (content or "").lower()
        for term in context.location_terms:
            if term and term.lower() in lowered:
                return term

        found = _LOCATED_IN.search(content or "")
        if found:
            return found.group(1).strip()

        # "Rust, Go, CI/CD" also looks like "City, ST"
        for found in _CITY_STATE.finditer(content or ""):
            if found.group(2) in US_STATE_CODES:
                return found.group(1).strip()

        return context.fallback_location or DEFAULT_LOCATION

    @staticmethod
    def extract_remote_type(content: str, requested: Optional[str]) -> RemoteType:
        """remote, then hybrid, otherwise onsite. Never ``unknown``.

        Only the requested work type and the content count; titles are ignored.
        """
        text = (content or "").lower()
        requested = (requested or "").lower()
        if requested == "remote" or any(phrase in text for phrase in REMOTE_PHRASES):
            return RemoteType.REMOTE
        if requested == "hybrid" or "hybrid" in text:
            return RemoteType.HYBRID
        return RemoteType.ONSITE

    @staticmethod
    def find_visa_phrases(content: str) -> List[str]:
        lowered = (content or "").lower()
        return [phrase for phrase in VISA_PHRASES if phrase in lowered]
