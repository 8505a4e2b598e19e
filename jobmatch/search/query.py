"""Search request validation and provider query composition."""

from typing import List, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError, field_validator

from jobmatch.vocabulary.ats import JOB_BOARD_DOMAINS

from .exceptions import InvalidInput

MAX_QUERY_SKILLS = 3
WORK_TYPES = ("remote", "hybrid", "onsite")
_WORK_TYPE_ALIASES = {"on-site": "onsite", "on site": "onsite", "in-office": "onsite", "wfh": "remote"}


class SearchParams(BaseModel):
    """What the user asked for."""

    role: str = Field(..., description="Role or title to search for")
    resume_text: Optional[str] = Field(
        None, description="Ad-hoc resume text; used instead of the stored resume when given"
    )
    location: Optional[str] = None
    states: List[str] = Field(default_factory=list)
    cities: List[str] = Field(default_factory=list)
    work_type: Optional[str] = None
    work_types: List[str] = Field(default_factory=list)
    days_ago: int = Field(7, ge=1, le=60, description="Recency window in days")

    @field_validator("role")
    @classmethod
    def role_not_blank(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("role must not be empty")
        return stripped

    @field_validator("location", "resume_text")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None

    @field_validator("states", "cities")
    @classmethod
    def strip_terms(cls, v: List[str]) -> List[str]:
        return [term.strip() for term in v if term and term.strip()]

    @field_validator("work_type")
    @classmethod
    def check_work_type(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return _normalize_work_type(v)

    @field_validator("work_types")
    @classmethod
    def check_work_types(cls, v: List[str]) -> List[str]:
        return [_normalize_work_type(item) for item in v if item and item.strip()]

    @property
    def location_terms(self) -> List[str]:
        """Cities, then states, then the free-form location, without duplicates."""
        terms: List[str] = []
        seen = set()
        for term in [*self.cities, *self.states, *([self.location] if self.location else [])]:
            if term.lower() not in seen:
                seen.add(term.lower())
                terms.append(term)
        return terms

    @property
    def work_type_terms(self) -> List[str]:
        terms: List[str] = []
        for term in [*([self.work_type] if self.work_type else []), *self.work_types]:
            if term not in terms:
                terms.append(term)
        return terms

    @property
    def single_work_type(self) -> Optional[str]:
        """The requested work type when exactly one was asked for."""
        terms = self.work_type_terms
        return terms[0] if len(terms) == 1 else None


def _normalize_work_type(value: str) -> str:
    key = value.strip().lower()
    key = _WORK_TYPE_ALIASES.get(key, key)
    if key not in WORK_TYPES:
        raise ValueError(f"work type must be one of {', '.join(WORK_TYPES)}, got '{value}'")
    return key


def validate_search_params(data) -> SearchParams:
    """Build SearchParams from a mapping (or pass one through), raising InvalidInput."""
    if isinstance(data, SearchParams):
        return data
    try:
        return SearchParams.model_validate(data)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}" for error in e.errors()
        ]
        raise InvalidInput("Invalid search parameters", errors=errors) from e


def _recency_phrase(days: int) -> str:
    if days <= 0:
        return '"posted today"'
    if days == 1:
        return '"posted 1 day ago"'
    return f'"posted {days} days ago"'


def build_query(
    role: str,
    skills: Optional[Sequence[str]] = None,
    location_terms: Optional[Sequence[str]] = None,
    work_type_terms: Optional[Sequence[str]] = None,
    days_ago: int = 7,
) -> str:
    """Compose the free-text query sent to the search provider.

    The provider has no structured filters, so every constraint is phrased in
    the query itself and the result set is expected to be over-broad.

    Example:
        >>> build_query("Backend Engineer", ["Python"], ["Austin"], ["remote"], 7)
        '(site:greenhouse.io OR site:lever.co OR site:ashbyhq.com OR site:workday.com) Backend Engineer (Python) ("Austin") (remote) "posted 7 days ago" OR "posted 6 days ago"'

    Raises:
        InvalidInput: If ``role`` is empty.
    """
    role = (role or "").strip()
    if not role:
        raise InvalidInput("A role is required to build a search query", errors=["role: empty"])

    site_filter = " OR ".join(f"site:{domain}" for domain in JOB_BOARD_DOMAINS)
    query = f"({site_filter}) {role}"

    skill_terms = [s.strip() for s in (skills or []) if s and s.strip()][:MAX_QUERY_SKILLS]
    if skill_terms:
        query += f" ({' OR '.join(skill_terms)})"

    locations = [t.strip().replace('"', "") for t in (location_terms or []) if t and t.strip()]
    if locations:
        query += " (" + " OR ".join(f'"{term}"' for term in locations) + ")"

    work_types = [t.strip().lower() for t in (work_type_terms or []) if t and t.strip()]
    if work_types:
        query += f" ({' OR '.join(work_types)})"

    window = max(1, int(days_ago))
    query += f" {_recency_phrase(window)} OR {_recency_phrase(window - 1)}"
    return query
