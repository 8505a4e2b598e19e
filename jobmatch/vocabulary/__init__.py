"""Shared constant tables: the skill vocabulary and the ATS vendor table."""

from .ats import (
    ATS_VENDORS,
    CUSTOM_ATS,
    JOB_BOARD_DOMAINS,
    company_slug_from_url,
    detect_ats_type,
    extract_external_id,
    humanize_slug,
)
from .skills import (
    DEFAULT_VOCABULARY,
    SKILL_TERMS,
    SkillVocabulary,
    extract_top_skills,
    skill_key,
)

__all__ = [
    "ATS_VENDORS",
    "CUSTOM_ATS",
    "JOB_BOARD_DOMAINS",
    "company_slug_from_url",
    "detect_ats_type",
    "extract_external_id",
    "humanize_slug",
    "DEFAULT_VOCABULARY",
    "SKILL_TERMS",
    "SkillVocabulary",
    "extract_top_skills",
    "skill_key",
]
