"""Text clean-up and small field extractors used by the result parser."""

import html
import re
from datetime import datetime, timedelta
from typing import Optional

_BR = re.compile(r"<br\s*/?>", re.IGNORECASE)
_PARAGRAPH_END = re.compile(r"</p>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]+>")

_POSTED_DAYS = re.compile(r"posted\s+(\d{1,3})\+?\s+days?\s+ago", re.IGNORECASE)
_POSTED_HOURS = re.compile(r"posted\s+(\d{1,2})\+?\s+hours?\s+ago", re.IGNORECASE)
_POSTED_TODAY = re.compile(r"\b(?:posted\s+today|just\s+posted)\b", re.IGNORECASE)
_POSTED_YESTERDAY = re.compile(r"\bposted\s+yesterday\b", re.IGNORECASE)

_YEARS_EXPERIENCE = re.compile(
    r"(\d{1,2})\s*\+?\s*(?:-\s*\d{1,2}\s*)?years?\s+(?:of\s+)?"
    r"(?:professional\s+|relevant\s+|industry\s+|hands-on\s+)?experience",
    re.IGNORECASE,
)

_MONEY = r"\$\s?\d{1,3}(?:,\d{3})*(?:\.\d+)?\s?[kK]?"
_SALARY_RANGE = re.compile(rf"{_MONEY}\s*(?:-|–|—|to)\s*{_MONEY}")


def clean_html(text: Optional[str]) -> str:
    """Strip tags, decode entities and normalise whitespace.

    ``<br>`` becomes a newline and ``</p>`` a paragraph break; runs of spaces
    collapse to one and runs of blank lines to a single blank line.
    """
    if not text:
        return ""

    cleaned = html.unescape(text)
    cleaned = _BR.sub("\n", cleaned)
    cleaned = _PARAGRAPH_END.sub("\n\n", cleaned)
    cleaned = _TAG.sub(" ", cleaned)
    cleaned = re.sub(r"[ \t\r\f\v]+", " ", cleaned)
    cleaned = re.sub(r" ?\n ?", "\n", cleaned)
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
    return cleaned.strip()


def collapse_whitespace(text: Optional[str]) -> str:
    """Trim and collapse every whitespace run to a single space."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()


def extract_posted_at(content: Optional[str], now: datetime) -> Optional[datetime]:
    """Approximate posting time from relative phrases such as "posted 3 days ago"."""
    if not content:
        return None

    found = _POSTED_DAYS.search(content)
    if found:
        return now - timedelta(days=int(found.group(1)))
    found = _POSTED_HOURS.search(content)
    if found:
        return now - timedelta(hours=int(found.group(1)))
    if _POSTED_YESTERDAY.search(content):
        return now - timedelta(days=1)
    if _POSTED_TODAY.search(content):
        return now
    return None


def extract_years_experience(content: Optional[str]) -> Optional[int]:
    """Smallest "N years of experience" requirement mentioned, if any."""
    if not content:
        return None
    values = [int(m.group(1)) for m in _YEARS_EXPERIENCE.finditer(content)]
    values = [v for v in values if 0 <= v <= 50]
    return min(values) if values else None


def extract_salary_range(content: Optional[str]) -> Optional[str]:
    """First dollar range such as ``$120,000 - $150,000`` or ``$90k to $110k``."""
    if not content:
        return None
    found = _SALARY_RANGE.search(content)
    return collapse_whitespace(found.group(0)) if found else None
