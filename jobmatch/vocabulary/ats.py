"""Applicant tracking system vendors and job-board domains.

Everything that knows how a vendor shapes its posting URLs lives here: the
hostname table, the search allow-list, company inference from the URL and
external id extraction.
"""

import re
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

CUSTOM_ATS = "custom"

# Hostname suffix -> vendor. Checked in order, longest suffixes first where they overlap.
ATS_VENDORS: Tuple[Tuple[str, str], ...] = (
    ("greenhouse.io", "greenhouse"),
    ("lever.co", "lever"),
    ("ashbyhq.com", "ashby"),
    ("myworkdayjobs.com", "workday"),
    ("workday.com", "workday"),
)

# Domains the search query is restricted to with site: filters.
JOB_BOARD_DOMAINS: Tuple[str, ...] = (
    "greenhouse.io",
    "lever.co",
    "ashbyhq.com",
    "workday.com",
)

# Shared board hosts put the company in the first path segment instead of the subdomain.
SHARED_BOARD_SUBDOMAINS = frozenset({"boards", "job-boards", "jobs", "www", "apply", "careers"})
PATH_COMPANY_VENDORS = frozenset({"greenhouse", "lever", "ashby"})

_GREENHOUSE_JOB_ID = re.compile(r"/jobs/(\d+)")


def split_url(url: Optional[str]) -> Tuple[str, List[str], Dict[str, List[str]]]:
    """Return ``(hostname, path_segments, query)`` for a URL.

    Never raises; malformed input produces an empty hostname.
    """
    try:
        parts = urlsplit((url or "").strip())
        hostname = (parts.hostname or "").lower()
        segments = [segment for segment in parts.path.split("/") if segment]
        query = parse_qs(parts.query)
    except ValueError:
        return "", [], {}
    return hostname, segments, query


def _vendor_for_host(hostname: str) -> Optional[Tuple[str, str]]:
    for suffix, vendor in ATS_VENDORS:
        if hostname == suffix or hostname.endswith("." + suffix):
            return suffix, vendor
    return None


def detect_ats_type(url: Optional[str]) -> str:
    """Vendor name for a posting URL, or ``"custom"`` when the host is unknown."""
    hostname, _, _ = split_url(url)
    match = _vendor_for_host(hostname)
    return match[1] if match else CUSTOM_ATS


def company_slug_from_url(url: Optional[str]) -> Optional[str]:
    """Raw company identifier encoded in a known vendor URL.

    ``acme.wd5.myworkdayjobs.com`` -> ``acme``;
    ``boards.greenhouse.io/openai/jobs/1`` -> ``openai``.
    """
    hostname, segments, _ = split_url(url)
    match = _vendor_for_host(hostname)
    if not match:
        return None

    suffix, vendor = match
    subdomain = hostname[: -len(suffix)].rstrip(".")
    first_label = subdomain.split(".")[0] if subdomain else ""

    if vendor in PATH_COMPANY_VENDORS and (not first_label or first_label in SHARED_BOARD_SUBDOMAINS):
        return segments[0] if segments else None
    if first_label and first_label not in SHARED_BOARD_SUBDOMAINS:
        return first_label
    return None


def humanize_slug(slug: str) -> str:
    """``acme-corp`` -> ``Acme Corp``."""
    words = re.sub(r"[-_]+", " ", slug).split()
    return " ".join(words).title()


def extract_external_id(url: Optional[str], ats_type: Optional[str] = None) -> Optional[str]:
    """Vendor posting id embedded in the URL, or None.

    - greenhouse: numeric id after ``/jobs/`` (or the ``gh_jid`` query parameter)
    - lever: slug after the company segment, or after ``/positions/``
    - ashby: posting id after the company segment
    """
    hostname, segments, query = split_url(url)
    vendor = ats_type or detect_ats_type(url)

    if vendor == "greenhouse":
        found = _GREENHOUSE_JOB_ID.search("/" + "/".join(segments))
        if found:
            return found.group(1)
        gh_jid = query.get("gh_jid")
        if gh_jid and gh_jid[0].isdigit():
            return gh_jid[0]
        return None

    if vendor == "lever":
        if "positions" in segments:
            index = segments.index("positions")
            return segments[index + 1] if index + 1 < len(segments) else None
        if len(segments) >= 2 and segments[1] != "apply":
            return segments[1]
        return None

    if vendor == "ashby":
        if len(segments) >= 2 and segments[1] != "application":
            return segments[1]
        return None

    return None
