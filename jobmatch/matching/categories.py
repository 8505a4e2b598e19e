"""Read-time display tiers and ranking for scored jobs.

Tiers are never stored; they are recomputed from the score so the thresholds
can change without touching data.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterable, List, Optional

from jobmatch.domain.models import Application, Job, JobMatch

TOP_PICK_THRESHOLD = 80
GOOD_MATCH_THRESHOLD = 60

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class Category(str, Enum):
    """Display tier, ordered from best to worst."""

    TOP_PICK = "top_pick"
    GOOD_MATCH = "good_match"
    SLIGHT_MATCH = "slight_match"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]

    @property
    def rank(self) -> int:
        """0 for the best tier."""
        return list(Category).index(self)


CATEGORY_LABELS = {
    Category.TOP_PICK: "Top Pick",
    Category.GOOD_MATCH: "Good Match",
    Category.SLIGHT_MATCH: "Worth Exploring",
}


def categorize(score: Optional[int]) -> Category:
    """Tier for a 0-100 score; a missing score is the lowest tier."""
    if score is None:
        return Category.SLIGHT_MATCH
    if score >= TOP_PICK_THRESHOLD:
        return Category.TOP_PICK
    if score >= GOOD_MATCH_THRESHOLD:
        return Category.GOOD_MATCH
    return Category.SLIGHT_MATCH


@dataclass
class JobListing:
    """A stored job with its match and application, as shown to the owner."""

    job: Job
    match: Optional[JobMatch] = None
    application: Optional[Application] = None

    @property
    def effective_score(self) -> int:
        """Full match score when scored, else the preliminary score, else 0."""
        if self.match is not None:
            return self.match.score_total
        return self.job.match_score or 0

    @property
    def category(self) -> Category:
        return categorize(self.effective_score)

    def to_dict(self) -> Dict:
        return {
            "job_key": self.job.job_key,
            "title": self.job.title,
            "company": self.job.company,
            "location": self.job.location,
            "remote_type": self.job.remote_type,
            "url": self.job.url,
            "score": self.effective_score,
            "category": self.category.value,
            "category_label": self.category.label,
            "posted_at": self.job.posted_at.isoformat() if self.job.posted_at else None,
            "application_status": self.application.status if self.application else None,
            "why_match": self.match.why_match if self.match else None,
        }


def rank_jobs(
    views: Iterable,
    min_score: int = 0,
    category: Optional[str] = None,
    remote_only: bool = False,
) -> List[JobListing]:
    """Filter and order jobs for display.

    Sort order is effective score descending, then ``posted_at`` descending
    (undated jobs last); anything still tied keeps its input order.

    Args:
        views: JobListing objects or ``(job, match, application)`` tuples
        min_score: Drop jobs scoring below this
        category: Keep only this tier (e.g. "top_pick")
        remote_only: Keep only remote jobs

    Returns:
        Ordered list of JobListing
    """
    wanted = Category(category) if category else None

    listings = []
    for view in views:
        listing = view if isinstance(view, JobListing) else JobListing(*view)
        if listing.effective_score < min_score:
            continue
        if wanted is not None and listing.category != wanted:
            continue
        if remote_only and listing.job.remote_type != "remote":
            continue
        listings.append(listing)

    return sorted(
        listings,
        key=lambda item: (-item.effective_score, -(item.job.posted_at or _EPOCH).timestamp()),
    )


def group_by_category(listings: Iterable[JobListing]) -> Dict[Category, List[JobListing]]:
    """Bucket listings by tier, preserving their order; every tier is present."""
    groups: Dict[Category, List[JobListing]] = {c: [] for c in Category}
    for listing in listings:
        groups[listing.category].append(listing)
    return groups
