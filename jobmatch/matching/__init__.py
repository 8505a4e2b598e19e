"""Match scoring, similarity backends and read-time categorization.

This package provides:
- MatchScorer: the four-part 0-100 score for a (resume, job) pair
- preliminary_score: skill-overlap percentage computed at ingestion time
- SimilarityProvider and its lexical and embedding implementations
- categorize / rank_jobs / group_by_category for display
"""

from .categories import (
    CATEGORY_LABELS,
    GOOD_MATCH_THRESHOLD,
    TOP_PICK_THRESHOLD,
    Category,
    JobListing,
    categorize,
    group_by_category,
    rank_jobs,
)
from .scorer import MatchScorer, preliminary_score, resolve_resume_skills, round_half_up
from .similarity import (
    LexicalSimilarity,
    OpenAIEmbeddingSimilarity,
    SimilarityProvider,
    build_similarity,
)

__all__ = [
    "CATEGORY_LABELS",
    "GOOD_MATCH_THRESHOLD",
    "TOP_PICK_THRESHOLD",
    "Category",
    "JobListing",
    "categorize",
    "group_by_category",
    "rank_jobs",
    "MatchScorer",
    "preliminary_score",
    "resolve_resume_skills",
    "round_half_up",
    "LexicalSimilarity",
    "OpenAIEmbeddingSimilarity",
    "SimilarityProvider",
    "build_similarity",
]
