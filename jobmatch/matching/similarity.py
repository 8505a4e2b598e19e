"""Semantic similarity between a resume narrative and a job description.

The scorer only depends on :class:`SimilarityProvider`. ``LexicalSimilarity``
is a deterministic local default; ``OpenAIEmbeddingSimilarity`` calls a hosted
embedding model and carries no determinism guarantee.
"""

import math
import re
from abc import ABC, abstractmethod
from collections import Counter
from typing import Dict, List, Sequence

import requests

from jobmatch.config.exceptions import ConfigurationError
from jobmatch.logging import get_logger
from jobmatch.search.exceptions import UpstreamUnavailable

logger = get_logger(__name__, component="similarity")

OPENAI_EMBEDDINGS_URL = "https://api.openai.com/v1/embeddings"
# Embedding inputs are capped well below the model's token limit
MAX_EMBEDDING_CHARS = 8000

_TOKEN = re.compile(r"[a-z0-9][a-z0-9+#.\-]*")
_STOPWORDS = frozenset(
    """
    a an and are as at be but by for from has have in into is it its of on or our
    that the their this to was we were will with you your they them who what when
    where which while about across all also any can more most other over such than
    very work working team teams role roles job including include includes using use
    """.split()
)


def cosine(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors; 0.0 when either is all zeros."""
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if not norm_a or not norm_b:
        return 0.0
    return dot / (norm_a * norm_b)


def clamp_unit(value: float) -> float:
    """Clamp to [0, 1]; NaN becomes 0."""
    if value != value:
        return 0.0
    return max(0.0, min(1.0, float(value)))


class SimilarityProvider(ABC):
    """Returns a similarity in [0, 1] for two texts."""

    name: str = "similarity"

    @abstractmethod
    def similarity(self, resume_narrative: str, job_description: str) -> float:
        pass


class LexicalSimilarity(SimilarityProvider):
    """Cosine similarity of stopword-filtered term-frequency vectors."""

    name = "lexical"

    def similarity(self, resume_narrative: str, job_description: str) -> float:
        left = self._vectorize(resume_narrative)
        right = self._vectorize(job_description)
        if not left or not right:
            return 0.0

        vocabulary = sorted(set(left) | set(right))
        return clamp_unit(
            cosine([left.get(t, 0) for t in vocabulary], [right.get(t, 0) for t in vocabulary])
        )

    @staticmethod
    def _vectorize(text: str) -> Dict[str, int]:
        tokens = (t.rstrip(".-") for t in _TOKEN.findall((text or "").lower()))
        return Counter(t for t in tokens if len(t) > 1 and t not in _STOPWORDS)


class OpenAIEmbeddingSimilarity(SimilarityProvider):
    """Cosine similarity of OpenAI embeddings, fetched with one request per pair."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        timeout: int = 30,
        user_agent: str = "JobMatch/0.1",
        endpoint: str = OPENAI_EMBEDDINGS_URL,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ConfigurationError.missing_credentials("OPENAI_API_KEY", "Embedding provider")
        self.model = model
        self.timeout = timeout
        self.endpoint = endpoint
        self._session = requests.Session()
        self._session.headers.update(
            {"Authorization": f"Bearer {api_key.strip()}", "User-Agent": user_agent}
        )

    def similarity(self, resume_narrative: str, job_description: str) -> float:
        vectors = self._embed([resume_narrative[:MAX_EMBEDDING_CHARS], job_description[:MAX_EMBEDDING_CHARS]])
        return clamp_unit(cosine(vectors[0], vectors[1]))

    def _embed(self, texts: List[str]) -> List[List[float]]:
        try:
            response = self._session.post(
                self.endpoint, json={"model": self.model, "input": texts}, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.warning(
                f"Embedding request failed: {e}",
                extra={"event": "similarity.request.error", "error_type": type(e).__name__},
            )
            raise UpstreamUnavailable(
                f"Embedding request failed: {e}", url=self.endpoint, provider=self.name
            ) from e

        if response.status_code in (401, 403):
            raise ConfigurationError.rejected_credentials(
                "OPENAI_API_KEY", "Embedding provider", response.status_code
            )
        if response.status_code >= 400:
            logger.warning(
                f"HTTP {response.status_code} error from embedding provider",
                extra={"event": "similarity.request.error", "status_code": response.status_code},
            )
            raise UpstreamUnavailable(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                url=self.endpoint,
                provider=self.name,
            )

        try:
            data = response.json()["data"]
            vectors = [item["embedding"] for item in sorted(data, key=lambda d: d.get("index", 0))]
        except (ValueError, KeyError, TypeError) as e:
            raise UpstreamUnavailable(
                f"Malformed embedding response: {e}",
                status_code=response.status_code,
                url=self.endpoint,
                provider=self.name,
            ) from e

        if len(vectors) != len(texts):
            raise UpstreamUnavailable(
                f"Expected {len(texts)} embeddings, got {len(vectors)}",
                url=self.endpoint,
                provider=self.name,
            )
        return vectors


def build_similarity(app_config, env_config) -> SimilarityProvider:
    """Create the similarity backend selected by ``scoring.similarity``.

    Raises:
        ConfigurationError: If the embedding backend is selected without a key.
    """
    if app_config.scoring.similarity == "openai":
        return OpenAIEmbeddingSimilarity(
            api_key=env_config.require_openai_key(),
            model=app_config.scoring.embedding_model,
            timeout=app_config.advanced.http_request_timeout,
            user_agent=app_config.advanced.user_agent,
        )
    return LexicalSimilarity()
