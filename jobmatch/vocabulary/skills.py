"""The fixed skill vocabulary shared by resume and job extraction."""

from typing import Iterable, List, Optional, Sequence, Tuple

# Order matters: extraction results follow this order, and the query builder
# takes the first few hits as its relevance bias.
SKILL_TERMS: Tuple[str, ...] = (
    "Python",
    "JavaScript",
    "TypeScript",
    "React",
    "Node.js",
    "Java",
    "C++",
    "C#",
    "AWS",
    "Azure",
    "GCP",
    "Docker",
    "Kubernetes",
    "Machine Learning",
    "AI",
    "Data Science",
    "SQL",
    "MongoDB",
    "PostgreSQL",
    "GraphQL",
    "REST API",
    "Git",
    "CI/CD",
    "Agile",
    "Scrum",
    "TensorFlow",
    "PyTorch",
    "Vue",
    "Angular",
    "Go",
    "Rust",
    "Swift",
    "Kotlin",
    "Flutter",
    "React Native",
    "DevOps",
)


def skill_key(skill: str) -> str:
    """Comparison key for skills: case-insensitive, whitespace-trimmed."""
    return skill.strip().lower()


class SkillVocabulary:
    """Plain substring matcher over an ordered list of skill terms.

    Matching is case-insensitive containment with no stemming or word
    boundaries, so short terms such as "Go" also hit inside longer words. The
    class is the seam for swapping in an ontology or embedding matcher; callers
    only depend on :meth:`match`.
    """

    def __init__(self, terms: Sequence[str] = SKILL_TERMS):
        seen = set()
        ordered = []
        for term in terms:
            key = skill_key(term)
            if key and key not in seen:
                seen.add(key)
                ordered.append(term.strip())
        self._terms: Tuple[str, ...] = tuple(ordered)

    @property
    def terms(self) -> Tuple[str, ...]:
        return self._terms

    def __len__(self) -> int:
        return len(self._terms)

    def __contains__(self, skill: object) -> bool:
        return isinstance(skill, str) and skill_key(skill) in {skill_key(t) for t in self._terms}

    def match(self, text: Optional[str], limit: Optional[int] = None) -> List[str]:
        """Vocabulary terms found in ``text``, in vocabulary order.

        Args:
            text: Free text to scan. None and empty strings yield no matches.
            limit: Stop after this many hits; None means no limit.
        """
        if not text or (limit is not None and limit <= 0):
            return []

        haystack = text.lower()
        found: List[str] = []
        for term in self._terms:
            if term.lower() in haystack:
                found.append(term)
                if limit is not None and len(found) >= limit:
                    break
        return found

    def canonicalize(self, skills: Iterable[str]) -> List[str]:
        """Map free-form skill names onto vocabulary spelling where they match exactly.

        Unknown skills are kept as given so hand-curated resume skills survive.
        """
        by_key = {skill_key(t): t for t in self._terms}
        result: List[str] = []
        seen = set()
        for skill in skills:
            key = skill_key(skill)
            if not key or key in seen:
                continue
            seen.add(key)
            result.append(by_key.get(key, skill.strip()))
        return result


DEFAULT_VOCABULARY = SkillVocabulary(SKILL_TERMS)


def extract_top_skills(
    text: Optional[str], count: int = 3, vocabulary: SkillVocabulary = DEFAULT_VOCABULARY
) -> List[str]:
    """First ``count`` vocabulary skills present in ``text``.

    Example:
        >>> extract_top_skills("Built React apps on AWS with Python", 2)
        ['Python', 'React']
    """
    return vocabulary.match(text, limit=count)
