"""
Corpus index over the existing artifacts.

Counts, for every keyword, how many artifacts contain it (document
frequency). Keywords found in more than `generic_ratio` of all artifacts are
generic and excluded from matching, so the stopword list derives itself from
the user's own corpus instead of a fixed dictionary.
"""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from .scanner import ExistingArtifact

DEFAULT_GENERIC_RATIO = 0.4


@dataclass
class CorpusIndex:
    """Document frequencies for one reflection pass."""

    doc_freq: dict[str, int] = field(default_factory=dict)
    threshold: float = 0.0  # generic_ratio * total
    total: int = 0

    def frequency(self, word: str) -> int:
        return self.doc_freq.get(word, 0)

    def is_generic(self, word: str) -> bool:
        """True when the word appears in more artifacts than the threshold allows."""
        return self.frequency(word) > self.threshold

    def relevant(self, words: Iterable[str]) -> set[str]:
        """Filter out generic words."""
        return {w for w in words if not self.is_generic(w)}

    def generic_keywords(self) -> list[str]:
        return sorted(w for w in self.doc_freq if self.is_generic(w))


def build_corpus_index(
    artifacts: list[ExistingArtifact], generic_ratio: float = DEFAULT_GENERIC_RATIO
) -> CorpusIndex:
    """
    Build a document-frequency index across all discovered artifacts.

    Each keyword counts once per artifact, however often it occurs there.

    Args:
        artifacts: Artifacts from ArtifactScanner.scan_all()
        generic_ratio: Share of artifacts above which a keyword is generic

    Returns:
        CorpusIndex with threshold = generic_ratio * len(artifacts)
    """
    doc_freq: Counter[str] = Counter()
    for artifact in artifacts:
        doc_freq.update(set(artifact.keywords))

    return CorpusIndex(
        doc_freq=dict(doc_freq),
        threshold=len(artifacts) * generic_ratio,
        total=len(artifacts),
    )
