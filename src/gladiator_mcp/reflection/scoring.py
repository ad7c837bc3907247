"""
Overlap scoring between an observation group and existing artifacts.

IDF-weighted: every non-generic word shared by the group and an artifact adds
1 / document_frequency(word), so a word unique to one artifact adds 1.0 and a
word shared by three adds 0.33. A tag that is a substring of the artifact
name (or the other way round) adds a flat bonus of 5.0.

A score of 3.0 qualifies an artifact as an update target, which is roughly:
  - 1 name match alone (5.0), OR
  - 3 keywords each unique to one artifact, OR
  - 9 keywords each in 3 artifacts (9 * 0.33 = 3.0)
"""

import logging
import math
from dataclasses import dataclass

from .clustering import ObservationGroup
from .corpus import CorpusIndex
from .scanner import ExistingArtifact, tokenize

logger = logging.getLogger(__name__)

DEFAULT_MATCH_THRESHOLD = 3.0
DEFAULT_NAME_MATCH_BONUS = 5.0
DEFAULT_MAX_TARGETS = 2


@dataclass
class ArtifactMatch:
    """An existing artifact and its overlap score with a group."""

    artifact: ExistingArtifact
    score: float


def group_words(group: ObservationGroup) -> set[str]:
    """Lowercased tags plus every keyword-length token of member summaries and recommendations."""
    words = {t.lower() for t in group.tags}
    for obs in group.observations:
        words.update(tokenize(obs.summary))
        words.update(tokenize(obs.recommendation))
    return words


def name_matches(group: ObservationGroup, artifact: ExistingArtifact) -> bool:
    """True if any tag contains the artifact name or is contained in it."""
    name = artifact.name.lower()
    if not name:
        return False
    for tag in group.tags:
        tag = tag.lower()
        if tag and (tag in name or name in tag):
            return True
    return False


def score_artifact(
    words: set[str],
    group: ObservationGroup,
    artifact: ExistingArtifact,
    index: CorpusIndex,
    name_bonus: float = DEFAULT_NAME_MATCH_BONUS,
) -> float:
    """
    Cumulative overlap score of one artifact against a group's word set.

    Args:
        words: Output of group_words(group)
        group: The observation group (for name matching)
        artifact: Candidate artifact
        index: Corpus index for document frequencies and the generic filter
        name_bonus: Flat bonus for a tag/name match

    Returns:
        Sum of 1/df over shared non-generic words, plus the bonus if names match
    """
    shared = index.relevant(words) & index.relevant(artifact.keywords)
    score = sum(1.0 / index.frequency(word) for word in shared)

    if name_matches(group, artifact):
        score += name_bonus

    return score


def _meets(score: float, threshold: float) -> bool:
    # Sums of 1/df (e.g. nine thirds) land a hair under the threshold in floating point
    return score >= threshold or math.isclose(score, threshold)


def find_overlapping_artifacts(
    group: ObservationGroup,
    artifacts: list[ExistingArtifact],
    index: CorpusIndex,
    match_threshold: float = DEFAULT_MATCH_THRESHOLD,
    name_bonus: float = DEFAULT_NAME_MATCH_BONUS,
    max_targets: int = DEFAULT_MAX_TARGETS,
) -> list[ArtifactMatch]:
    """
    Find existing artifacts a group should update instead of creating a new one.

    Args:
        group: Observation group from cluster_observations()
        artifacts: Existing artifacts from ArtifactScanner.scan_all()
        index: CorpusIndex built over the same artifacts
        match_threshold: Minimum score to qualify
        name_bonus: Flat bonus for a tag/name match
        max_targets: Maximum matches returned

    Returns:
        Best matches, highest score first; empty means "create new"
    """
    words = group_words(group)

    matches = []
    for artifact in artifacts:
        score = score_artifact(words, group, artifact, index, name_bonus)
        if score > 0:
            logger.debug(f"Overlap {group.suggested_name} ~ {artifact.type}/{artifact.name}: {score:.2f}")
        if _meets(score, match_threshold):
            matches.append(ArtifactMatch(artifact=artifact, score=score))

    matches.sort(key=lambda m: m.score, reverse=True)
    return matches[:max_targets]
