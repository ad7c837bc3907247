"""
Clustering of unprocessed observations by tag overlap.

Greedy first-fit: each observation joins the first open group whose founding
tag set has Jaccard similarity strictly above the threshold with its own
tags, otherwise it founds a new group. Untagged observations always end up
alone. Grouping depends on input order but is deterministic for a given order.

Order sensitivity is a deliberate simplification for small batches (tens of
observations). If order-independent grouping is ever needed, replace the
first-fit loop with union-find over the full pairwise similarity graph.
"""

import re
from collections import Counter
from dataclasses import dataclass, field

from ..observations.models import ArtifactType, Observation

DEFAULT_SIMILARITY_THRESHOLD = 0.3
MAX_NAME_LENGTH = 25

_SLUG_INVALID = re.compile(r"[^a-z0-9-]")


@dataclass
class ObservationGroup:
    """Observations judged related within one reflection pass."""

    observations: list[Observation]
    tags: list[str] = field(default_factory=list)  # Union of each member's sorted tags
    artifact_type: ArtifactType = ArtifactType.RULE  # Majority vote
    suggested_name: str = ""

    @property
    def size(self) -> int:
        return len(self.observations)


def jaccard(a: frozenset[str] | set[str], b: frozenset[str] | set[str]) -> float:
    """Intersection over union; two empty sets have similarity 0."""
    union = len(a | b)
    if union == 0:
        return 0.0
    return len(a & b) / union


def suggest_name(tags: list[str], fallback_id: str) -> str:
    """
    Slug from the first two tags, limited to [a-z0-9-] and 25 characters.

    Falls back to unnamed-<last 4 chars of fallback_id> when the tags leave
    nothing usable.
    """
    slug = _SLUG_INVALID.sub("", "-".join(tags[:2]).lower())[:MAX_NAME_LENGTH].strip("-")
    return slug or f"unnamed-{fallback_id[-4:]}"


def majority_type(observations: list[Observation]) -> ArtifactType:
    """Most common artifact type; ties go to the type seen first."""
    if not observations:
        return ArtifactType.RULE
    votes = Counter(o.artifact_type for o in observations)
    return votes.most_common(1)[0][0]


def partition(
    observations: list[Observation], threshold: float = DEFAULT_SIMILARITY_THRESHOLD
) -> list[list[Observation]]:
    """First-fit partition by tag Jaccard similarity against each group's founding tags."""
    buckets: list[tuple[frozenset[str], list[Observation]]] = []

    for obs in observations:
        tags = frozenset(obs.tags)
        for founding_tags, members in buckets:
            if jaccard(tags, founding_tags) > threshold:
                members.append(obs)
                break
        else:
            buckets.append((tags, [obs]))

    return [members for _, members in buckets]


def cluster_observations(
    observations: list[Observation], threshold: float = DEFAULT_SIMILARITY_THRESHOLD
) -> list[ObservationGroup]:
    """
    Cluster observations into groups by tag overlap.

    Args:
        observations: Observations in the order they should be considered
        threshold: Similarity a group's founding tags must exceed to absorb an observation

    Returns:
        Groups sorted by descending size (ties keep creation order)
    """
    groups = []
    for members in partition(observations, threshold):
        tags = list(dict.fromkeys(t for o in members for t in sorted(o.tags)))
        groups.append(
            ObservationGroup(
                observations=members,
                tags=tags,
                artifact_type=majority_type(members),
                suggested_name=suggest_name(tags, members[0].id),
            )
        )

    return sorted(groups, key=lambda g: g.size, reverse=True)
