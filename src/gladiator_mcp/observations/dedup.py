"""
Admission checks run before an observation is stored.

1. Quality gate: a correction with `before` but no `after` is rejected.
2. Deduplication: the summary fingerprint must not appear among the most
   recent observations.

The gate runs first, so malformed corrections never reach hashing.
The fingerprint is a fast approximate filter, not a security primitive;
8 hex characters of SHA-256 is plenty for a log of a few hundred records.
"""

import hashlib
from collections.abc import Iterable

from .models import Observation, ObservationContext

FINGERPRINT_LENGTH = 8


def fingerprint(summary: str) -> str:
    """SHA-256 prefix of the lowercased, trimmed summary."""
    normalized = summary.lower().strip()
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def passes_quality_gate(context: ObservationContext | None) -> bool:
    """False for corrections that say what was tried but not what worked."""
    return context is None or not context.is_incomplete_correction


def recent_fingerprints(recent: Iterable[Observation]) -> set[str]:
    return {fingerprint(o.summary) for o in recent}


def is_duplicate(summary: str, recent: Iterable[Observation]) -> tuple[bool, str]:
    """
    Check a summary against a window of recent observations.

    Args:
        summary: Candidate summary
        recent: The most recent stored observations (the dedup window)

    Returns:
        (duplicate, fingerprint) tuple; an empty window is never a duplicate
    """
    candidate = fingerprint(summary)
    return candidate in recent_fingerprints(recent), candidate
