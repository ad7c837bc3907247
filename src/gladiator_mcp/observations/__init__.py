"""
Observation recording: models, the append-only log, admission checks and
auto-classification.

Flow for a new observation:
    quality gate -> dedup window -> classify (if needed) -> ObservationStore.append
"""

from .classifier import classify_artifact, default_recommendation
from .dedup import fingerprint, is_duplicate, passes_quality_gate
from .models import (
    MIN_SUMMARY_LENGTH,
    ArtifactType,
    Observation,
    ObservationContext,
    ObservationSource,
)
from .store import ObservationStore

__all__ = [
    # Models
    "MIN_SUMMARY_LENGTH",
    "ArtifactType",
    "Observation",
    "ObservationContext",
    "ObservationSource",
    # Store
    "ObservationStore",
    # Admission
    "fingerprint",
    "is_duplicate",
    "passes_quality_gate",
    # Classification
    "classify_artifact",
    "default_recommendation",
]
