"""Reflection engine - clustering observations and matching them to existing artifacts

Pipeline for one reflection pass:
    unprocessed observations -> cluster_observations()
    ArtifactScanner.scan_all() -> build_corpus_index()
    per group -> find_overlapping_artifacts() -> update or create

All indices are rebuilt from scratch on every pass.
"""

from .clustering import ObservationGroup, cluster_observations, jaccard, suggest_name
from .corpus import CorpusIndex, build_corpus_index
from .scanner import ArtifactScanner, ExistingArtifact, extract_keywords, tokenize
from .scoring import ArtifactMatch, find_overlapping_artifacts

__all__ = [
    "ArtifactMatch",
    "ArtifactScanner",
    "CorpusIndex",
    "ExistingArtifact",
    "ObservationGroup",
    "build_corpus_index",
    "cluster_observations",
    "extract_keywords",
    "find_overlapping_artifacts",
    "jaccard",
    "suggest_name",
    "tokenize",
]
