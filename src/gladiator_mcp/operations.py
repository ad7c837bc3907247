"""
Learning Loop Operations - Main System Interface

Provides the two operations exposed to the assistant:
- observe: quality gate, dedup, auto-classify, append to the log
- reflect: search (query), stats (nothing unprocessed), or cluster + match

Also provides dispatch(), the single entry point that maps a tool name and
its JSON arguments to an operation and converts every failure into an
error-flagged result instead of an exception.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from .config import (
    LearningSettings,
    get_artifact_paths,
    get_learning_settings,
    get_observations_path,
    get_session_id,
)
from .errors import ObservationValidationError, UnknownToolError
from .formatter import format_observe_result, format_reflect_result
from .observations import (
    ArtifactType,
    Observation,
    ObservationContext,
    ObservationSource,
    ObservationStore,
    classify_artifact,
    default_recommendation,
    is_duplicate,
    passes_quality_gate,
)
from .observations.models import (
    new_observation_id,
    parse_artifact_type,
    parse_source,
    parse_tags,
    utc_timestamp,
    validate_summary,
)
from .reflection import (
    ArtifactMatch,
    ArtifactScanner,
    CorpusIndex,
    ExistingArtifact,
    ObservationGroup,
    build_corpus_index,
    cluster_observations,
    find_overlapping_artifacts,
)

logger = logging.getLogger(__name__)

OBSERVE_TOOL = "gladiator_observe"
REFLECT_TOOL = "gladiator_reflect"

RECENT_OBSERVATIONS_SHOWN = 5

INCOMPLETE_CORRECTION_MESSAGE = "Corrections need both 'before' and 'after' context."

GUIDANCE = [
    "PREFER updating existing artifacts over creating new ones",
    "Consolidate related observations into a single change when possible",
    "Only create new artifacts when no existing one covers the topic",
    "Generalize recommendations, avoid one-off rules for single incidents",
    "The user decides what to act on, gladiator only recommends",
]


class ObserveOutcome(str, Enum):
    """Result of an observe call."""

    RECORDED = "recorded"
    NEEDS_BEFORE_AND_AFTER = "needs_before_and_after"  # Quality gate
    DUPLICATE = "duplicate"  # Seen in the dedup window


class ReflectMode(str, Enum):
    """Which reflect path produced a result."""

    QUERY = "query"
    STATS = "stats"
    CLUSTER = "cluster"


@dataclass
class ObserveResult:
    """Outcome of observe(); skipped outcomes are normal results, not errors."""

    outcome: ObserveOutcome
    observation: Observation | None = None
    fingerprint: str | None = None
    unprocessed: int = 0
    total: int = 0

    @property
    def recorded(self) -> bool:
        return self.outcome == ObserveOutcome.RECORDED

    def to_dict(self) -> dict:
        if self.outcome == ObserveOutcome.NEEDS_BEFORE_AND_AFTER:
            return {
                "status": "skipped",
                "reason": self.outcome.value,
                "message": INCOMPLETE_CORRECTION_MESSAGE,
            }
        if self.outcome == ObserveOutcome.DUPLICATE:
            return {
                "status": "skipped",
                "reason": self.outcome.value,
                "fingerprint": self.fingerprint,
                "message": f"Duplicate observation (hash: {self.fingerprint})",
            }

        obs = self.observation
        return {
            "status": "recorded",
            "id": obs.id,
            "summary": obs.summary,
            "recommendation": obs.recommendation,
            "artifact_type": obs.artifact_type.value,
            "source": obs.source.value,
            "tags": list(obs.tags),
            "fingerprint": self.fingerprint,
            "backlog": {"unprocessed": self.unprocessed, "total": self.total},
        }


@dataclass
class GroupRecommendation:
    """A clustered group and the existing artifacts it overlaps."""

    group: ObservationGroup
    matches: list[ArtifactMatch] = field(default_factory=list)

    @property
    def action(self) -> str:
        return "update" if self.matches else "create"

    def to_dict(self) -> dict:
        return {
            "suggested_name": self.group.suggested_name,
            "artifact_type": self.group.artifact_type.value,
            "tags": list(self.group.tags),
            "action": self.action,
            "update_targets": [
                {**m.artifact.to_target(), "score": round(m.score, 2)} for m in self.matches
            ],
            "observations": [o.summarize() for o in self.group.observations],
        }


@dataclass
class ReflectResult:
    """Outcome of reflect(); fields used depend on mode."""

    mode: ReflectMode
    total: int = 0
    unprocessed: int = 0
    by_artifact_type: dict[str, int] = field(default_factory=dict)
    query: str | None = None
    observations: list[Observation] = field(default_factory=list)
    groups: list[GroupRecommendation] = field(default_factory=list)
    artifacts_scanned: int = 0

    def to_dict(self) -> dict:
        if self.mode == ReflectMode.QUERY:
            return {
                "mode": self.mode.value,
                "query": self.query,
                "matching_observations": len(self.observations),
                "observations": [o.summarize() for o in self.observations],
            }
        if self.mode == ReflectMode.STATS:
            return {
                "mode": self.mode.value,
                "total_observations": self.total,
                "unprocessed": self.unprocessed,
                "processed": self.total - self.unprocessed,
                "by_artifact_type": dict(self.by_artifact_type),
                "recent_observations": [o.summarize() for o in self.observations],
            }
        return {
            "mode": self.mode.value,
            "observations_analyzed": len(self.observations),
            "groups_found": len(self.groups),
            "existing_artifacts_scanned": self.artifacts_scanned,
            "by_artifact_type": dict(self.by_artifact_type),
            "groups": [g.to_dict() for g in self.groups],
            "actions": list(GUIDANCE),
        }


def _matches_query(obs: Observation, q: str) -> bool:
    """Case-insensitive substring match over the searchable fields."""
    fields = [obs.summary, obs.recommendation, obs.source.value, *obs.tags]
    if obs.context is not None and obs.context.error:
        fields.append(obs.context.error)
    if obs.session_ref:
        fields.append(obs.session_ref)
    return any(q in value.lower() for value in fields)


def _validate_limit(limit: Any, default: int) -> int:
    if limit is None:
        return default
    if isinstance(limit, bool) or not isinstance(limit, (int, float)) or limit != int(limit):
        raise ObservationValidationError(f"limit must be an integer, got {limit!r}")
    if limit < 1:
        raise ObservationValidationError(f"limit must be at least 1, got {limit}")
    return int(limit)


class LearningLoop:
    """
    Main interface for the learning loop.

    Coordinates the observation log, admission checks, artifact scanning,
    clustering and overlap scoring. Holds no derived state between calls.
    """

    def __init__(
        self,
        store: ObservationStore,
        scanner: ArtifactScanner,
        settings: LearningSettings | None = None,
        session_id: str = "unknown",
    ):
        """
        Initialize the learning loop.

        Args:
            store: Observation log
            scanner: Scanner for existing rules, hooks and skills
            settings: Tuning constants (defaults if omitted)
            session_id: Session identifier stamped on new observations
        """
        self.store = store
        self.scanner = scanner
        self.settings = settings or LearningSettings()
        self.session_id = session_id

    @classmethod
    def from_config(cls, config: dict, session_id: str | None = None) -> "LearningLoop":
        """Build a loop from a load_config() dictionary."""
        return cls(
            store=ObservationStore(get_observations_path(config)),
            scanner=ArtifactScanner(get_artifact_paths(config)),
            settings=get_learning_settings(config),
            session_id=session_id or get_session_id(),
        )

    @property
    def observations_path(self) -> Path:
        return self.store.path

    # ------------------------------------------------------------------
    # Observe
    # ------------------------------------------------------------------

    def observe(
        self,
        summary: str,
        context: dict | ObservationContext | None = None,
        tags: list[str] | None = None,
        recommendation: str | None = None,
        artifact_type: str | None = None,
        source: str | None = None,
        session_ref: str | None = None,
    ) -> ObserveResult:
        """
        Record an observation.

        Args:
            summary: 1-2 sentence description (min 20 chars)
            context: Optional {tool, before, after, error}
            tags: Freeform tags used for clustering
            recommendation: What to do about it (auto-generated if omitted)
            artifact_type: rule, skill, hook or agent (auto-classified if omitted)
            source: manual, hook, conversation or session (default: manual)
            session_ref: Pointer to a session transcript

        Returns:
            ObserveResult; skipped outcomes leave the log untouched

        Raises:
            ObservationValidationError: If any input is malformed (nothing is stored)
        """
        summary = validate_summary(summary)
        parsed_context = ObservationContext.parse(context)
        parsed_tags = parse_tags(tags)
        parsed_type = parse_artifact_type(artifact_type) if artifact_type is not None else None
        parsed_source = parse_source(source) if source is not None else ObservationSource.MANUAL
        if recommendation is not None and not isinstance(recommendation, str):
            raise ObservationValidationError("recommendation must be a string")
        if session_ref is not None and not isinstance(session_ref, str):
            raise ObservationValidationError("session_ref must be a string")

        if not passes_quality_gate(parsed_context):
            logger.info("Observation skipped: correction without 'after'")
            return ObserveResult(outcome=ObserveOutcome.NEEDS_BEFORE_AND_AFTER)

        recent = self.store.read(limit=self.settings.dedup_window)
        duplicate, summary_hash = is_duplicate(summary, recent)
        if duplicate:
            logger.info(f"Observation skipped: duplicate (hash: {summary_hash})")
            return ObserveResult(outcome=ObserveOutcome.DUPLICATE, fingerprint=summary_hash)

        resolved_type: ArtifactType = parsed_type or classify_artifact(parsed_tags, parsed_context)
        if recommendation is None:
            recommendation = default_recommendation(summary, parsed_context)

        observation = Observation(
            id=new_observation_id(),
            timestamp=utc_timestamp(),
            summary=summary,
            session=self.session_id,
            context=parsed_context,
            tags=parsed_tags,
            recommendation=recommendation,
            artifact_type=resolved_type,
            source=parsed_source,
            session_ref=session_ref,
            processed=False,
        )
        self.store.append(observation)

        unprocessed, total = self.store.backlog()
        logger.info(
            f"Recorded {observation.id} ({resolved_type.value}); backlog {unprocessed}/{total}"
        )
        return ObserveResult(
            outcome=ObserveOutcome.RECORDED,
            observation=observation,
            fingerprint=summary_hash,
            unprocessed=unprocessed,
            total=total,
        )

    # ------------------------------------------------------------------
    # Reflect
    # ------------------------------------------------------------------

    def reflect(self, query: str | None = None, limit: int | None = None) -> ReflectResult:
        """
        Query, summarise or cluster observations.

        - query set: search all observations, most recent first (no mutation)
        - nothing unprocessed: statistics only (no mutation)
        - otherwise: cluster up to `limit` most recent unprocessed observations,
          recommend update/create per group, and mark them all processed

        Args:
            query: Case-insensitive substring to search for
            limit: Max observations to return or analyse (default from settings)

        Returns:
            ReflectResult for the chosen mode
        """
        if query is not None and not isinstance(query, str):
            raise ObservationValidationError("query must be a string")
        limit = _validate_limit(limit, self.settings.reflect_limit)

        all_obs = self.store.read()
        by_type = Counter(o.artifact_type.value for o in all_obs)
        unprocessed = [o for o in all_obs if not o.processed]

        if query:
            return self._reflect_query(all_obs, query, limit, len(unprocessed), dict(by_type))

        if not unprocessed:
            return ReflectResult(
                mode=ReflectMode.STATS,
                total=len(all_obs),
                unprocessed=0,
                by_artifact_type=dict(by_type),
                observations=list(reversed(all_obs[-RECENT_OBSERVATIONS_SHOWN:])),
            )

        return self._reflect_cluster(all_obs, unprocessed, limit, dict(by_type))

    def _reflect_query(
        self,
        all_obs: list[Observation],
        query: str,
        limit: int,
        unprocessed: int,
        by_type: dict[str, int],
    ) -> ReflectResult:
        q = query.lower()
        matching = [o for o in all_obs if _matches_query(o, q)][-limit:]
        logger.info(f"Reflect query '{query}': {len(matching)} match(es)")
        return ReflectResult(
            mode=ReflectMode.QUERY,
            query=query,
            total=len(all_obs),
            unprocessed=unprocessed,
            by_artifact_type=by_type,
            observations=list(reversed(matching)),
        )

    def _reflect_cluster(
        self,
        all_obs: list[Observation],
        unprocessed: list[Observation],
        limit: int,
        by_type: dict[str, int],
    ) -> ReflectResult:
        batch = unprocessed[-limit:]
        groups = cluster_observations(batch, self.settings.similarity_threshold)
        artifacts, index = self.discover_artifacts()

        recommendations = [
            GroupRecommendation(
                group=group,
                matches=find_overlapping_artifacts(
                    group,
                    artifacts,
                    index,
                    match_threshold=self.settings.match_threshold,
                    name_bonus=self.settings.name_match_bonus,
                    max_targets=self.settings.max_update_targets,
                ),
            )
            for group in groups
        ]

        # Every clustered observation is consumed, matched or not
        self.store.mark_processed(o.id for o in batch)
        for obs in batch:
            obs.processed = True

        updates = sum(1 for r in recommendations if r.action == "update")
        logger.info(
            f"Reflected {len(batch)} observation(s) into {len(groups)} group(s) "
            f"against {len(artifacts)} artifact(s): {updates} update, "
            f"{len(groups) - updates} create"
        )
        return ReflectResult(
            mode=ReflectMode.CLUSTER,
            total=len(all_obs),
            unprocessed=len(unprocessed) - len(batch),
            by_artifact_type=by_type,
            observations=batch,
            groups=recommendations,
            artifacts_scanned=len(artifacts),
        )

    def discover_artifacts(self) -> tuple[list[ExistingArtifact], CorpusIndex]:
        """Scan existing artifacts and build a fresh corpus index over them."""
        artifacts = self.scanner.scan_all()
        return artifacts, build_corpus_index(artifacts, self.settings.generic_ratio)


# ----------------------------------------------------------------------
# Tool dispatch
# ----------------------------------------------------------------------

OBSERVE_ARGS = (
    "summary",
    "context",
    "tags",
    "recommendation",
    "artifact_type",
    "source",
    "session_ref",
)
REFLECT_ARGS = ("query", "limit")


def error_response(error: Exception | str) -> dict:
    """Error-flagged result returned over the same channel as successes."""
    return {"status": "error", "error": str(error), "is_error": True}


def dispatch(loop: LearningLoop, name: str, arguments: dict | None = None) -> dict:
    """
    Run a tool by name.

    Args:
        loop: Learning loop to run against
        name: gladiator_observe or gladiator_reflect
        arguments: Tool arguments (unknown keys are ignored)

    Returns:
        Result dictionary with a boxed `display` summary, or an error result
    """
    try:
        arguments = arguments or {}
        if not isinstance(arguments, dict):
            raise ObservationValidationError("arguments must be an object")

        if name == OBSERVE_TOOL:
            kwargs = {k: arguments[k] for k in OBSERVE_ARGS if k in arguments}
            if "summary" not in kwargs:
                raise ObservationValidationError("summary is required")
            result = loop.observe(**kwargs).to_dict()
            result["display"] = format_observe_result(result)
        elif name == REFLECT_TOOL:
            kwargs = {k: arguments[k] for k in REFLECT_ARGS if k in arguments}
            result = loop.reflect(**kwargs).to_dict()
            result["display"] = format_reflect_result(result)
        else:
            raise UnknownToolError(f"Unknown tool: {name}")

        return result

    except ObservationValidationError as e:
        logger.warning(f"Invalid {name} call: {e}")
        return error_response(e)
    except Exception as e:
        logger.error(f"Error in {name}: {e}", exc_info=True)
        return error_response(e)
