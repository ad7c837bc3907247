"""
Observation Models - Data classes for recorded observations.

On-disk records are flat JSON objects (one per line in observations.jsonl).
Records written by older versions lack later fields; decoding goes through
Observation.from_record(), which backfills defaults before validating.
"""

import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from ..errors import ObservationValidationError

MIN_SUMMARY_LENGTH = 20

# Backfilled when reading records written before these fields existed
RECORD_DEFAULTS: dict[str, Any] = {
    "recommendation": "",
    "artifact_type": "rule",
    "source": "manual",
    "tags": [],
    "session": "unknown",
    "processed": False,
}


class ArtifactType(str, Enum):
    """Kind of assistant configuration an observation should feed."""

    RULE = "rule"  # Lowest-commitment default
    SKILL = "skill"  # Learnable procedure (before/after pair)
    HOOK = "hook"  # Automation on a trigger
    AGENT = "agent"  # Oversight / review


class ObservationSource(str, Enum):
    """Where an observation came from."""

    MANUAL = "manual"
    HOOK = "hook"
    CONVERSATION = "conversation"
    SESSION = "session"


@dataclass
class ObservationContext:
    """Optional structured context attached to an observation."""

    tool: str | None = None
    before: str | None = None  # What was tried first
    after: str | None = None  # What actually worked
    error: str | None = None  # Exact error message

    FIELDS = ("tool", "before", "after", "error")

    @property
    def is_incomplete_correction(self) -> bool:
        """A 'before' without an 'after' says what failed but not what worked."""
        return bool(self.before) and not self.after

    def to_dict(self) -> dict:
        return {
            name: getattr(self, name)
            for name in self.FIELDS
            if getattr(self, name) is not None
        }

    @classmethod
    def parse(cls, value: Any) -> "ObservationContext | None":
        """
        Build a context from a loosely-typed mapping.

        Unknown keys are dropped; known keys must be strings when present.

        Raises:
            ObservationValidationError: If value is not a mapping or a field is not a string
        """
        if value is None:
            return None
        if isinstance(value, ObservationContext):
            return value
        if not isinstance(value, dict):
            raise ObservationValidationError(
                f"context must be an object, got {type(value).__name__}"
            )

        fields: dict[str, str | None] = {}
        for name in cls.FIELDS:
            item = value.get(name)
            if item is not None and not isinstance(item, str):
                raise ObservationValidationError(
                    f"context.{name} must be a string, got {type(item).__name__}"
                )
            fields[name] = item
        return cls(**fields)


def parse_artifact_type(value: Any) -> ArtifactType:
    try:
        return ArtifactType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in ArtifactType)
        raise ObservationValidationError(
            f"artifact_type must be one of {allowed}, got {value!r}"
        ) from None


def parse_source(value: Any) -> ObservationSource:
    try:
        return ObservationSource(value)
    except ValueError:
        allowed = ", ".join(s.value for s in ObservationSource)
        raise ObservationValidationError(
            f"source must be one of {allowed}, got {value!r}"
        ) from None


def parse_tags(value: Any) -> list[str]:
    """Validate a tag list; None means no tags."""
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(t, str) for t in value):
        raise ObservationValidationError("tags must be a list of strings")
    return list(value)


def validate_summary(summary: Any) -> str:
    """
    Check the summary is a string of at least MIN_SUMMARY_LENGTH characters.

    Raises:
        ObservationValidationError: If the summary is missing or too short
    """
    if not isinstance(summary, str):
        raise ObservationValidationError("summary must be a string")
    if len(summary) < MIN_SUMMARY_LENGTH:
        raise ObservationValidationError(
            f"summary must be at least {MIN_SUMMARY_LENGTH} characters "
            f"(got {len(summary)})"
        )
    return summary


def new_observation_id() -> str:
    """Millisecond timestamp plus a random suffix: unique, not orderable."""
    return f"obs_{int(time.time() * 1000)}_{secrets.token_hex(2)}"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class Observation:
    """A single remembered event worth learning from."""

    id: str
    timestamp: str
    summary: str
    session: str = "unknown"
    context: ObservationContext | None = None
    tags: list[str] = field(default_factory=list)
    recommendation: str = ""
    artifact_type: ArtifactType = ArtifactType.RULE
    source: ObservationSource = ObservationSource.MANUAL
    session_ref: str | None = None
    processed: bool = False

    def to_dict(self) -> dict:
        """Convert to the on-disk record shape (one JSON line)."""
        record: dict[str, Any] = {
            "id": self.id,
            "ts": self.timestamp,
            "session": self.session,
            "summary": self.summary,
        }
        if self.context is not None:
            record["context"] = self.context.to_dict()
        record["tags"] = list(self.tags)
        record["recommendation"] = self.recommendation
        record["artifact_type"] = self.artifact_type.value
        record["source"] = self.source.value
        if self.session_ref is not None:
            record["session_ref"] = self.session_ref
        record["processed"] = self.processed
        return record

    def summarize(self) -> dict:
        """Compact shape used in reflect responses."""
        return {
            "id": self.id,
            "ts": self.timestamp,
            "summary": self.summary,
            "recommendation": self.recommendation,
            "artifact_type": self.artifact_type.value,
            "context": self.context.to_dict() if self.context else None,
            "tags": list(self.tags),
            "processed": self.processed,
        }

    @classmethod
    def from_record(cls, raw: Any) -> "Observation":
        """
        Decode a stored record, tolerating fields added after it was written.

        The raw mapping is merged over RECORD_DEFAULTS, then validated into
        the strict dataclass.

        Raises:
            ObservationValidationError: If the record cannot be a valid observation
        """
        if not isinstance(raw, dict):
            raise ObservationValidationError("record must be a JSON object")

        merged = {**RECORD_DEFAULTS, **raw}

        obs_id = merged.get("id")
        timestamp = merged.get("ts")
        if not isinstance(obs_id, str) or not obs_id:
            raise ObservationValidationError("record has no id")
        if not isinstance(timestamp, str):
            raise ObservationValidationError(f"record {obs_id} has no timestamp")

        processed = merged["processed"]
        if not isinstance(processed, bool):
            raise ObservationValidationError(f"record {obs_id} has non-boolean processed")

        session_ref = merged.get("session_ref")
        if session_ref is not None and not isinstance(session_ref, str):
            raise ObservationValidationError(f"record {obs_id} has invalid session_ref")

        return cls(
            id=obs_id,
            timestamp=timestamp,
            summary=validate_summary(merged.get("summary")),
            session=str(merged["session"]),
            context=ObservationContext.parse(merged.get("context")),
            tags=parse_tags(merged["tags"]),
            recommendation=str(merged["recommendation"]),
            artifact_type=parse_artifact_type(merged["artifact_type"]),
            source=parse_source(merged["source"]),
            session_ref=session_ref,
            processed=processed,
        )
