"""Unit tests for observation models and record decoding."""

import re

import pytest

from gladiator_mcp.errors import ObservationValidationError
from gladiator_mcp.observations import (
    ArtifactType,
    Observation,
    ObservationContext,
    ObservationSource,
)
from gladiator_mcp.observations.models import (
    new_observation_id,
    parse_tags,
    utc_timestamp,
    validate_summary,
)


class TestObservationContext:
    """Tests for ObservationContext parsing."""

    def test_parse_none(self):
        assert ObservationContext.parse(None) is None

    def test_parse_drops_unknown_keys(self):
        """Only tool/before/after/error survive."""
        context = ObservationContext.parse({"tool": "Bash", "extra": "x"})

        assert context == ObservationContext(tool="Bash")
        assert context.to_dict() == {"tool": "Bash"}

    def test_parse_rejects_non_mapping(self):
        with pytest.raises(ObservationValidationError, match="context must be an object"):
            ObservationContext.parse("before: x")

    def test_parse_rejects_non_string_field(self):
        with pytest.raises(ObservationValidationError, match="context.after"):
            ObservationContext.parse({"after": 3})

    def test_incomplete_correction(self):
        """A before without an after is an incomplete correction."""
        assert ObservationContext(before="x").is_incomplete_correction
        assert not ObservationContext(before="x", after="y").is_incomplete_correction
        assert not ObservationContext(after="y").is_incomplete_correction
        assert not ObservationContext(error="boom").is_incomplete_correction


class TestValidation:
    """Tests for input validation helpers."""

    def test_summary_minimum_length(self):
        """Exactly 20 characters is accepted, 19 is not."""
        assert validate_summary("a" * 20) == "a" * 20
        with pytest.raises(ObservationValidationError, match="at least 20"):
            validate_summary("a" * 19)

    def test_summary_must_be_string(self):
        with pytest.raises(ObservationValidationError, match="summary must be a string"):
            validate_summary(None)

    def test_tags(self):
        assert parse_tags(None) == []
        assert parse_tags(["git", "rename"]) == ["git", "rename"]
        with pytest.raises(ObservationValidationError):
            parse_tags("git")
        with pytest.raises(ObservationValidationError):
            parse_tags(["git", 3])


class TestIdentifiers:
    """Tests for id and timestamp generation."""

    def test_id_format(self):
        assert re.fullmatch(r"obs_\d{13}_[0-9a-f]{4}", new_observation_id())

    def test_timestamp_is_utc_iso(self):
        ts = utc_timestamp()
        assert ts.endswith("Z")
        assert "T" in ts


class TestObservationRecord:
    """Tests for the on-disk record shape."""

    def test_to_dict_uses_ts_and_omits_absent_optionals(self, make_observation):
        """context and session_ref are left out when unset."""
        record = make_observation().to_dict()

        assert "ts" in record
        assert "timestamp" not in record
        assert "context" not in record
        assert "session_ref" not in record
        assert record["processed"] is False

    def test_from_record_round_trips(self, make_observation):
        obs = make_observation(
            tags=["git"],
            context=ObservationContext(before="a", after="b"),
            artifact_type=ArtifactType.SKILL,
            source=ObservationSource.HOOK,
            session_ref="proj/sess",
        )

        assert Observation.from_record(obs.to_dict()) == obs

    def test_from_record_backfills_missing_fields(self):
        """Records from older versions get default values for later fields."""
        raw = {
            "id": "obs_1_abcd",
            "ts": "2026-01-01T00:00:00Z",
            "summary": "An observation written by an early version",
        }

        obs = Observation.from_record(raw)

        assert obs.recommendation == ""
        assert obs.artifact_type == ArtifactType.RULE
        assert obs.source == ObservationSource.MANUAL
        assert obs.tags == []
        assert obs.session == "unknown"
        assert obs.processed is False

    def test_from_record_rejects_invalid(self):
        with pytest.raises(ObservationValidationError):
            Observation.from_record({"ts": "2026-01-01T00:00:00Z", "summary": "x" * 30})
        with pytest.raises(ObservationValidationError):
            Observation.from_record(
                {"id": "obs_1", "ts": "t", "summary": "x" * 30, "artifact_type": "macro"}
            )
        with pytest.raises(ObservationValidationError):
            Observation.from_record(["not", "an", "object"])
