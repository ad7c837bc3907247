"""Shared pytest fixtures for gladiator tests.

Every fixture works under tmp_path; nothing touches the real ~/.claude.
"""

import itertools
from collections.abc import Callable
from pathlib import Path

import pytest

from gladiator_mcp.config import ArtifactPaths, LearningSettings
from gladiator_mcp.observations import (
    ArtifactType,
    Observation,
    ObservationContext,
    ObservationSource,
    ObservationStore,
)
from gladiator_mcp.operations import LearningLoop
from gladiator_mcp.reflection import ArtifactScanner

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def claude_dir(tmp_path: Path) -> Path:
    """Create an empty assistant config root with rules/, hooks/ and skills/."""
    root = tmp_path / ".claude"
    for sub in ("rules", "hooks", "skills"):
        (root / sub).mkdir(parents=True)
    return root


@pytest.fixture
def artifact_paths(claude_dir: Path) -> ArtifactPaths:
    return ArtifactPaths.under(claude_dir)


@pytest.fixture
def observations_path(tmp_path: Path) -> Path:
    """Path of the observation log (not created until first append)."""
    return tmp_path / ".claude" / "gladiator" / "observations.jsonl"


# =============================================================================
# Artifact Writers
# =============================================================================


@pytest.fixture
def write_rule(claude_dir: Path) -> Callable[[str, str], Path]:
    """Write rules/<name>.md and return its path."""

    def _write(name: str, content: str) -> Path:
        path = claude_dir / "rules" / f"{name}.md"
        path.write_text(content)
        return path

    return _write


@pytest.fixture
def write_hook(claude_dir: Path) -> Callable[[str, str], Path]:
    """Write hooks/<filename> and return its path."""

    def _write(filename: str, content: str) -> Path:
        path = claude_dir / "hooks" / filename
        path.write_text(content)
        return path

    return _write


@pytest.fixture
def write_skill(claude_dir: Path) -> Callable[[str, str], Path]:
    """Write skills/<name>/SKILL.md and return its path."""

    def _write(name: str, content: str) -> Path:
        skill_dir = claude_dir / "skills" / name
        skill_dir.mkdir(parents=True, exist_ok=True)
        path = skill_dir / "SKILL.md"
        path.write_text(content)
        return path

    return _write


# =============================================================================
# Store / Loop Fixtures
# =============================================================================


@pytest.fixture
def store(observations_path: Path) -> ObservationStore:
    return ObservationStore(observations_path)


@pytest.fixture
def loop(store: ObservationStore, artifact_paths: ArtifactPaths) -> LearningLoop:
    """Learning loop over temporary storage and an empty artifact corpus."""
    return LearningLoop(
        store=store,
        scanner=ArtifactScanner(artifact_paths),
        settings=LearningSettings(),
        session_id="test-session",
    )


@pytest.fixture
def make_observation() -> Callable[..., Observation]:
    """Factory for Observation objects with unique ids and valid summaries."""
    counter = itertools.count(1)

    def _make(
        summary: str | None = None,
        tags: list[str] | None = None,
        artifact_type: ArtifactType = ArtifactType.RULE,
        recommendation: str = "",
        processed: bool = False,
        context: ObservationContext | None = None,
        source: ObservationSource = ObservationSource.MANUAL,
        session_ref: str | None = None,
    ) -> Observation:
        n = next(counter)
        return Observation(
            id=f"obs_1700000000000_{n:04x}",
            timestamp=f"2026-01-01T00:00:{n % 60:02d}Z",
            summary=summary or f"Observation number {n} about something useful",
            session="test-session",
            context=context,
            tags=list(tags or []),
            recommendation=recommendation,
            artifact_type=artifact_type,
            source=source,
            session_ref=session_ref,
            processed=processed,
        )

    return _make
