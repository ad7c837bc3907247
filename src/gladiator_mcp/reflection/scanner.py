"""
Artifact Scanner - existing rules, hooks and skills

Scans the assistant configuration root for the three artifact flavors:
- rules/*.md            (rule documents)
- hooks/*               (hook scripts, any non-hidden file)
- skills/<name>/SKILL.md (skill manifests)

Each readable artifact yields its set of keywords. Discovery is best-effort:
a missing or unreadable directory contributes zero artifacts and never raises.
Nothing is cached; every reflection rescans.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from ..config import ArtifactPaths

logger = logging.getLogger(__name__)

SKILL_MANIFEST = "SKILL.md"
MIN_KEYWORD_LENGTH = 4

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_DESCRIPTION = re.compile(r"^description:\s*(.+?)\s*$", re.MULTILINE)


@dataclass
class ExistingArtifact:
    """A discovered configuration artifact."""

    type: str  # rule, hook, skill
    name: str
    path: Path
    keywords: frozenset[str] = field(default_factory=frozenset)
    description: str | None = None

    def to_target(self) -> dict:
        """Shape reported as an update target."""
        target = {"type": self.type, "name": self.name, "path": str(self.path)}
        if self.description:
            target["description"] = self.description
        return target


def tokenize(text: str) -> list[str]:
    """
    Split text into lowercase alphanumeric tokens longer than 3 characters.

    Non-alphanumeric characters are treated as whitespace, so
    "file_path" yields ["file", "path"]. Order and repeats are kept.
    """
    return [w for w in _NON_ALNUM.sub(" ", text.lower()).split() if len(w) >= MIN_KEYWORD_LENGTH]


def extract_keywords(content: str) -> frozenset[str]:
    """Deduplicated keyword set for an artifact's full text."""
    return frozenset(tokenize(content))


def extract_description(content: str) -> str | None:
    """Pull a `description:` field out of a manifest without a YAML parse."""
    match = _DESCRIPTION.search(content)
    if not match:
        return None
    return match.group(1).strip().strip("\"'") or None


class ArtifactScanner:
    """Script-based scanner for existing assistant artifacts."""

    def __init__(self, paths: ArtifactPaths):
        """
        Initialize scanner.

        Args:
            paths: Rule, hook and skill directories to scan
        """
        self.paths = paths

    def scan_all(self) -> list[ExistingArtifact]:
        """
        Scan all three sources.

        Returns:
            Rules, then hooks, then skills, each in name order
        """
        artifacts = self.scan_rules() + self.scan_hooks() + self.scan_skills()
        logger.debug(f"Discovered {len(artifacts)} existing artifacts")
        return artifacts

    def scan_rules(self) -> list[ExistingArtifact]:
        """Scan rules/*.md."""
        return self._scan_directory(
            self.paths.rules_dir, "rule", lambda p: p.suffix == ".md"
        )

    def scan_hooks(self) -> list[ExistingArtifact]:
        """Scan hooks/* (non-hidden files)."""
        return self._scan_directory(
            self.paths.hooks_dir, "hook", lambda p: not p.name.startswith(".")
        )

    def scan_skills(self) -> list[ExistingArtifact]:
        """Scan skills/<name>/SKILL.md."""
        skills_dir = self.paths.skills_dir
        artifacts = []
        try:
            if not skills_dir.is_dir():
                return []
            for skill_dir in sorted(skills_dir.iterdir()):
                manifest = skill_dir / SKILL_MANIFEST
                if not manifest.is_file():
                    continue
                artifact = self._read_artifact(manifest, "skill", skill_dir.name)
                if artifact:
                    artifacts.append(artifact)
        except OSError as e:
            logger.warning(f"Cannot scan skills in {skills_dir}: {e}")
            return []
        return artifacts

    def _scan_directory(self, directory: Path, artifact_type: str, accept) -> list[ExistingArtifact]:
        """Scan the files directly inside a directory."""
        artifacts = []
        try:
            # is_dir() raises PermissionError when a parent is not searchable
            if not directory.is_dir():
                return []
            for file_path in sorted(directory.iterdir()):
                if not file_path.is_file() or not accept(file_path):
                    continue
                # Name without its last extension, like the file stem
                name = file_path.stem
                artifact = self._read_artifact(file_path, artifact_type, name)
                if artifact:
                    artifacts.append(artifact)
        except OSError as e:
            logger.warning(f"Cannot scan {artifact_type}s in {directory}: {e}")
            return []
        return artifacts

    def _read_artifact(self, path: Path, artifact_type: str, name: str) -> ExistingArtifact | None:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Skipping unreadable {artifact_type} {path}: {e}")
            return None

        return ExistingArtifact(
            type=artifact_type,
            name=name,
            path=path,
            keywords=extract_keywords(content),
            description=extract_description(content),
        )

    def get_scan_summary(self, artifacts: list[ExistingArtifact]) -> dict:
        """
        Generate a summary of scan results.

        Returns:
            Dictionary with total and counts by artifact type
        """
        by_type: dict[str, int] = {"rule": 0, "hook": 0, "skill": 0}
        for artifact in artifacts:
            by_type[artifact.type] = by_type.get(artifact.type, 0) + 1
        return {"total": len(artifacts), "by_type": by_type}
