"""Unit tests for the artifact scanner and keyword extraction."""

from pathlib import Path

import pytest

from gladiator_mcp.config import ArtifactPaths
from gladiator_mcp.reflection import ArtifactScanner, extract_keywords, tokenize
from gladiator_mcp.reflection.scanner import extract_description


class TestTokenize:
    """Tests for tokenize() and extract_keywords()."""

    def test_splits_on_non_alphanumerics(self):
        assert tokenize("file_path, old-string!") == ["file", "path", "string"]

    def test_lowercases_and_drops_short_words(self):
        """Words of three characters or fewer are dropped."""
        assert tokenize("Use the Git CLI with Python3") == ["with", "python3"]

    def test_keeps_repeats(self):
        assert tokenize("rename rename") == ["rename", "rename"]

    def test_keywords_are_a_set(self):
        assert extract_keywords("Rename files; rename dirs") == frozenset(
            {"rename", "files", "dirs"}
        )


class TestExtractDescription:
    """Tests for extract_description()."""

    def test_reads_frontmatter_field(self):
        content = "---\nname: x\ndescription: Handle git renames safely\n---\nBody"
        assert extract_description(content) == "Handle git renames safely"

    def test_strips_quotes(self):
        assert extract_description('description: "Quoted text"') == "Quoted text"

    def test_missing(self):
        assert extract_description("no frontmatter here") is None


class TestArtifactScanner:
    """Tests for ArtifactScanner discovery."""

    def test_missing_directories_yield_nothing(self, tmp_path: Path):
        """Absent directories contribute zero artifacts without raising."""
        scanner = ArtifactScanner(ArtifactPaths.under(tmp_path / "nowhere"))
        assert scanner.scan_all() == []

    def test_scans_rules(self, artifact_paths, write_rule, claude_dir):
        write_rule("git-usage", "Always use git mv for renames")
        (claude_dir / "rules" / "notes.txt").write_text("not a rule")

        (rule,) = ArtifactScanner(artifact_paths).scan_rules()

        assert rule.type == "rule"
        assert rule.name == "git-usage"
        assert rule.path == claude_dir / "rules" / "git-usage.md"
        assert "renames" in rule.keywords

    def test_scans_non_hidden_hooks(self, artifact_paths, write_hook):
        write_hook("pre-commit.sh", "#!/bin/sh\nrun linters before commit")
        write_hook("post_edit", "echo formatting")
        write_hook(".DS_Store", "junk")

        hooks = ArtifactScanner(artifact_paths).scan_hooks()

        assert [h.name for h in hooks] == ["post_edit", "pre-commit"]
        assert all(h.type == "hook" for h in hooks)

    def test_scans_skill_manifests(self, artifact_paths, write_skill, claude_dir):
        write_skill("git-rename", "---\ndescription: Rename tracked files\n---\nUse git mv")
        (claude_dir / "skills" / "empty-skill").mkdir()

        (skill,) = ArtifactScanner(artifact_paths).scan_skills()

        assert skill.type == "skill"
        assert skill.name == "git-rename"
        assert skill.description == "Rename tracked files"
        assert skill.to_target() == {
            "type": "skill",
            "name": "git-rename",
            "path": str(claude_dir / "skills" / "git-rename" / "SKILL.md"),
            "description": "Rename tracked files",
        }

    def test_scan_all_order(self, artifact_paths, write_rule, write_hook, write_skill):
        """Rules, then hooks, then skills, each sorted by name."""
        write_skill("skill-a", "skill body")
        write_hook("hook-a", "hook body")
        write_rule("rule-b", "rule body")
        write_rule("rule-a", "rule body")

        artifacts = ArtifactScanner(artifact_paths).scan_all()

        assert [(a.type, a.name) for a in artifacts] == [
            ("rule", "rule-a"),
            ("rule", "rule-b"),
            ("hook", "hook-a"),
            ("skill", "skill-a"),
        ]

    def test_unreadable_file_is_skipped(self, artifact_paths, write_rule, claude_dir):
        """A file that is not valid UTF-8 is skipped, the rest still scan."""
        write_rule("good", "readable rule text")
        (claude_dir / "rules" / "binary.md").write_bytes(b"\xff\xfe\x00\x81")

        rules = ArtifactScanner(artifact_paths).scan_rules()

        assert [r.name for r in rules] == ["good"]

    @pytest.mark.parametrize("locked", ["rules", "hooks", "skills"])
    def test_permission_denied_directory_yields_nothing(
        self, artifact_paths, write_rule, write_hook, write_skill, claude_dir, monkeypatch, locked
    ):
        """A source whose directory cannot be stat'ed contributes zero artifacts."""
        write_rule("rule-a", "rule body")
        write_hook("hook-a", "hook body")
        write_skill("skill-a", "skill body")
        locked_dir = claude_dir / locked
        real_is_dir = Path.is_dir

        def is_dir(self):
            if self == locked_dir:
                raise PermissionError(13, "Permission denied", str(self))
            return real_is_dir(self)

        monkeypatch.setattr(Path, "is_dir", is_dir)

        artifacts = ArtifactScanner(artifact_paths).scan_all()

        assert sorted(a.type + "s" for a in artifacts) == sorted(
            {"rules", "hooks", "skills"} - {locked}
        )

    def test_scan_summary(self, artifact_paths, write_rule, write_hook):
        write_rule("one", "text")
        write_hook("two", "text")
        scanner = ArtifactScanner(artifact_paths)

        summary = scanner.get_scan_summary(scanner.scan_all())

        assert summary == {"total": 2, "by_type": {"rule": 1, "hook": 1, "skill": 0}}
