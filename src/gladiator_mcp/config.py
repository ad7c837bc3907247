"""Gladiator Server Configuration

Configuration loading with environment variable support and sensible defaults.

Environment Variables:
    GLADIATOR_CONFIG_PATH: Path to config file (default: config.yaml in the data dir)
    GLADIATOR_CLAUDE_DIR: Override the assistant configuration root (default: ~/.claude)
    GLADIATOR_DATA_DIR: Override where the observation log lives
    CLAUDE_SESSION_ID: Session identifier stamped on new observations

Configuration Schema:
    paths:
        claude_dir: str - Root holding rules/, hooks/ and skills/
        data_dir: str - Directory for observations.jsonl (default: <claude_dir>/gladiator)
    learning:
        dedup_window: int - Recent observations checked for duplicates (default: 100)
        reflect_limit: int - Default observations analysed per reflection (default: 50)
        similarity_threshold: float - Tag Jaccard needed to join a group (default: 0.3)
        generic_ratio: float - Share of artifacts above which a keyword is generic (default: 0.4)
        match_threshold: float - Minimum overlap score for an update target (default: 3.0)
        name_match_bonus: float - Flat bonus when a tag matches an artifact name (default: 5.0)
        max_update_targets: int - Update targets reported per group (default: 2)
    server:
        log_level: str - Logging level (default: "INFO")
"""

import copy
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

UNKNOWN_SESSION = "unknown"
OBSERVATIONS_FILENAME = "observations.jsonl"
CONFIG_FILENAME = "config.yaml"

# Default configuration values
DEFAULT_CONFIG: dict[str, Any] = {
    "paths": {
        "claude_dir": "~/.claude",
        "data_dir": None,  # Derived from claude_dir
    },
    "learning": {
        "dedup_window": 100,
        "reflect_limit": 50,
        "similarity_threshold": 0.3,
        "generic_ratio": 0.4,
        "match_threshold": 3.0,
        "name_match_bonus": 5.0,
        "max_update_targets": 2,
    },
    "server": {
        "log_level": "INFO",
    },
}


@dataclass(frozen=True)
class LearningSettings:
    """Tuning constants for deduplication, clustering and overlap scoring."""

    dedup_window: int = 100
    reflect_limit: int = 50
    similarity_threshold: float = 0.3
    generic_ratio: float = 0.4
    match_threshold: float = 3.0
    name_match_bonus: float = 5.0
    max_update_targets: int = 2


@dataclass(frozen=True)
class ArtifactPaths:
    """Locations of the three artifact sources under the assistant config root."""

    rules_dir: Path
    hooks_dir: Path
    skills_dir: Path

    @classmethod
    def under(cls, claude_dir: Path) -> "ArtifactPaths":
        return cls(
            rules_dir=claude_dir / "rules",
            hooks_dir=claude_dir / "hooks",
            skills_dir=claude_dir / "skills",
        )


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge override dict into base dict.

    Args:
        base: Base dictionary (defaults)
        override: Override dictionary (user config)

    Returns:
        Merged dictionary with override values taking precedence
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _resolve_path(path: str | None, base_dir: Path) -> Path | None:
    """
    Resolve a path, expanding ~ and making relative paths absolute from base_dir.

    Args:
        path: Path string (absolute, relative or ~-prefixed) or None
        base_dir: Base directory for relative path resolution

    Returns:
        Resolved absolute Path or None if path was None
    """
    if path is None:
        return None

    path_obj = Path(path).expanduser()
    if path_obj.is_absolute():
        return path_obj
    return (base_dir / path_obj).resolve()


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise yaml.YAMLError(f"top-level value must be a mapping, got {type(loaded).__name__}")
    return loaded


def load_config(config_path: str | None = None, base_dir: Path | None = None) -> dict[str, Any]:
    """
    Load configuration from YAML file with environment variable overrides.

    Configuration Loading Order (later overrides earlier):
    1. Default values (DEFAULT_CONFIG)
    2. Config file (from GLADIATOR_CONFIG_PATH or config_path parameter,
       otherwise the optional config.yaml in the data directory)
    3. Environment variable overrides (GLADIATOR_CLAUDE_DIR, GLADIATOR_DATA_DIR)

    Args:
        config_path: Explicit config file path (overrides GLADIATOR_CONFIG_PATH)
        base_dir: Directory for relative path resolution (default: cwd)

    Returns:
        Merged configuration dictionary with resolved, absolute paths

    Raises:
        ConfigurationError: If an explicit config file is invalid YAML or
            any learning setting is out of range

    Examples:
        # Load with defaults (no config file required)
        config = load_config()

        # Load from specific file
        config = load_config("/path/to/gladiator.yaml")
    """
    if base_dir is None:
        base_dir = Path.cwd()

    config = copy.deepcopy(DEFAULT_CONFIG)

    file_path = config_path or os.environ.get("GLADIATOR_CONFIG_PATH")

    if file_path:
        # Explicit config path - must be valid if it exists
        resolved_path = _resolve_path(file_path, base_dir)
        if resolved_path and resolved_path.exists():
            try:
                config = _deep_merge(config, _read_yaml(resolved_path))
                logger.info(f"Loaded configuration from: {resolved_path}")
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in config file: {e}") from e
            except OSError as e:
                raise ConfigurationError(f"Cannot read config file: {e}") from e
        else:
            logger.warning(f"Config file not found (using defaults): {file_path}")

    # Apply environment variable overrides
    claude_dir_override = os.environ.get("GLADIATOR_CLAUDE_DIR")
    if claude_dir_override:
        config["paths"]["claude_dir"] = claude_dir_override
        logger.info(f"Claude dir override from env: {claude_dir_override}")

    data_dir_override = os.environ.get("GLADIATOR_DATA_DIR")
    if data_dir_override:
        config["paths"]["data_dir"] = data_dir_override
        logger.info(f"Data dir override from env: {data_dir_override}")

    claude_dir = _resolve_path(config["paths"]["claude_dir"], base_dir)
    data_dir = _resolve_path(config["paths"].get("data_dir"), base_dir)
    if data_dir is None:
        data_dir = claude_dir / "gladiator"

    if not file_path:
        # Optional default config file living next to the observation log
        default_config_path = data_dir / CONFIG_FILENAME
        if default_config_path.exists():
            try:
                file_config = _read_yaml(default_config_path)
                file_config.pop("paths", None)  # Paths are fixed by then
                config = _deep_merge(config, file_config)
                logger.info(f"Loaded configuration from: {default_config_path}")
            except yaml.YAMLError as e:
                logger.warning(f"Invalid YAML in default config (ignoring): {e}")
            except OSError as e:
                logger.warning(f"Cannot read default config (ignoring): {e}")
        else:
            logger.debug("No config file found, using defaults")

    config["paths"]["claude_dir"] = str(claude_dir)
    config["paths"]["data_dir"] = str(data_dir)

    # Fail fast on bad tuning values rather than at the first reflection
    get_learning_settings(config)

    return config


def get_learning_settings(config: dict[str, Any]) -> LearningSettings:
    """
    Extract and validate learning settings from config.

    Raises:
        ConfigurationError: If a value has the wrong type or is out of range
    """
    learning = config.get("learning", {})
    defaults = DEFAULT_CONFIG["learning"]

    try:
        settings = LearningSettings(
            dedup_window=int(learning.get("dedup_window", defaults["dedup_window"])),
            reflect_limit=int(learning.get("reflect_limit", defaults["reflect_limit"])),
            similarity_threshold=float(
                learning.get("similarity_threshold", defaults["similarity_threshold"])
            ),
            generic_ratio=float(learning.get("generic_ratio", defaults["generic_ratio"])),
            match_threshold=float(
                learning.get("match_threshold", defaults["match_threshold"])
            ),
            name_match_bonus=float(
                learning.get("name_match_bonus", defaults["name_match_bonus"])
            ),
            max_update_targets=int(
                learning.get("max_update_targets", defaults["max_update_targets"])
            ),
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid learning setting: {e}") from e

    if settings.dedup_window < 1:
        raise ConfigurationError("learning.dedup_window must be at least 1")
    if settings.reflect_limit < 1:
        raise ConfigurationError("learning.reflect_limit must be at least 1")
    if settings.max_update_targets < 1:
        raise ConfigurationError("learning.max_update_targets must be at least 1")
    if not 0 <= settings.similarity_threshold < 1:
        raise ConfigurationError("learning.similarity_threshold must be in [0, 1)")
    if not 0 < settings.generic_ratio <= 1:
        raise ConfigurationError("learning.generic_ratio must be in (0, 1]")

    return settings


def get_claude_dir(config: dict[str, Any]) -> Path:
    """Get the assistant configuration root (holds rules/, hooks/, skills/)."""
    return Path(config["paths"]["claude_dir"])


def get_artifact_paths(config: dict[str, Any]) -> ArtifactPaths:
    """Get the rule, hook and skill directories scanned during reflection."""
    return ArtifactPaths.under(get_claude_dir(config))


def get_observations_path(config: dict[str, Any]) -> Path:
    """Get the path of the append-only observation log."""
    return Path(config["paths"]["data_dir"]) / OBSERVATIONS_FILENAME


def get_log_level(config: dict[str, Any]) -> int:
    """Translate server.log_level into a logging level, defaulting to INFO."""
    name = str(config.get("server", {}).get("log_level", "INFO")).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_session_id() -> str:
    """Session identifier for new observations, from CLAUDE_SESSION_ID."""
    return os.environ.get("CLAUDE_SESSION_ID") or UNKNOWN_SESSION
