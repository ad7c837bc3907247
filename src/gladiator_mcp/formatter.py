"""
Result Formatter for Gladiator.

Renders observe/reflect result dictionaries as a small bordered box that the
assistant can show verbatim in the terminal:

    ┌─ ⚔ ──────────────────────────────────────────────────── Recorded ─┐
    │ Tried sed -i on macOS, needed an empty suffix argument             │
    │ Recommend (rule): Next time: sed -i '' ...                         │
    └────────────────────────────────────────────────────────────────────┘

The JSON result itself is the source of truth; the box is a convenience.
"""

from datetime import datetime, timezone
from typing import Any

BOX_WIDTH = 70
PREVIEW_LENGTH = 55
MAX_LISTED = 5
MAX_GROUP_LINES = 3


def format_box(content: list[str], status: str, width: int = BOX_WIDTH) -> str:
    """
    Render content lines inside a bordered box with a status label.

    Args:
        content: Lines to render (long lines are truncated with an ellipsis)
        status: Label shown in the top-right corner
        width: Total box width in characters

    Returns:
        Multi-line string
    """
    top_left = "┌─ ⚔ "
    top_right = f" {status} ─┐"
    dash_count = width - len(top_left) - len(top_right)
    top_border = top_left + "─" * max(0, dash_count) + top_right
    bottom_border = "└" + "─" * (width - 2) + "┘"
    max_content = width - 4

    lines = [top_border]
    for line in content:
        truncated = line if len(line) <= max_content else line[: max_content - 1] + "…"
        lines.append(f"│ {truncated.ljust(max_content)} │")
    lines.append(bottom_border)

    return "\n".join(lines)


def format_age(ts: str, now: datetime | None = None) -> str:
    """Human-readable relative timestamp (e.g. "3h ago", "2d ago")."""
    try:
        then = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    except ValueError:
        return ts
    if then.tzinfo is None:
        then = then.replace(tzinfo=timezone.utc)

    now = now or datetime.now(timezone.utc)
    mins = int((now - then).total_seconds() // 60)
    if mins < 1:
        return "just now"
    if mins < 60:
        return f"{mins}m ago"
    hrs = mins // 60
    if hrs < 24:
        return f"{hrs}h ago"
    days = hrs // 24
    if days < 7:
        return f"{days}d ago"
    return then.date().isoformat()


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def format_observe_result(result: dict[str, Any]) -> str:
    """Box for an observe result (recorded or skipped)."""
    if result.get("status") != "recorded":
        return format_box([result.get("message", "")], "Skipped")

    content = [
        result["summary"],
        f"Recommend ({result['artifact_type']}): {result['recommendation'][:PREVIEW_LENGTH]}",
    ]
    if result.get("tags"):
        content.append(f"Tags: {', '.join(result['tags'])}")
    backlog = result.get("backlog", {})
    content.append(
        f"Backlog: {backlog.get('unprocessed', 0)} unprocessed of {backlog.get('total', 0)} total"
    )
    return format_box(content, "Recorded")


def format_reflect_result(result: dict[str, Any], now: datetime | None = None) -> str:
    """Box for a reflect result in any of its three modes."""
    mode = result.get("mode")

    if mode == "query":
        observations = result.get("observations", [])
        count = result.get("matching_observations", len(observations))
        content = [f'"{result.get("query")}": {_plural(count, "observation")}']
        for obs in observations[:MAX_LISTED]:
            content.append(f"  {obs['summary'][:50]} ({format_age(obs['ts'], now)})")
        if count > MAX_LISTED:
            content.append(f"  ... +{count - MAX_LISTED} more")
        return format_box(content, "Found")

    if mode == "stats":
        content = [
            f"Observations: {result.get('total_observations', 0)} total, "
            f"{result.get('unprocessed', 0)} unprocessed"
        ]
        for artifact_type, count in result.get("by_artifact_type", {}).items():
            content.append(f"  {artifact_type}: {count}")
        return format_box(content, "Stats")

    groups = result.get("groups", [])
    content = [
        f"{result.get('observations_analyzed', 0)} observations → {_plural(len(groups), 'group')}",
        f"{result.get('existing_artifacts_scanned', 0)} existing artifacts scanned (IDF-weighted)",
        "",
    ]
    for group in groups:
        targets = group.get("update_targets", [])
        if targets:
            action = f"UPDATE {targets[0]['name']}"
        else:
            action = f"NEW {group['artifact_type']}"
        members = group.get("observations", [])
        content.append(f"{action}: {group['suggested_name']} ({len(members)} obs)")
        for obs in members[:MAX_GROUP_LINES]:
            content.append(f"  - {obs['recommendation'][:PREVIEW_LENGTH]}")
        if len(members) > MAX_GROUP_LINES:
            content.append(f"  ... +{len(members) - MAX_GROUP_LINES} more")
    return format_box(content, "Reflected")
