"""
Auto-classification for observations recorded without an artifact type or
recommendation.

Decision order (first match wins):
1. Automation vocabulary in tags -> hook
2. Oversight vocabulary in tags -> agent
3. Both context.before and context.after present -> skill
4. Otherwise -> rule
"""

import re

from .models import ArtifactType, ObservationContext

HOOK_PATTERN = re.compile(r"\b(automat\w*|hooks?|pre-tool|post-tool|trigger\w*)\b")
AGENT_PATTERN = re.compile(r"\b(agents?|subagents?|review\w*|audit\w*)\b")


def classify_artifact(tags: list[str], context: ObservationContext | None = None) -> ArtifactType:
    """Derive an artifact type from tags and structured context."""
    tag_text = " ".join(tags).lower()
    if HOOK_PATTERN.search(tag_text):
        return ArtifactType.HOOK
    if AGENT_PATTERN.search(tag_text):
        return ArtifactType.AGENT
    if context is not None and context.before and context.after:
        return ArtifactType.SKILL
    return ArtifactType.RULE


def default_recommendation(summary: str, context: ObservationContext | None = None) -> str:
    """Fallback remediation text: what worked, else what to avoid, else the summary."""
    if context is not None and context.after:
        return f"Next time: {context.after}"
    if context is not None and context.error:
        return f"Avoid: {context.error}"
    return f"Address: {summary}"
