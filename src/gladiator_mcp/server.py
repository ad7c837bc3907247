#!/usr/bin/env python3
"""
Gladiator MCP Server

FastMCP server for continuous learning in an AI coding assistant. Records
observations about mistakes, corrections and conventions, clusters them, and
recommends whether to update existing rules/hooks/skills or create new ones,
using IDF-weighted corpus scoring to avoid matches on generic keywords.

Tools:
- gladiator_observe: Record a pattern worth learning from
- gladiator_reflect: Query, cluster, and get recommendations

Transport: stdio (stdout carries the protocol, logs go to stderr).
"""

import logging
import sys

from mcp.server.fastmcp import FastMCP

from gladiator_mcp import __version__
from gladiator_mcp.config import get_log_level, load_config
from gladiator_mcp.operations import OBSERVE_TOOL, REFLECT_TOOL, LearningLoop, dispatch

SERVER_INSTRUCTIONS = """⚔️ Gladiator - Continuous Learning

Observe patterns, reflect on them, evolve your workflow:
• gladiator_observe(summary, context?, tags) - Record something worth learning
• gladiator_reflect(query?, limit?) - Query and cluster observations into recommendations

Recommendations point to ~/.claude/rules/, hooks/, and skills/. Apply them by editing those files directly.

Observe patterns worth learning from:
- Tool failures: Edit old_string not unique, Bash command errors, MCP timeouts
- Corrections: User rejected a tool call, same file edited 3+ times, rewind triggered
- Codebase patterns: Architectural conventions, reusable utilities, naming styles
- Configuration: Better tool settings, MCP capabilities, workflow optimizations
- Decisions: Why approach A over B, trade-offs considered, edge cases found
- Conversation analysis: Patterns found by reviewing past session transcripts

Do NOT observe: generic programming knowledge, trivial successes, transient errors (network timeouts)

IMPORTANT - Consolidation over creation:
When reflecting, gladiator scans existing rules, hooks and skills and recommends UPDATING existing artifacts when observations overlap with what's already there. Only recommend creating new artifacts when no existing one covers the topic. Generalize: a single rule update covering 5 observations is better than 5 new files."""

# Load configuration
# Priority: GLADIATOR_CONFIG_PATH env var > <data_dir>/config.yaml > defaults
server_config = load_config()

# Configure logging (stderr; stdout is the MCP transport)
logging.basicConfig(
    level=get_log_level(server_config),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("gladiator", instructions=SERVER_INSTRUCTIONS)

# Session identifier is resolved here, once, and injected into the loop
learning_loop = LearningLoop.from_config(server_config)


@mcp.tool()
async def gladiator_observe(
    summary: str,
    context: dict | None = None,
    tags: list[str] | None = None,
    recommendation: str | None = None,
    artifact_type: str | None = None,
    source: str | None = None,
    session_ref: str | None = None,
) -> dict:
    """
    Record a pattern worth learning from, with optional recommendation and artifact type.
    Deduplicates by summary hash.

    Args:
        summary: 1-2 sentence description of what happened (min 20 chars)
        context: Optional structured context:
            - tool: Tool that triggered this
            - before: What was tried first
            - after: What actually worked
            - error: Exact error message if any
        tags: Freeform tags for clustering
        recommendation: What to do about this pattern (auto-generated if omitted)
        artifact_type: skill, rule, hook or agent (auto-classified if omitted)
        source: manual, hook, conversation or session (default: manual)
        session_ref: Session file reference when observing from conversation
            history (e.g., project-dir/session-id)

    Returns:
        Dictionary with:
        - status: "recorded", "skipped" or "error"
        - reason: "needs_before_and_after" or "duplicate" when skipped
        - id, recommendation, artifact_type, backlog: when recorded
        - display: Boxed summary for the terminal
    """
    logger.info(f"{OBSERVE_TOOL} called: tags={tags}, source={source}")
    arguments = {
        "summary": summary,
        "context": context,
        "tags": tags,
        "recommendation": recommendation,
        "artifact_type": artifact_type,
        "source": source,
        "session_ref": session_ref,
    }
    return dispatch(learning_loop, OBSERVE_TOOL, arguments)


@mcp.tool()
async def gladiator_reflect(query: str | None = None, limit: int | None = None) -> dict:
    """
    Query and cluster observations. No args = stats overview. With query = filtered search.
    Unprocessed observations are clustered by tag overlap with recommendations.

    Args:
        query: Keyword to filter observations by summary, tags, or recommendation
        limit: Max observations to analyze (default 50)

    Returns:
        Dictionary with `mode` ("query", "stats" or "cluster") and, for
        clusters, per-group action ("update" or "create"), update targets and
        member observations, plus guidance `actions`. Includes `display`.
    """
    logger.info(f"{REFLECT_TOOL} called: query={query}, limit={limit}")
    return dispatch(learning_loop, REFLECT_TOOL, {"query": query, "limit": limit})


def main():
    """Main entry point for the gladiator-server command.

    Starts the Gladiator MCP server on stdio. Exits with status 1 only if the
    transport cannot be established.
    """
    logger.info(f"=== Starting Gladiator MCP Server v{__version__} ===")
    logger.info(f"Observation log: {learning_loop.observations_path}")
    logger.info(f"Session: {learning_loop.session_id}")

    try:
        mcp.run()
    except Exception as e:
        logger.critical(f"FATAL: MCP transport failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
