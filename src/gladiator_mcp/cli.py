#!/usr/bin/env python3
"""
Hook entry point for Gladiator.

The gladiator-hook command lets assistant hooks (e.g. a PostToolUse hook that
noticed a failure) record observations or trigger reflection without going
through the MCP server.

Input (JSON on stdin):
    {"tool": "gladiator_observe", "arguments": {"summary": "...", "tags": [...]}}

Output: the result dictionary as JSON on stdout.
"""

import json
import logging
import sys

from gladiator_mcp.config import load_config
from gladiator_mcp.errors import ConfigurationError
from gladiator_mcp.operations import OBSERVE_TOOL, LearningLoop, dispatch, error_response

logger = logging.getLogger(__name__)


def run_hook(payload: str, loop: LearningLoop) -> tuple[dict, int]:
    """
    Dispatch one hook payload.

    Observations recorded through a hook default to source=hook.

    Args:
        payload: Raw JSON text from stdin
        loop: Learning loop to run against

    Returns:
        (result, exit_code) tuple; exit code 1 for error results
    """
    try:
        request = json.loads(payload)
    except json.JSONDecodeError as e:
        return error_response(f"Invalid JSON input: {e}"), 1

    if not isinstance(request, dict) or not isinstance(request.get("tool"), str):
        return error_response("Input must be an object with a 'tool' name"), 1

    arguments = request.get("arguments") or {}
    if request["tool"] == OBSERVE_TOOL and isinstance(arguments, dict):
        arguments = {"source": "hook", **arguments}

    result = dispatch(loop, request["tool"], arguments)
    return result, 1 if result.get("is_error") else 0


def hook_cli() -> None:
    """
    CLI entry point for hook-based observe/reflect.

    Usage:
        echo '{"tool": "gladiator_reflect", "arguments": {}}' | gladiator-hook

    Exit codes:
        0: Success, or empty stdin (nothing to do)
        1: Error result (printed as JSON) or unusable configuration
    """
    stdin_data = sys.stdin.read().strip()
    if not stdin_data:
        sys.exit(0)

    try:
        loop = LearningLoop.from_config(load_config())
    except ConfigurationError as e:
        # Log error to stderr, don't pollute stdout
        print(f"Gladiator configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    result, exit_code = run_hook(stdin_data, loop)
    print(json.dumps(result, indent=2))
    sys.exit(exit_code)


if __name__ == "__main__":
    hook_cli()
