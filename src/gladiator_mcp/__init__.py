"""Gladiator - continuous-learning MCP server for AI coding assistants.

Records observations about mistakes, corrections and conventions, clusters
them, and recommends updating existing rules/hooks/skills or creating new ones.
"""

__version__ = "1.0.0"
