"""
Shared constants for skillcast.

This module provides a single source of truth for default values
that are used across multiple modules.
"""

# Skill identification
MANIFEST_FILENAME = "SKILL.md"
"""File that marks a directory as a skill (exact, case-sensitive)."""

DEFAULT_AGENTS: tuple[str, ...] = ("claude", "gemini", "codex")
"""Agents with a project-local `.<agent>/skills` directory, in probe order."""

AGENT_SKILLS_SUBDIR = "skills"
"""Subdirectory of an agent root that holds its skills."""

DEFAULT_IGNORED_NAMES: tuple[str, ...] = ("node_modules",)
"""Dependency-cache directory names skipped during recursive discovery."""

# Source registry
DEFAULT_REMOTE_NAME = "external-skills"
"""Name used when no name can be derived from a remote origin."""

LOCAL_KEY_PREFIX = "local"
"""Key prefix for activations whose origin is not a registered source."""

REMOTE_PREFIXES: tuple[str, ...] = ("http", "git@")
"""Origin prefixes that mark a source as a remote repository."""

REMOTE_SUFFIX = ".git"
"""Origin suffix that marks a source as a remote repository."""

REGISTRY_SCHEMA_VERSION = 1
"""Version written into the persisted registry file."""
