"""
Skill records produced by discovery.

A skill is any directory that directly contains the manifest file
(SKILL.md). Records are ephemeral: discovery recomputes them on every call
and nothing here is persisted.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import logging as _logging
import pathlib as _pathlib
import re as _re
import typing as _typing

import yaml as _yaml

import skillcast.constants as constants

_logger = _logging.getLogger(__name__)

# Regex to extract YAML frontmatter from markdown
_FRONTMATTER_RE = _re.compile(
    r"^---\s*\n(.*?)\n---\s*\n?(.*)$",
    _re.DOTALL,
)


@_dataclasses.dataclass(frozen=True)
class Skill:
    """A skill directory found inside a source."""

    name: str
    """Directory base name."""

    path: _pathlib.Path
    """Directory path as found during discovery (not link-resolved)."""

    location: str
    """Agent label for reserved-subtree hits, else the parent's relative path."""

    agent: str | None = None
    """Agent whose reserved subtree held the skill, if any."""

    @property
    def location_label(self) -> str:
        """Display tag: `[claude]` for agent subtrees, `[/group]` otherwise."""
        if self.agent is not None:
            return f"[{self.location}]"
        return f"[/{self.location}]"

    def manifest_path(self, manifest_filename: str = constants.MANIFEST_FILENAME) -> _pathlib.Path:
        """Path to the skill's manifest file."""
        return self.path / manifest_filename

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "path": str(self.path),
            "location": self.location,
            "agent": self.agent,
        }


def parse_frontmatter(content: str) -> dict[str, _typing.Any] | None:
    """
    Extract YAML frontmatter from manifest content.

    Returns:
        The frontmatter mapping, or None if absent or not a mapping.
    """
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return None
    try:
        data = _yaml.safe_load(match.group(1))
    except _yaml.YAMLError:
        return None
    return data if isinstance(data, dict) else None


def read_description(
    skill: Skill,
    manifest_filename: str = constants.MANIFEST_FILENAME,
) -> str | None:
    """
    Read the `description` from a skill's manifest frontmatter.

    Used for display only; a missing or malformed manifest yields None.
    """
    try:
        content = skill.manifest_path(manifest_filename).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _logger.debug("Cannot read manifest for %s: %s", skill.name, e)
        return None

    frontmatter = parse_frontmatter(content)
    if not frontmatter:
        return None
    description = frontmatter.get("description")
    if description is None:
        return None
    return " ".join(str(description).split())
