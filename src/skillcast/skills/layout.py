"""
Filesystem layouts for the two places skillcast touches.

- ProjectLayout: the agent folders of one project (`.claude/skills`, ...)
- StorageLayout: the registry storage area (one root per source)

Both are plain value objects; nothing here reads or writes the filesystem
except the small probing helpers.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import pathlib as _pathlib

import skillcast.constants as constants


def agent_folder_name(agent: str) -> str:
    """Hidden folder name for an agent (`claude` -> `.claude`)."""
    return f".{agent}"


def has_manifest(directory: _pathlib.Path, manifest_filename: str) -> bool:
    """Check whether a directory directly contains the manifest file."""
    try:
        return (directory / manifest_filename).is_file()
    except OSError:
        return False


@_dataclasses.dataclass(frozen=True)
class ProjectLayout:
    """Agent-specific skills directories inside a project."""

    root: _pathlib.Path
    """Project directory."""

    agents: tuple[str, ...] = constants.DEFAULT_AGENTS
    """Known agents, in probe order."""

    manifest_filename: str = constants.MANIFEST_FILENAME
    """File that marks a directory as a skill."""

    def agent_root(self, agent: str) -> _pathlib.Path:
        """Project-local root for an agent (`<project>/.<agent>`)."""
        return self.root / agent_folder_name(agent)

    def skills_dir(self, agent: str) -> _pathlib.Path:
        """Skills directory for an agent (`<project>/.<agent>/skills`)."""
        return self.agent_root(agent) / constants.AGENT_SKILLS_SUBDIR

    def has_agent(self, agent: str) -> bool:
        """Whether the project has opted into an agent."""
        return self.agent_root(agent).is_dir()


@_dataclasses.dataclass(frozen=True)
class StorageLayout:
    """The registry storage area holding every source's content."""

    sources_dir: _pathlib.Path
    """Directory with one entry (clone or link) per source."""

    agents: tuple[str, ...] = constants.DEFAULT_AGENTS
    """Known agents; their reserved subtrees are searched first."""

    manifest_filename: str = constants.MANIFEST_FILENAME
    """File that marks a directory as a skill."""

    ignored_names: tuple[str, ...] = constants.DEFAULT_IGNORED_NAMES
    """Directory names skipped during recursive discovery."""

    def source_root(self, name: str) -> _pathlib.Path:
        """Root directory (or link) for a source."""
        return self.sources_dir / name

    def ensure(self) -> None:
        """Create the storage area if missing."""
        self.sources_dir.mkdir(parents=True, exist_ok=True)

    def skill_candidates(self, source_name: str, skill_name: str) -> list[_pathlib.Path]:
        """
        Locations probed for a skill by name, in order.

        Agent-reserved subtrees come first, then the source root itself.
        """
        root = self.source_root(source_name)
        candidates = [
            root / agent_folder_name(agent) / constants.AGENT_SKILLS_SUBDIR / skill_name
            for agent in self.agents
        ]
        candidates.append(root / skill_name)
        return candidates
