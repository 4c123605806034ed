"""
Skill discovery inside a source root.

Skills are searched in two tiers:
1. Agent-reserved subtrees: immediate children of `<root>/.<agent>/skills/`
2. Generic recursive scan of `<root>`, skipping hidden entries and
   dependency-cache directories

A directory reachable by several paths (for example through a symlink) is
reported once, by the first tier that finds it. Skills nested inside other
skills are reported as independent skills.
"""

from __future__ import annotations

import logging as _logging
import os as _os
import pathlib as _pathlib
import typing as _typing

import skillcast.constants as constants
import skillcast.skills.layout as layout
import skillcast.skills.skill as skill_module

_logger = _logging.getLogger(__name__)


def canonical_path(path: _pathlib.Path) -> _pathlib.Path:
    """Link-resolved absolute form of a path."""
    return _pathlib.Path(_os.path.realpath(path))


def is_inside_agent_folder(root: _pathlib.Path, agents: _typing.Iterable[str]) -> bool:
    """Check whether any segment of `root` is an agent-reserved folder."""
    folders = {layout.agent_folder_name(agent) for agent in agents}
    return any(part in folders for part in root.parts)


def _is_skipped_name(name: str, ignored_names: _typing.Collection[str]) -> bool:
    """Hidden entries and dependency caches are never scanned."""
    return name.startswith(".") or name in ignored_names


def _sorted_children(directory: _pathlib.Path) -> list[_pathlib.Path]:
    """List a directory's entries by name; unreadable directories yield nothing."""
    try:
        return sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as e:
        _logger.debug("Cannot list %s: %s", directory, e)
        return []


def _is_dir(path: _pathlib.Path) -> bool:
    """`is_dir()` that treats stat failures (permissions, broken links) as False."""
    try:
        return path.is_dir()
    except OSError:
        return False


class SkillDiscovery:
    """
    Discovers skills inside one source root.

    Every call walks the filesystem afresh; no results are cached.
    """

    def __init__(
        self,
        *,
        agents: _typing.Sequence[str] = constants.DEFAULT_AGENTS,
        manifest_filename: str = constants.MANIFEST_FILENAME,
        ignored_names: _typing.Collection[str] = constants.DEFAULT_IGNORED_NAMES,
    ) -> None:
        """
        Initialize skill discovery.

        Args:
            agents: Agent labels whose reserved subtrees are searched first.
            manifest_filename: File marking a directory as a skill.
            ignored_names: Directory names skipped by the recursive scan.
        """
        self._agents = tuple(agents)
        self._manifest_filename = manifest_filename
        self._ignored_names = frozenset(ignored_names)

    @classmethod
    def for_storage(cls, storage: layout.StorageLayout) -> SkillDiscovery:
        """Create a discovery configured like a storage layout."""
        return cls(
            agents=storage.agents,
            manifest_filename=storage.manifest_filename,
            ignored_names=storage.ignored_names,
        )

    def discover(self, root: _pathlib.Path) -> list[skill_module.Skill]:
        """
        Discover all skills under `root`.

        Args:
            root: Source root directory (may itself be a link).

        Returns:
            Skills in discovery order: agent-reserved tier first, then the
            recursive scan in depth-first name order.
        """
        if not _is_dir(root):
            return []

        skills: list[skill_module.Skill] = []
        claimed: set[_pathlib.Path] = set()

        if is_inside_agent_folder(root, self._agents):
            _logger.debug("Root %s is inside an agent folder; skipping reserved tier", root)
        else:
            skills.extend(self._scan_agent_folders(root, claimed))

        skills.extend(self._scan_tree(root, claimed))
        return skills

    def _scan_agent_folders(
        self,
        root: _pathlib.Path,
        claimed: set[_pathlib.Path],
    ) -> _typing.Iterator[skill_module.Skill]:
        """Tier 1: immediate children of each `.<agent>/skills` folder."""
        for agent in self._agents:
            folder = root / layout.agent_folder_name(agent) / constants.AGENT_SKILLS_SUBDIR
            if not _is_dir(folder):
                continue

            for item in _sorted_children(folder):
                if _is_skipped_name(item.name, self._ignored_names):
                    continue
                if not _is_dir(item):
                    continue
                if not layout.has_manifest(item, self._manifest_filename):
                    continue

                real = canonical_path(item)
                if real in claimed:
                    continue
                claimed.add(real)
                yield skill_module.Skill(
                    name=item.name,
                    path=item,
                    location=agent,
                    agent=agent,
                )

    def _scan_tree(
        self,
        root: _pathlib.Path,
        claimed: set[_pathlib.Path],
    ) -> list[skill_module.Skill]:
        """Tier 2: depth-first scan of the whole root."""
        found: list[skill_module.Skill] = []
        walked: set[_pathlib.Path] = {canonical_path(root)}

        def scan(directory: _pathlib.Path, relative: tuple[str, ...]) -> None:
            for item in _sorted_children(directory):
                if _is_skipped_name(item.name, self._ignored_names):
                    continue
                if not _is_dir(item):
                    continue

                real = canonical_path(item)
                if (
                    layout.has_manifest(item, self._manifest_filename)
                    and real not in claimed
                ):
                    claimed.add(real)
                    found.append(
                        skill_module.Skill(
                            name=item.name,
                            path=item,
                            location="/".join(relative),
                        )
                    )

                # Matched skills are descended into too: nested skills are
                # independent skills.
                if real in walked:
                    continue
                walked.add(real)
                scan(item, (*relative, item.name))

        scan(root, ())
        return found


def discover(
    root: _pathlib.Path,
    *,
    agents: _typing.Sequence[str] = constants.DEFAULT_AGENTS,
    manifest_filename: str = constants.MANIFEST_FILENAME,
    ignored_names: _typing.Collection[str] = constants.DEFAULT_IGNORED_NAMES,
) -> list[skill_module.Skill]:
    """
    Discover skills under `root` with the given settings.

    Convenience wrapper around SkillDiscovery.discover().
    """
    return SkillDiscovery(
        agents=agents,
        manifest_filename=manifest_filename,
        ignored_names=ignored_names,
    ).discover(root)


def discover_source(
    storage: layout.StorageLayout,
    source_name: str,
) -> list[skill_module.Skill]:
    """Discover skills inside a registered source's root."""
    return SkillDiscovery.for_storage(storage).discover(storage.source_root(source_name))
