"""
Reconstruction of the active skill set from link topology.

Nothing about activations is stored. Every call walks the project's agent
skills directories and derives, from each link's target, which source a
skill came from:

- target inside the registry storage area -> key `<source>/<name>`
- any other target -> key `local/<name>`
- plain directory (a copy) -> key `local/<name>`, origin unknown
"""

from __future__ import annotations

import dataclasses as _dataclasses
import logging as _logging
import os as _os
import pathlib as _pathlib
import typing as _typing

import skillcast.constants as constants
import skillcast.errors as errors
import skillcast.skills.layout as layout
import skillcast.skills.linking as linking

_logger = _logging.getLogger(__name__)


@_dataclasses.dataclass(frozen=True)
class Activation:
    """One skill entry inside an agent's skills directory."""

    agent: str
    """Agent whose directory holds the entry."""

    name: str
    """Entry name (the skill's directory name)."""

    path: _pathlib.Path
    """The entry itself, `<project>/.<agent>/skills/<name>`."""

    key: str
    """`<source>/<name>` for registered sources, else `local/<name>`."""

    target: _pathlib.Path | None
    """Canonical link target. None for copies, whose origin is unknown."""

    linked: bool = True
    """Whether the entry is a symbolic link."""

    @property
    def source_name(self) -> str | None:
        """Registered source name, or None for local entries."""
        prefix, _, _ = self.key.partition("/")
        if prefix == constants.LOCAL_KEY_PREFIX:
            return None
        return prefix

    @property
    def origin_known(self) -> bool:
        """Whether the entry can be traced to a registered source."""
        return self.source_name is not None

    @property
    def target_exists(self) -> bool:
        """Whether the link target still exists."""
        return self.target is not None and self.target.exists()

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "agent": self.agent,
            "name": self.name,
            "key": self.key,
            "path": str(self.path),
            "target": str(self.target) if self.target else None,
            "linked": self.linked,
            "source": self.source_name,
        }


@_dataclasses.dataclass
class RemovalResult:
    """Outcome of removing activations by name."""

    removed: list[Activation] = _dataclasses.field(default_factory=list)
    refused: list[Activation] = _dataclasses.field(default_factory=list)


def _first_segment_under(path: _pathlib.Path, base: _pathlib.Path) -> str | None:
    """First path segment of `path` below `base`, or None if outside."""
    try:
        relative = path.relative_to(base)
    except ValueError:
        return None
    if not relative.parts:
        return None
    return relative.parts[0]


def literal_target(link: _pathlib.Path) -> _pathlib.Path | None:
    """Absolute, normalized (not link-resolved) target of a link."""
    try:
        raw = _os.readlink(link)
    except OSError:
        return None
    target = _pathlib.Path(raw)
    if not target.is_absolute():
        target = link.parent / target
    return _pathlib.Path(_os.path.normpath(target))


class _SourceResolver:
    """Maps link targets back to storage entries."""

    def __init__(self, storage: layout.StorageLayout) -> None:
        self._base = _pathlib.Path(_os.path.abspath(storage.sources_dir))
        self._real_base = _pathlib.Path(_os.path.realpath(storage.sources_dir))
        self._roots = self._load_roots()

    def _load_roots(self) -> list[tuple[_pathlib.Path, str]]:
        """Canonical root of every storage entry, most specific first."""
        roots: list[tuple[_pathlib.Path, str]] = []
        try:
            entries = list(self._base.iterdir())
        except OSError:
            return roots
        for entry in entries:
            if entry.name.startswith("."):
                continue
            real = _pathlib.Path(_os.path.realpath(entry))
            if real.is_dir():
                roots.append((real, entry.name))
        roots.sort(key=lambda item: len(item[0].parts), reverse=True)
        return roots

    def source_for(
        self,
        literal: _pathlib.Path | None,
        canonical: _pathlib.Path,
    ) -> str | None:
        """Source name owning a link target, or None if untracked."""
        if literal is not None:
            for base in (self._base, self._real_base):
                name = _first_segment_under(literal, base)
                if name:
                    return name

        name = _first_segment_under(canonical, self._real_base)
        if name:
            return name

        # Local sources are links out of the storage area, so their skills
        # resolve outside it.
        for root, root_name in self._roots:
            if canonical == root or canonical.is_relative_to(root):
                return root_name
        return None


def list_active(
    *,
    project: layout.ProjectLayout,
    storage: layout.StorageLayout,
    include_copies: bool = True,
) -> list[Activation]:
    """
    Reconstruct every activation in the project's agent directories.

    Args:
        project: Project whose agent folders are inspected.
        storage: Registry storage area, used to classify link targets.
        include_copies: Also report plain directories (copies) as
            `local/<name>` entries with unknown origin.

    Returns:
        Activations, grouped by agent in configured order.
    """
    resolver = _SourceResolver(storage)
    active: list[Activation] = []

    for agent in project.agents:
        skills_dir = project.skills_dir(agent)
        if not skills_dir.is_dir():
            continue

        try:
            entries = sorted(skills_dir.iterdir(), key=lambda p: p.name)
        except OSError as e:
            _logger.debug("Cannot list %s: %s", skills_dir, e)
            continue

        for entry in entries:
            if entry.name.startswith("."):
                continue

            if entry.is_symlink():
                canonical = _pathlib.Path(_os.path.realpath(entry))
                source = resolver.source_for(literal_target(entry), canonical)
                prefix = source if source else constants.LOCAL_KEY_PREFIX
                active.append(
                    Activation(
                        agent=agent,
                        name=entry.name,
                        path=entry,
                        key=f"{prefix}/{entry.name}",
                        target=canonical,
                        linked=True,
                    )
                )
            elif include_copies and entry.is_dir():
                active.append(
                    Activation(
                        agent=agent,
                        name=entry.name,
                        path=entry,
                        key=f"{constants.LOCAL_KEY_PREFIX}/{entry.name}",
                        target=None,
                        linked=False,
                    )
                )

    return active


def find_active(activations: _typing.Iterable[Activation], query: str) -> list[Activation]:
    """
    Select activations matching a user query.

    An exact key match (`source/name`) wins; otherwise entries are matched
    by name, case-insensitively.
    """
    activations = list(activations)
    by_key = [a for a in activations if a.key == query]
    if by_key:
        return by_key
    lowered = query.lower()
    return [a for a in activations if a.name.lower() == lowered]


def remove_activation(activation: Activation, *, force: bool = False) -> None:
    """
    Delete one activation entry.

    Links are unlinked (their targets are untouched). Copies have no
    verifiable origin and are treated as user-owned files.

    Raises:
        AmbiguousOriginError: If the entry is a copy and `force` is False.
    """
    if not activation.linked and not force:
        raise errors.AmbiguousOriginError(
            activation.path,
            "not a link; use --force to delete this local copy",
        )
    linking.clear_destination(activation.path)
    _logger.info("Removed %s from %s", activation.key, activation.agent)


def remove_skill(
    query: str,
    *,
    project: layout.ProjectLayout,
    storage: layout.StorageLayout,
    agent: str | None = None,
    force: bool = False,
) -> RemovalResult:
    """
    Remove every activation matching `query`.

    Args:
        query: `source/name` key or bare skill name.
        project: Project to remove from.
        storage: Registry storage area.
        agent: Only remove from this agent's directory.
        force: Also delete copies, whose origin cannot be verified.

    Returns:
        RemovalResult listing removed and refused entries.

    Raises:
        SkillNotFoundError: If nothing matches.
    """
    candidates = list_active(project=project, storage=storage)
    if agent is not None:
        candidates = [a for a in candidates if a.agent == agent]

    matches = find_active(candidates, query)
    if not matches:
        raise errors.SkillNotFoundError(query)

    result = RemovalResult()
    for activation in matches:
        try:
            remove_activation(activation, force=force)
        except errors.AmbiguousOriginError as e:
            _logger.warning("%s", e)
            result.refused.append(activation)
            continue
        result.removed.append(activation)
    return result


def remove_source_activations(
    source_name: str,
    *,
    project: layout.ProjectLayout,
    storage: layout.StorageLayout,
) -> list[Activation]:
    """
    Delete every linked activation that belongs to a source.

    Copies are never part of this cascade: their origin is unknown.

    Returns:
        The removed activations.
    """
    prefix = f"{source_name}/"
    removed: list[Activation] = []
    for activation in list_active(project=project, storage=storage, include_copies=False):
        if not activation.key.startswith(prefix):
            continue
        remove_activation(activation)
        removed.append(activation)
    return removed
