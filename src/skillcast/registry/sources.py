"""
Source registry operations.

Each operation takes the current RegistryState and returns a new one along
with a result record. Filesystem effects (clone, link, delete) happen here;
persisting the returned state is the caller's job, done once per command.

A source's root is `<sources_dir>/<name>`: a git working copy for remote
sources, a directory link to the original folder for local ones.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import enum as _enum
import logging as _logging
import os as _os
import pathlib as _pathlib
import typing as _typing

import skillcast.constants as constants
import skillcast.errors as errors
import skillcast.registry.state as state_module
import skillcast.registry.vcs as vcs_module
import skillcast.skills.active as active
import skillcast.skills.layout as layout
import skillcast.skills.linking as linking

_logger = _logging.getLogger(__name__)

CACHED_CONTENT_WARNING = "could not reach origin, using cached content"


@_dataclasses.dataclass(frozen=True)
class Source:
    """A registered source resolved against the storage area."""

    name: str
    kind: state_module.SourceKind
    origin: str
    root: _pathlib.Path

    @property
    def available(self) -> bool:
        """Whether the root resolves to an existing directory."""
        return self.root.is_dir()

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "origin": self.origin,
            "root": str(self.root),
            "available": self.available,
        }


class AddStatus(_enum.Enum):
    """Outcome of registering a source."""

    ADDED = "added"
    REFRESHED = "refreshed"
    CACHED = "cached"
    RELINKED = "relinked"


@_dataclasses.dataclass(frozen=True)
class AddResult:
    """Result of add_remote/add_local."""

    source: Source
    status: AddStatus
    warning: str | None = None


class RefreshStatus(_enum.Enum):
    """Outcome of refreshing one source."""

    UPDATED = "updated"
    FAILED = "failed"
    LOCAL = "local"
    MISSING = "missing"


@_dataclasses.dataclass(frozen=True)
class RefreshResult:
    """Result of refresh()."""

    name: str
    status: RefreshStatus
    message: str | None = None

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {"name": self.name, "status": self.status.value, "message": self.message}


@_dataclasses.dataclass
class RemoveResult:
    """Result of remove()."""

    name: str
    removed_activations: list[active.Activation] = _dataclasses.field(default_factory=list)
    warnings: list[str] = _dataclasses.field(default_factory=list)


# =============================================================================
# Names and origins
# =============================================================================


def is_remote_origin(target: str) -> bool:
    """Whether user input names a remote repository rather than a local path."""
    target = target.strip()
    return target.startswith(constants.REMOTE_PREFIXES) or target.endswith(
        constants.REMOTE_SUFFIX
    )


def derive_remote_name(origin: str) -> str:
    """
    Source name for a remote origin: its last path segment without `.git`.

    Works for URLs (`https://host/org/repo.git`) and scp-style addresses
    (`git@host:org/repo.git`).
    """
    trimmed = origin.strip().rstrip("/")
    segment = trimmed.replace(":", "/").rsplit("/", 1)[-1]
    if segment.endswith(constants.REMOTE_SUFFIX):
        segment = segment[: -len(constants.REMOTE_SUFFIX)]
    return segment or constants.DEFAULT_REMOTE_NAME


def derive_local_name(path: _pathlib.Path) -> str:
    """Source name for a local directory: its base name."""
    return path.name


def validate_source_name(name: str) -> str:
    """
    Check that a source name is usable as a single directory name.

    Raises:
        ValueError: If the name is empty, hidden, or contains a separator.
    """
    if not name or name.startswith(".") or "/" in name or "\\" in name:
        raise ValueError(f"Invalid source name: {name!r}")
    if name == constants.LOCAL_KEY_PREFIX:
        raise ValueError(f"Source name {name!r} is reserved")
    return name


def to_source(name: str, entry: state_module.SourceEntry, storage: layout.StorageLayout) -> Source:
    """Combine a registry entry with its storage root."""
    return Source(name=name, kind=entry.kind, origin=entry.origin, root=storage.source_root(name))


def iter_sources(
    state: state_module.RegistryState,
    storage: layout.StorageLayout,
) -> list[Source]:
    """All registered sources, in registration order."""
    return [to_source(name, entry, storage) for name, entry in state.sources.items()]


def get_source(
    state: state_module.RegistryState,
    name: str,
    storage: layout.StorageLayout,
) -> Source:
    """
    Look up one source.

    Raises:
        SourceNotFoundError: If `name` is not registered.
    """
    entry = state.get(name)
    if entry is None:
        raise errors.SourceNotFoundError(name)
    return to_source(name, entry, storage)


# =============================================================================
# Registration
# =============================================================================


def add_remote(
    state: state_module.RegistryState,
    origin: str,
    *,
    storage: layout.StorageLayout,
    vcs: vcs_module.VersionControl,
    name: str | None = None,
) -> tuple[state_module.RegistryState, AddResult]:
    """
    Register a remote repository.

    If the source is already registered for the same origin, or a working
    copy is already on disk, this refreshes it instead; a failed refresh is
    downgraded to a warning and the cached copy is kept.

    Raises:
        SourceNameCollisionError: If `name` is registered for another origin.
        OriginUnreachableError: If a fresh clone fails. No entry is added.
    """
    origin = origin.strip()
    name = validate_source_name(name or derive_remote_name(origin))

    existing = state.get(name)
    if existing is not None and (not existing.is_remote or existing.origin != origin):
        raise errors.SourceNameCollisionError(name, existing.origin, origin)

    entry = state_module.SourceEntry(kind=state_module.SourceKind.REMOTE, origin=origin)
    root = storage.source_root(name)

    if root.is_dir() and not root.is_symlink():
        _logger.info("Source %s already present, pulling updates", name)
        if vcs.pull_updates(root):
            result = AddResult(to_source(name, entry, storage), AddStatus.REFRESHED)
        else:
            result = AddResult(
                to_source(name, entry, storage),
                AddStatus.CACHED,
                warning=CACHED_CONTENT_WARNING,
            )
        return state.with_source(name, entry), result

    storage.ensure()
    linking.clear_destination(root)
    _logger.info("Cloning %s into %s", origin, root)
    if not vcs.fetch_new(origin, root):
        linking.clear_destination(root)
        detail = getattr(vcs, "last_error", None) or ""
        raise errors.OriginUnreachableError(origin, detail)

    return state.with_source(name, entry), AddResult(
        to_source(name, entry, storage), AddStatus.ADDED
    )


def add_local(
    state: state_module.RegistryState,
    path: str | _pathlib.Path,
    *,
    storage: layout.StorageLayout,
    name: str | None = None,
) -> tuple[state_module.RegistryState, AddResult]:
    """
    Register a local directory by linking it into the storage area.

    The path is resolved to its canonical form first. Re-registering the
    same directory recreates the link.

    Raises:
        PathNotFoundError: If the path does not exist or is not a directory.
        SourceNameCollisionError: If `name` is registered for another origin.
        StorageOverlapError: If the path lies inside the storage area.
        LinkUnsupportedError: If the storage link cannot be created.
    """
    expanded = _pathlib.Path(path).expanduser()
    if not expanded.exists():
        raise errors.PathNotFoundError(expanded)
    resolved = _pathlib.Path(_os.path.realpath(expanded))
    if not resolved.is_dir():
        raise errors.PathNotFoundError(resolved)
    storage_base = _pathlib.Path(_os.path.realpath(storage.sources_dir))
    if resolved == storage_base or resolved.is_relative_to(storage_base):
        raise errors.StorageOverlapError(resolved, storage.sources_dir)

    name = validate_source_name(name or derive_local_name(resolved))

    existing = state.get(name)
    if existing is not None and (
        existing.is_remote or _pathlib.Path(existing.origin) != resolved
    ):
        raise errors.SourceNameCollisionError(name, existing.origin, str(resolved))

    entry = state_module.SourceEntry(kind=state_module.SourceKind.LOCAL, origin=str(resolved))
    root = storage.source_root(name)

    storage.ensure()
    linking.replace_with_link(resolved, root, is_directory=True)
    _logger.info("Linked local source %s -> %s", name, resolved)

    status = AddStatus.RELINKED if existing is not None else AddStatus.ADDED
    return state.with_source(name, entry), AddResult(to_source(name, entry, storage), status)


def add_source(
    state: state_module.RegistryState,
    target: str,
    *,
    storage: layout.StorageLayout,
    vcs: vcs_module.VersionControl,
    name: str | None = None,
) -> tuple[state_module.RegistryState, AddResult]:
    """Register `target` as a remote or local source, detected from its form."""
    target = target.strip()
    if is_remote_origin(target):
        return add_remote(state, target, storage=storage, vcs=vcs, name=name)
    return add_local(state, target, storage=storage, name=name)


# =============================================================================
# Refresh and removal
# =============================================================================


def refresh(
    state: state_module.RegistryState,
    name: str,
    *,
    storage: layout.StorageLayout,
    vcs: vcs_module.VersionControl,
) -> RefreshResult:
    """
    Bring a source's content up to date.

    Remote sources are pulled; a failure is reported, not raised. Local
    sources are live links and need nothing.

    Raises:
        SourceNotFoundError: If `name` is not registered.
    """
    source = get_source(state, name, storage)

    if not source.available:
        return RefreshResult(name, RefreshStatus.MISSING, f"root {source.root} is missing")

    if source.kind is state_module.SourceKind.LOCAL:
        return RefreshResult(name, RefreshStatus.LOCAL)

    _logger.info("Updating %s", name)
    if vcs.pull_updates(source.root):
        return RefreshResult(name, RefreshStatus.UPDATED)
    return RefreshResult(name, RefreshStatus.FAILED, CACHED_CONTENT_WARNING)


def remove(
    state: state_module.RegistryState,
    name: str,
    *,
    storage: layout.StorageLayout,
    project: layout.ProjectLayout,
) -> tuple[state_module.RegistryState, RemoveResult]:
    """
    Unregister a source and everything activated from it.

    Every linked activation keyed `<name>/...` is deleted from the project's
    agent directories before the source root is removed (the root is still
    needed to recognise a local source's links).

    Raises:
        SourceNotFoundError: If `name` is not registered.
    """
    source = get_source(state, name, storage)
    result = RemoveResult(name=name)

    result.removed_activations = active.remove_source_activations(
        name, project=project, storage=storage
    )

    try:
        linking.clear_destination(source.root)
    except OSError as e:
        _logger.warning("Could not delete %s: %s", source.root, e)
        result.warnings.append(f"could not delete {source.root}: {e}")

    return state.without_source(name), result
