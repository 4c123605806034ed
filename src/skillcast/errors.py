"""
Exception hierarchy for skillcast.

Every failure that leaves an engine operation is one of these kinds.
Low-level OSError and subprocess failures are converted at the operation
boundary so callers only ever see a SkillcastError subclass.
"""

from __future__ import annotations

import pathlib as _pathlib


class SkillcastError(Exception):
    """Base class for all skillcast errors."""

    pass


# =============================================================================
# NotFound
# =============================================================================


class NotFoundError(SkillcastError):
    """A source, skill, or path does not exist."""

    pass


class SourceNotFoundError(NotFoundError):
    """Raised when a source name is not in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Source not found: {name}")


class SkillNotFoundError(NotFoundError):
    """Raised when a skill cannot be located in a source or project."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Skill not found: {key}")


class PathNotFoundError(NotFoundError):
    """Raised when a local path given by the user does not exist."""

    def __init__(self, path: _pathlib.Path | str) -> None:
        self.path = _pathlib.Path(path)
        super().__init__(f"Path not found: {path}")


# =============================================================================
# Recoverable kinds
# =============================================================================


class ConflictError(SkillcastError):
    """A destination is already occupied."""

    pass


class SourceNameCollisionError(ConflictError):
    """Raised when a different origin would reuse an existing source name."""

    def __init__(self, name: str, existing: str, requested: str) -> None:
        self.name = name
        self.existing = existing
        self.requested = requested
        super().__init__(
            f"Source '{name}' is already registered for {existing}; "
            f"choose another name for {requested}"
        )


class StorageOverlapError(ConflictError):
    """Raised when a local path lies inside the storage area itself."""

    def __init__(self, path: _pathlib.Path, sources_dir: _pathlib.Path) -> None:
        self.path = path
        self.sources_dir = sources_dir
        super().__init__(
            f"{path} is inside the skillcast storage area {sources_dir}; "
            "register the original folder instead"
        )


class OriginUnreachableError(SkillcastError):
    """Raised when a remote origin could not be fetched."""

    def __init__(self, origin: str, detail: str = "") -> None:
        self.origin = origin
        self.detail = detail
        message = f"Could not reach origin: {origin}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class LinkUnsupportedError(SkillcastError):
    """Raised when the host refuses to create a symbolic link."""

    pass


class AmbiguousOriginError(SkillcastError):
    """Raised when an entry cannot be traced back to a registered source."""

    def __init__(self, path: _pathlib.Path, reason: str = "") -> None:
        self.path = path
        message = f"Cannot determine origin of {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


# =============================================================================
# Fatal
# =============================================================================


class RegistryCorruptError(SkillcastError):
    """Raised when the persisted registry cannot be read back."""

    def __init__(self, path: _pathlib.Path, message: str) -> None:
        self.path = path
        super().__init__(f"Registry file {path} is corrupt: {message}")
