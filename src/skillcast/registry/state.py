"""
Persisted registry state.

The registry is the only persisted state in skillcast: a mapping from
source name to `{kind, origin}`. Active skills are never stored; they are
recomputed from link topology.

State values are immutable. Operations return a new RegistryState, and the
command layer writes it once, after the filesystem changes it triggered.
"""

from __future__ import annotations

import enum as _enum
import json as _json
import logging as _logging
import os as _os
import pathlib as _pathlib
import tempfile as _tempfile
import typing as _typing

import pydantic as _pydantic

import skillcast.constants as constants
import skillcast.errors as errors

_logger = _logging.getLogger(__name__)


class SourceKind(str, _enum.Enum):
    """Where a source's content comes from."""

    REMOTE = "remote"
    LOCAL = "local"


class SourceEntry(_pydantic.BaseModel):
    """
    Registry record for one source.

    Older registry files stored `{"type": "git", "url": ...}` or
    `{"type": "local", "path": ...}`; both shapes are accepted on load.
    """

    model_config = _pydantic.ConfigDict(extra="allow", frozen=True)

    kind: SourceKind
    """Remote repository or local directory."""

    origin: str = _pydantic.Field(..., min_length=1)
    """Remote address, or absolute canonical path for local sources."""

    @_pydantic.model_validator(mode="before")
    @classmethod
    def _accept_legacy_shape(cls, data: _typing.Any) -> _typing.Any:
        """Translate the legacy `type`/`url`/`path` layout."""
        if not isinstance(data, dict) or "kind" in data or "type" not in data:
            return data
        data = dict(data)
        legacy_type = data.pop("type")
        if legacy_type == "git":
            data["kind"] = SourceKind.REMOTE.value
            data["origin"] = data.pop("url", None)
        else:
            data["kind"] = legacy_type
            data["origin"] = data.pop("path", None)
        return data

    @property
    def is_remote(self) -> bool:
        """Whether this source is a remote repository."""
        return self.kind is SourceKind.REMOTE


class RegistryState(_pydantic.BaseModel):
    """All registered sources, keyed by name, in registration order."""

    model_config = _pydantic.ConfigDict(extra="allow", frozen=True)

    version: int = constants.REGISTRY_SCHEMA_VERSION
    """Schema version of the persisted file."""

    sources: dict[str, SourceEntry] = _pydantic.Field(default_factory=dict)
    """Source name → entry."""

    @_pydantic.model_validator(mode="before")
    @classmethod
    def _drop_legacy_keys(cls, data: _typing.Any) -> _typing.Any:
        """Old files carried a stored `active` list; active state is derived now."""
        if isinstance(data, dict) and "active" in data:
            data = {k: v for k, v in data.items() if k != "active"}
        return data

    def get(self, name: str) -> SourceEntry | None:
        """Look up a source entry by name."""
        return self.sources.get(name)

    def names(self) -> list[str]:
        """Source names in registration order."""
        return list(self.sources)

    def with_source(self, name: str, entry: SourceEntry) -> RegistryState:
        """Return a copy with `name` set to `entry`."""
        sources = dict(self.sources)
        sources[name] = entry
        return self.model_copy(update={"sources": sources})

    def without_source(self, name: str) -> RegistryState:
        """Return a copy with `name` removed."""
        sources = {k: v for k, v in self.sources.items() if k != name}
        return self.model_copy(update={"sources": sources})


def load_state(path: _pathlib.Path) -> RegistryState:
    """
    Load the registry from disk.

    Args:
        path: Registry JSON file.

    Returns:
        The registry, or an empty one if the file does not exist.

    Raises:
        RegistryCorruptError: If the file cannot be read or parsed.
    """
    if not path.exists():
        return RegistryState()

    try:
        data = _json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise errors.RegistryCorruptError(path, f"cannot read file: {e}") from e
    except _json.JSONDecodeError as e:
        raise errors.RegistryCorruptError(path, f"invalid JSON: {e}") from e

    try:
        return RegistryState.model_validate(data)
    except _pydantic.ValidationError as e:
        raise errors.RegistryCorruptError(path, str(e)) from e


def save_state(path: _pathlib.Path, state: RegistryState) -> _pathlib.Path:
    """
    Write the registry to disk atomically.

    The content goes to a temporary file in the same directory, which is
    then renamed over `path`, so readers never see a partial file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = _json.dumps(state.model_dump(mode="json"), indent=2) + "\n"

    fd, tmp_name = _tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with _os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        _os.replace(tmp_name, path)
    except BaseException:
        _pathlib.Path(tmp_name).unlink(missing_ok=True)
        raise

    _logger.debug("Saved registry with %d source(s) to %s", len(state.sources), path)
    return path
