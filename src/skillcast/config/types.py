"""Configuration type definitions for skillcast settings.

This module defines the Pydantic models used to represent configuration
sections nested within the main Settings class:

- StorageConfig: where the registry keeps sources and its state file
- AgentsConfig: which agent directories a project may opt into
- DiscoveryConfig: manifest file name and directory exclusions
- VcsConfig: version-control executable and clone options
- LoggingConfig: log level for diagnostic output

All types use `extra="allow"` so unknown fields are preserved rather than
silently dropped. Use `get_extra_fields()` to inspect them.
"""

import re as _re
import typing as _typing

import pydantic as _pydantic

import skillcast.constants as constants

_AGENT_NAME_RE = _re.compile(r"^[a-z0-9][a-z0-9_-]*$")


class ConfigBase(_pydantic.BaseModel):
    """
    Base class for all config types.

    Provides introspection for strict validation mode.
    """

    model_config = _pydantic.ConfigDict(extra="allow")

    def get_extra_fields(self) -> dict[str, _typing.Any]:
        """
        Return fields that were provided but not in the schema.

        Unknown fields may indicate typos or outdated config keys.

        Returns:
            Dict of field_name → value for all unrecognized fields.
        """
        return dict(self.model_extra) if self.model_extra else {}

    def has_extra_fields(self) -> bool:
        """Check if this config has any unrecognized fields."""
        return bool(self.model_extra)


# =============================================================================
# Storage Settings
# =============================================================================


class StorageConfig(ConfigBase):
    """
    Registry storage locations.

    YAML section: storage.*

    Paths left unset are derived from Settings.home.
    """

    sources_dir: str | None = None
    """Directory holding one root per registered source."""

    registry_file: str | None = None
    """JSON file with the persisted source registry."""


# =============================================================================
# Agent Settings
# =============================================================================


class AgentsConfig(ConfigBase):
    """
    Agent directory settings.

    YAML section: agents.*
    """

    names: list[str] = _pydantic.Field(
        default_factory=lambda: list(constants.DEFAULT_AGENTS)
    )
    """Known agents, in probe order. Each maps to `.<name>/skills`."""

    @_pydantic.field_validator("names")
    @classmethod
    def _validate_names(cls, value: list[str]) -> list[str]:
        """Agent names become directory names, so keep them plain."""
        if not value:
            raise ValueError("at least one agent must be configured")
        seen: list[str] = []
        for name in value:
            name = name.strip().lstrip(".")
            if not _AGENT_NAME_RE.match(name):
                raise ValueError(f"invalid agent name: {name!r}")
            if name not in seen:
                seen.append(name)
        return seen


# =============================================================================
# Discovery Settings
# =============================================================================


class DiscoveryConfig(ConfigBase):
    """
    Skill discovery settings.

    YAML section: discovery.*
    """

    manifest_filename: str = constants.MANIFEST_FILENAME
    """File that marks a directory as a skill (case-sensitive)."""

    ignored_names: list[str] = _pydantic.Field(
        default_factory=lambda: list(constants.DEFAULT_IGNORED_NAMES)
    )
    """Directory names never descended into. Hidden entries are always skipped."""


# =============================================================================
# Version Control Settings
# =============================================================================


class VcsConfig(ConfigBase):
    """
    Version-control settings for remote sources.

    YAML section: vcs.*
    """

    executable: str = "git"
    """Version-control executable used to clone and pull."""

    clone_depth: int | None = _pydantic.Field(default=None, ge=1)
    """Shallow clone depth. None = full clone."""


# =============================================================================
# Logging Settings
# =============================================================================


class LoggingConfig(ConfigBase):
    """
    Logging settings.

    YAML section: logging.*
    """

    level: _typing.Literal["debug", "info", "warning", "error"] = "warning"
    """Log level when --verbose is not given."""
