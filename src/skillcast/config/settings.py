"""
Settings configuration using pydantic-settings.

Loads configuration from:
1. Constructor arguments (highest precedence)
2. Environment variables with SKILLCAST_ prefix
3. .env file (only if SKILLCAST_ENV_FILE points at one)
4. Layered YAML config files:
   - Project config: .skillcast/config.yaml (highest)
   - User config: ~/.config/skillcast/config.yaml

Nested config uses double underscore delimiter:
  SKILLCAST_AGENTS__NAMES='["claude"]'
  SKILLCAST_VCS__CLONE_DEPTH=1
"""

import os as _os
import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic
import pydantic_settings as _pydantic_settings

import skillcast.config.sources as sources
import skillcast.config.types as types
import skillcast.skills.layout as layout


def _get_env_file() -> str | None:
    """Determine which .env file to load.

    Only an explicit SKILLCAST_ENV_FILE is honoured. If it is set but the
    file does not exist, nothing is loaded rather than falling back.
    """
    if env_file := _os.environ.get("SKILLCAST_ENV_FILE"):
        if _pathlib.Path(env_file).exists():
            return env_file
    return None


def _initial_project_dir() -> _pathlib.Path:
    """Project directory used to locate project-level config."""
    if project_dir := _os.environ.get("SKILLCAST_PROJECT_DIR"):
        return _pathlib.Path(project_dir).expanduser()
    return _pathlib.Path.cwd()


class Settings(_pydantic_settings.BaseSettings):
    """
    skillcast configuration settings.

    All settings can be overridden via environment variables with the
    SKILLCAST_ prefix. For nested config, use double underscore:
    SKILLCAST_VCS__EXECUTABLE=/usr/local/bin/git

    Config precedence (highest to lowest):
    1. Constructor arguments
    2. Environment variables (SKILLCAST_*)
    3. .env file
    4. Project config (.skillcast/config.yaml)
    5. User config (~/.config/skillcast/config.yaml)
    6. Field defaults
    """

    model_config = _pydantic_settings.SettingsConfigDict(
        env_prefix="SKILLCAST_",
        env_file=_get_env_file(),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="allow",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[_pydantic_settings.BaseSettings],
        init_settings: _pydantic_settings.PydanticBaseSettingsSource,
        env_settings: _pydantic_settings.PydanticBaseSettingsSource,
        dotenv_settings: _pydantic_settings.PydanticBaseSettingsSource,
        file_secret_settings: _pydantic_settings.PydanticBaseSettingsSource,
    ) -> tuple[_pydantic_settings.PydanticBaseSettingsSource, ...]:
        """
        Configure settings sources with precedence:
        1. init_settings (constructor args), highest
        2. env_settings (SKILLCAST_* env vars)
        3. dotenv_settings (.env file)
        4. yaml_settings (layered config.yaml files)

        A project_dir passed to the constructor also selects which project
        config file is read.
        """
        init_kwargs = getattr(init_settings, "init_kwargs", {})
        if project_dir := init_kwargs.get("project_dir"):
            project_root = _pathlib.Path(project_dir).expanduser()
        else:
            project_root = _initial_project_dir()
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            sources.LayeredYamlSettingsSource(settings_cls, project_root),
            file_secret_settings,
        )

    @classmethod
    def construct_without_dotenv(cls, **kwargs: _typing.Any) -> "Settings":
        """Create Settings from environment variables only, without loading .env file.

        Useful for test isolation.
        """
        return cls(_env_file=None, **kwargs)  # type: ignore[call-arg]

    # =========================================================================
    # Config version (for future migrations)
    # =========================================================================

    version: int = _pydantic.Field(default=1, description="Config schema version")

    # =========================================================================
    # Flat fields
    # =========================================================================

    home: str = _pydantic.Field(
        default="~/.skillcast",
        description="Base directory for registry storage",
    )

    project_dir: str | None = _pydantic.Field(
        default=None,
        description="Project directory holding agent folders (default: cwd)",
    )

    verbose: bool = _pydantic.Field(default=False, description="Enable debug logging")

    # =========================================================================
    # Nested config sections
    # =========================================================================

    storage: types.StorageConfig = _pydantic.Field(default_factory=types.StorageConfig)
    """Registry storage locations."""

    agents: types.AgentsConfig = _pydantic.Field(default_factory=types.AgentsConfig)
    """Known agents."""

    discovery: types.DiscoveryConfig = _pydantic.Field(
        default_factory=types.DiscoveryConfig
    )
    """Skill discovery settings."""

    vcs: types.VcsConfig = _pydantic.Field(default_factory=types.VcsConfig)
    """Version-control settings."""

    logging: types.LoggingConfig = _pydantic.Field(default_factory=types.LoggingConfig)
    """Logging settings."""

    # =========================================================================
    # Directory settings (computed at runtime)
    # =========================================================================

    @property
    def home_dir(self) -> _pathlib.Path:
        """Expanded, absolute base directory."""
        return _pathlib.Path(self.home).expanduser().absolute()

    @property
    def sources_dir(self) -> _pathlib.Path:
        """Registry storage area: one root per registered source."""
        if self.storage.sources_dir:
            return _pathlib.Path(self.storage.sources_dir).expanduser().absolute()
        return self.home_dir / "sources"

    @property
    def registry_file(self) -> _pathlib.Path:
        """Persisted registry state."""
        if self.storage.registry_file:
            return _pathlib.Path(self.storage.registry_file).expanduser().absolute()
        return self.home_dir / "registry.json"

    @property
    def config_dir(self) -> _pathlib.Path:
        """User configuration directory (~/.config/skillcast/)."""
        return sources.get_user_config_dir()

    @property
    def project_root(self) -> _pathlib.Path:
        """Project directory (explicit setting or current directory)."""
        if self.project_dir:
            return _pathlib.Path(self.project_dir).expanduser().absolute()
        return _pathlib.Path.cwd()

    @property
    def log_level(self) -> str:
        """Effective log level name."""
        if self.verbose:
            return "DEBUG"
        return self.logging.level.upper()

    # =========================================================================
    # Helper methods
    # =========================================================================

    def project_layout(self) -> layout.ProjectLayout:
        """Agent directories of the current project."""
        return layout.ProjectLayout(
            self.project_root,
            agents=tuple(self.agents.names),
            manifest_filename=self.discovery.manifest_filename,
        )

    def storage_layout(self) -> layout.StorageLayout:
        """Registry storage area."""
        return layout.StorageLayout(
            self.sources_dir,
            agents=tuple(self.agents.names),
            manifest_filename=self.discovery.manifest_filename,
            ignored_names=tuple(self.discovery.ignored_names),
        )
