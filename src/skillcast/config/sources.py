"""Custom pydantic-settings sources for skillcast configuration.

This module provides:

- LayeredYamlSettingsSource: A pydantic-settings source that loads
  configuration from layered YAML files and merges them.

Configuration layers (in precedence order, highest first):
1. Environment variables (handled by pydantic-settings)
2. Project config: .skillcast/config.yaml in the project directory
3. User config: ~/.config/skillcast/config.yaml (or SKILLCAST_CONFIG_DIR)

Nested mappings merge key by key; any other value in a higher layer
replaces the lower one outright.

Environment variables:
- SKILLCAST_CONFIG_DIR: Override user config directory (default: ~/.config/skillcast)
"""

import collections.abc as _abc
import copy as _copy
import os as _os
import pathlib as _pathlib
import typing as _typing

import pydantic.fields as _pydantic_fields
import pydantic_settings as _pydantic_settings
import yaml as _yaml

# Environment variable for overriding user config directory
ENV_CONFIG_DIR = "SKILLCAST_CONFIG_DIR"

CONFIG_FILENAME = "config.yaml"


class ConfigFileError(Exception):
    """Error loading or parsing a configuration file."""

    def __init__(self, path: _pathlib.Path, message: str) -> None:
        self.path = path
        super().__init__(f"Error in config file {path}: {message}")


def deep_merge(
    base: _abc.Mapping[str, _typing.Any],
    override: _abc.Mapping[str, _typing.Any],
) -> dict[str, _typing.Any]:
    """
    Merge two config mappings, with `override` winning.

    Nested mappings are merged recursively. Lists and scalars are replaced.
    Neither input is modified.

    Args:
        base: Lower-precedence mapping.
        override: Higher-precedence mapping.

    Returns:
        New merged dict.
    """
    result: dict[str, _typing.Any] = _copy.deepcopy(dict(base))
    for key, value in override.items():
        existing = result.get(key)
        if isinstance(existing, _abc.Mapping) and isinstance(value, _abc.Mapping):
            result[key] = deep_merge(existing, value)
        else:
            result[key] = _copy.deepcopy(value)
    return result


def load_yaml_file(path: _pathlib.Path) -> dict[str, _typing.Any] | None:
    """
    Load a YAML config file and return its contents as a dict.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML contents, or None if the file is empty.

    Raises:
        ConfigFileError: If the file cannot be read, is malformed YAML,
            or contains non-dict content at the top level.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except PermissionError as e:
        raise ConfigFileError(path, f"permission denied: {e}") from e
    except OSError as e:
        raise ConfigFileError(path, f"cannot read file: {e}") from e

    try:
        parsed = _yaml.safe_load(content)
    except _yaml.YAMLError as e:
        raise ConfigFileError(path, f"invalid YAML: {e}") from e

    if parsed is None:
        return None

    if not isinstance(parsed, dict):
        type_name = type(parsed).__name__
        raise ConfigFileError(
            path,
            f"config must be a YAML mapping (dict), got {type_name}",
        )

    return parsed


class LayeredYamlSettingsSource(_pydantic_settings.PydanticBaseSettingsSource):
    """
    Settings source that loads from layered YAML config files.

    Flow:
        1. Load each existing YAML file into a dict
        2. Merge dicts in ascending precedence (user, then project)
        3. Return merged dict to pydantic-settings for validation

    Missing files are normal and skipped; malformed files raise
    ConfigFileError so typos are never silently ignored.
    """

    def __init__(
        self,
        settings_cls: type[_pydantic_settings.BaseSettings],
        project_root: _pathlib.Path | None = None,
        *,
        user_config_path: _pathlib.Path | None = None,
    ) -> None:
        """
        Initialize the settings source.

        Args:
            settings_cls: The Settings class being populated.
            project_root: Optional project directory for project-level config.
            user_config_path: Override path for user config file (for testing).
                If not provided, uses SKILLCAST_CONFIG_DIR or the XDG path.
        """
        super().__init__(settings_cls)
        self._project_root = project_root
        self._user_config_path = user_config_path
        self._loaded_layers: list[tuple[str, _pathlib.Path]] = []
        self._merged = self._load_config_layers()

    def _load_config_layers(self) -> dict[str, _typing.Any]:
        """Load and merge config files, lowest precedence first."""
        merged: dict[str, _typing.Any] = {}

        for layer_name, path in reversed(self.get_layer_candidates()):
            if not path.exists():
                continue
            content = load_yaml_file(path)
            if content:
                merged = deep_merge(merged, content)
                self._loaded_layers.insert(0, (layer_name, path))

        return merged

    def get_layer_candidates(self) -> list[tuple[str, _pathlib.Path]]:
        """
        Get all config layer paths, whether or not they exist.

        Returns:
            List of (layer_name, path) tuples, highest precedence first.
        """
        layers: list[tuple[str, _pathlib.Path]] = []
        if self._project_root:
            layers.append(("project", get_project_config_path(self._project_root)))
        user_path = self._user_config_path or get_user_config_path()
        layers.append(("user", user_path))
        return layers

    def get_loaded_layers(self) -> list[tuple[str, _pathlib.Path]]:
        """
        Get info about layers that were actually loaded.

        Returns:
            List of (layer_name, path) tuples, highest precedence first.
        """
        return list(self._loaded_layers)

    def get_field_value(
        self,
        field: _pydantic_fields.FieldInfo,  # noqa: ARG002 - required by pydantic-settings interface
        field_name: str,
    ) -> tuple[_typing.Any, str, bool]:
        """
        Get value for a top-level field from the merged config.

        Returns:
            Tuple of (value, field_name, is_complex).
        """
        value = self._merged.get(field_name)
        if value is None:
            return None, field_name, False
        return value, field_name, isinstance(value, (_abc.Mapping, list))

    def __call__(self) -> dict[str, _typing.Any]:
        """
        Return merged config as a plain dict for Pydantic validation.

        Unknown keys are included and end up in Settings.model_extra.
        """
        return _copy.deepcopy(self._merged)


def get_user_config_dir() -> _pathlib.Path:
    """
    Get the user config directory.

    Respects SKILLCAST_CONFIG_DIR environment variable if set,
    otherwise uses XDG standard path.
    """
    config_dir_env = _os.environ.get(ENV_CONFIG_DIR)
    if config_dir_env:
        return _pathlib.Path(config_dir_env)
    return _pathlib.Path.home() / ".config" / "skillcast"


def get_user_config_path() -> _pathlib.Path:
    """Get the path to the user config file."""
    return get_user_config_dir() / CONFIG_FILENAME


def get_project_config_path(project_root: _pathlib.Path) -> _pathlib.Path:
    """
    Get the path to the project config file.

    Args:
        project_root: The project directory.

    Returns:
        Path to .skillcast/config.yaml within the project.
    """
    return project_root / ".skillcast" / CONFIG_FILENAME
