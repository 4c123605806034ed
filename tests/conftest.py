"""
Shared pytest fixtures for skillcast tests.

This file is automatically loaded by pytest. Fixtures defined here are
available to all test files without explicit imports.
"""

import os as _os
import pathlib as _pathlib
import typing as _typing
import unittest.mock as _mock

import pytest as _pytest

import skillcast.config as config
import skillcast.registry as registry
import skillcast.skills as skills

# =============================================================================
# Environment Isolation
# =============================================================================


@_pytest.fixture
def clean_env() -> dict[str, str]:
    """
    Return environment dict with skillcast keys removed.

    Use with mock.patch.dict to isolate tests from the actual environment.
    """
    return {k: v for k, v in _os.environ.items() if not k.startswith("SKILLCAST_")}


@_pytest.fixture
def isolated_env(clean_env: dict[str, str]):
    """
    Context manager that isolates tests from environment variables.

    Usage:
        def test_something(isolated_env):
            with isolated_env:
                settings = config.Settings.construct_without_dotenv()
    """
    return _mock.patch.dict(_os.environ, clean_env, clear=True)


@_pytest.fixture
def cli_env(tmp_path: _pathlib.Path, monkeypatch: _pytest.MonkeyPatch) -> dict[str, str]:
    """
    Point skillcast at temporary home, config and project directories.

    Returns the variables set, for passing to CliRunner.
    """
    for key in list(_os.environ):
        if key.startswith("SKILLCAST_"):
            monkeypatch.delenv(key)

    env = {
        "SKILLCAST_HOME": str(tmp_path / "home"),
        "SKILLCAST_CONFIG_DIR": str(tmp_path / "config"),
        "SKILLCAST_PROJECT_DIR": str(tmp_path / "project"),
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    (tmp_path / "project").mkdir()
    return env


# =============================================================================
# Layouts
# =============================================================================


@_pytest.fixture
def storage(tmp_path: _pathlib.Path) -> skills.StorageLayout:
    """Empty registry storage area."""
    layout = skills.StorageLayout(tmp_path / "home" / "sources")
    layout.ensure()
    return layout


@_pytest.fixture
def project(tmp_path: _pathlib.Path) -> skills.ProjectLayout:
    """Project with `.claude` and `.gemini` folders but no `.codex`."""
    root = tmp_path / "project"
    (root / ".claude").mkdir(parents=True)
    (root / ".gemini").mkdir(parents=True)
    return skills.ProjectLayout(root)


def make_skill(
    parent: _pathlib.Path,
    name: str,
    description: str | None = None,
) -> _pathlib.Path:
    """Create `<parent>/<name>/SKILL.md` and return the skill directory."""
    skill_dir = parent / name
    skill_dir.mkdir(parents=True, exist_ok=True)
    if description is None:
        content = f"# {name}\n"
    else:
        content = f"---\nname: {name}\ndescription: {description}\n---\n\n# {name}\n"
    (skill_dir / "SKILL.md").write_text(content)
    return skill_dir


@_pytest.fixture
def skill_factory() -> _typing.Callable[..., _pathlib.Path]:
    """Factory for skill directories (see make_skill)."""
    return make_skill


@_pytest.fixture
def local_source_dir(tmp_path: _pathlib.Path) -> _pathlib.Path:
    """A directory outside storage holding two skills."""
    root = tmp_path / "my-skills"
    make_skill(root, "pdf", "Work with PDF files")
    make_skill(root / "group", "lint")
    return root


# =============================================================================
# Version Control
# =============================================================================


class FakeVersionControl:
    """
    VersionControl that builds working copies from a dict of origins.

    `repos` maps an origin to the skill names the "repository" contains.
    Origins missing from `repos` fail to clone. Set `pull_ok` to False to
    simulate an unreachable remote on update.
    """

    def __init__(self, repos: dict[str, list[str]] | None = None) -> None:
        self.repos = repos or {}
        self.pull_ok = True
        self.fetched: list[str] = []
        self.pulled: list[_pathlib.Path] = []
        self.last_error: str | None = None

    def fetch_new(self, origin: str, dest: _pathlib.Path) -> bool:
        self.fetched.append(origin)
        if origin not in self.repos:
            # A failed clone may leave a partial directory behind
            dest.mkdir(parents=True, exist_ok=True)
            self.last_error = "repository not found"
            return False
        dest.mkdir(parents=True, exist_ok=True)
        (dest / ".git").mkdir()
        for name in self.repos[origin]:
            make_skill(dest, name)
        return True

    def pull_updates(self, dest: _pathlib.Path) -> bool:
        self.pulled.append(dest)
        if not self.pull_ok:
            self.last_error = "network unreachable"
        return self.pull_ok


@_pytest.fixture
def fake_vcs() -> FakeVersionControl:
    """Version control with one known repository, `skills.git`."""
    return FakeVersionControl({"https://example.com/org/skills.git": ["pdf", "xlsx"]})


@_pytest.fixture
def empty_state() -> registry.RegistryState:
    """Registry with no sources."""
    return registry.RegistryState()


@_pytest.fixture
def clean_settings(isolated_env) -> config.Settings:
    """
    Settings instance isolated from environment and .env file.

    This fixture ensures tests get predictable default settings.
    """
    with isolated_env:
        return config.Settings.construct_without_dotenv()
