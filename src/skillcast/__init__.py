"""
skillcast - manage agent skills across projects.

Registers skill sources (git repositories or local folders), discovers the
skills inside them, and links chosen skills into a project's agent folders.
"""

import importlib.metadata as _metadata

# Version is defined in pyproject.toml - read it and parse into tuple (primary representation)
_raw_version = _metadata.version("skillcast")
__version_info__: tuple[int, int, int] = tuple(int(x) for x in _raw_version.split(".")[:3])  # type: ignore[assignment]
__version__: str = ".".join(str(x) for x in __version_info__)
__author__ = "skillcast Contributors"

from skillcast.config import Settings  # noqa: E402

__all__ = ["__version__", "__version_info__", "Settings"]
