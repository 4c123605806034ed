"""
Version-control access for remote sources.

The registry only decides when to fetch or update a working copy; how the
transfer happens is behind the VersionControl protocol. GitVersionControl
shells out to `git`. A failure is reported as False, never raised, so the
caller can fall back to the cached copy.
"""

from __future__ import annotations

import logging as _logging
import pathlib as _pathlib
import subprocess as _subprocess
import typing as _typing

_logger = _logging.getLogger(__name__)


class VersionControl(_typing.Protocol):
    """Fetches and updates working copies of remote sources."""

    def fetch_new(self, origin: str, dest: _pathlib.Path) -> bool:
        """Create a fresh working copy of `origin` at `dest`."""
        ...

    def pull_updates(self, dest: _pathlib.Path) -> bool:
        """Bring the working copy at `dest` up to date."""
        ...


class GitVersionControl:
    """VersionControl backed by the git command line."""

    def __init__(
        self,
        executable: str = "git",
        *,
        clone_depth: int | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize the git invoker.

        Args:
            executable: git binary to run.
            clone_depth: Shallow clone depth (None for a full clone).
            timeout: Seconds before a git command is abandoned (None = wait).
        """
        self._executable = executable
        self._clone_depth = clone_depth
        self._timeout = timeout
        self.last_error: str | None = None

    def _run(self, args: list[str], cwd: _pathlib.Path | None = None) -> bool:
        """Run git and report success; the failure detail goes to last_error."""
        command = [self._executable, *args]
        _logger.debug("Running %s (cwd=%s)", " ".join(command), cwd)
        self.last_error = None
        try:
            result = _subprocess.run(
                command,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except FileNotFoundError:
            self.last_error = f"{self._executable} is not installed"
        except _subprocess.TimeoutExpired:
            self.last_error = f"{self._executable} timed out after {self._timeout}s"
        except OSError as e:
            self.last_error = str(e)
        else:
            if result.returncode == 0:
                return True
            self.last_error = (result.stderr or result.stdout).strip() or (
                f"exit status {result.returncode}"
            )

        _logger.warning("git %s failed: %s", args[0], self.last_error)
        return False

    def fetch_new(self, origin: str, dest: _pathlib.Path) -> bool:
        """Clone `origin` into `dest`."""
        args = ["clone"]
        if self._clone_depth is not None:
            args += ["--depth", str(self._clone_depth)]
        args += [origin, str(dest)]
        return self._run(args)

    def pull_updates(self, dest: _pathlib.Path) -> bool:
        """Pull into the working copy at `dest`."""
        return self._run(["pull"], cwd=dest)
