"""
Activation of skills into a project's agent directories.

Activating places a skill at `<project>/.<agent>/skills/<name>` for every
targeted agent whose root folder exists in the project. Agents the project
has not opted into are skipped, and an existing entry with the same name is
never overwritten.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import enum as _enum
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import skillcast.errors as errors
import skillcast.skills.layout as layout
import skillcast.skills.linking as linking

_logger = _logging.getLogger(__name__)


class TargetStatus(_enum.Enum):
    """Outcome of activating a skill for one agent."""

    INSTALLED = "installed"
    CONFLICT = "conflict"
    SKIPPED_MISSING_ROOT = "skipped_missing_root"


@_dataclasses.dataclass(frozen=True)
class TargetResult:
    """Result for one agent."""

    agent: str
    status: TargetStatus
    dest: _pathlib.Path
    method: linking.PlaceMethod | None = None

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "agent": self.agent,
            "status": self.status.value,
            "dest": str(self.dest),
            "method": self.method.value if self.method else None,
        }


@_dataclasses.dataclass
class ActivationReport:
    """Result of activating one skill across its target agents."""

    source_name: str
    skill_name: str
    skill_path: _pathlib.Path
    targets: list[str]
    results: list[TargetResult] = _dataclasses.field(default_factory=list)

    @property
    def key(self) -> str:
        """Activation key `<source>/<skill>`."""
        return f"{self.source_name}/{self.skill_name}"

    @property
    def installed(self) -> list[TargetResult]:
        """Agents that received the skill."""
        return [r for r in self.results if r.status is TargetStatus.INSTALLED]

    @property
    def conflicts(self) -> list[TargetResult]:
        """Agents that already held an entry with the same name."""
        return [r for r in self.results if r.status is TargetStatus.CONFLICT]

    @property
    def installed_count(self) -> int:
        """Number of agents actually populated."""
        return len(self.installed)

    @property
    def no_eligible_targets(self) -> bool:
        """True when no targeted agent folder exists in the project."""
        return self.installed_count == 0 and not self.conflicts

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "key": self.key,
            "skill_path": str(self.skill_path),
            "targets": self.targets,
            "installed_count": self.installed_count,
            "no_eligible_targets": self.no_eligible_targets,
            "results": [r.to_dict() for r in self.results],
        }


def resolve_skill_path(
    storage: layout.StorageLayout,
    source_name: str,
    skill_name: str,
) -> _pathlib.Path:
    """
    Locate a skill by name inside a source.

    Probes each agent-reserved folder, then the source root itself; the
    first candidate that is a directory containing the manifest wins.

    Raises:
        SkillNotFoundError: If no candidate matches.
    """
    for candidate in storage.skill_candidates(source_name, skill_name):
        if candidate.is_dir() and layout.has_manifest(candidate, storage.manifest_filename):
            return candidate
    raise errors.SkillNotFoundError(f"{source_name}/{skill_name}")


def resolve_targets(
    known_agents: _typing.Sequence[str],
    requested: _typing.Iterable[str] | None,
) -> list[str]:
    """
    Determine target agents.

    Args:
        known_agents: All configured agents, in order.
        requested: Explicit subset, or None/empty for all agents.

    Raises:
        ValueError: If a requested agent is not configured.
    """
    if not requested:
        return list(known_agents)

    wanted = list(dict.fromkeys(requested))
    unknown = [agent for agent in wanted if agent not in known_agents]
    if unknown:
        raise ValueError(f"Unknown agent(s): {', '.join(unknown)}")
    return [agent for agent in known_agents if agent in wanted]


def _entry_exists(path: _pathlib.Path) -> bool:
    """Existence check that also sees dangling links."""
    return path.is_symlink() or path.exists()


def activate(
    source_name: str,
    skill_name: str,
    *,
    storage: layout.StorageLayout,
    project: layout.ProjectLayout,
    skill_path: _pathlib.Path | None = None,
    targets: _typing.Iterable[str] | None = None,
    copy: bool = False,
) -> ActivationReport:
    """
    Activate a skill into the project's agent directories.

    Args:
        source_name: Registered source holding the skill.
        skill_name: Skill directory name (may contain `/` for nested skills).
        storage: Registry storage layout.
        project: Project whose agent folders receive the skill.
        skill_path: Already-discovered skill directory. Probed by name if None.
        targets: Restrict to these agents. Defaults to all known agents.
        copy: Force a full copy instead of a link.

    Returns:
        ActivationReport with one result per targeted agent.

    Raises:
        SkillNotFoundError: If the skill cannot be located.
        ValueError: If an unknown agent is requested.
    """
    if skill_path is None:
        skill_path = resolve_skill_path(storage, source_name, skill_name)
    elif not skill_path.is_dir():
        raise errors.SkillNotFoundError(f"{source_name}/{skill_name}")

    dest_name = _pathlib.PurePosixPath(skill_name).name
    report = ActivationReport(
        source_name=source_name,
        skill_name=dest_name,
        skill_path=skill_path,
        targets=resolve_targets(project.agents, targets),
    )

    for agent in report.targets:
        skills_dir = project.skills_dir(agent)
        dest = skills_dir / dest_name

        if not project.has_agent(agent):
            _logger.debug("Project has no %s folder; skipping", layout.agent_folder_name(agent))
            report.results.append(
                TargetResult(agent, TargetStatus.SKIPPED_MISSING_ROOT, dest)
            )
            continue

        skills_dir.mkdir(parents=True, exist_ok=True)

        if _entry_exists(dest):
            _logger.info("Skill %s already present in %s", dest_name, skills_dir)
            report.results.append(TargetResult(agent, TargetStatus.CONFLICT, dest))
            continue

        method = linking.place(skill_path, dest, is_directory=True, copy=copy)
        _logger.info("Activated %s -> %s (%s)", report.key, dest, method.value)
        report.results.append(TargetResult(agent, TargetStatus.INSTALLED, dest, method))

    return report
