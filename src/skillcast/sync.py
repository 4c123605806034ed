"""
Sync: refresh remote sources, then re-place every active link.

Activations are re-derived from the filesystem, never read from a list.
A link whose target still exists is recreated (repairing a stale link);
a link whose target is gone is reported as orphaned and left alone, and
copies are left alone because their origin is unknown.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import skillcast.registry.sources as sources
import skillcast.registry.state as state_module
import skillcast.registry.vcs as vcs_module
import skillcast.skills.active as active
import skillcast.skills.layout as layout
import skillcast.skills.linking as linking

_logger = _logging.getLogger(__name__)


@_dataclasses.dataclass
class SyncReport:
    """Result of a sync run."""

    sources: list[sources.RefreshResult] = _dataclasses.field(default_factory=list)
    relinked: list[active.Activation] = _dataclasses.field(default_factory=list)
    orphaned: list[active.Activation] = _dataclasses.field(default_factory=list)
    untracked: list[active.Activation] = _dataclasses.field(default_factory=list)

    @property
    def failed_sources(self) -> list[sources.RefreshResult]:
        """Sources that could not be updated."""
        return [
            r
            for r in self.sources
            if r.status in (sources.RefreshStatus.FAILED, sources.RefreshStatus.MISSING)
        ]

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "sources": [r.to_dict() for r in self.sources],
            "skill_count": len(self.relinked),
            "relinked": [a.key for a in self.relinked],
            "orphaned": [a.key for a in self.orphaned],
            "untracked": [a.key for a in self.untracked],
        }


def _link_source(activation: active.Activation) -> _pathlib.Path | None:
    """Path to re-link to: the literal target if it still exists, else the canonical one."""
    literal = active.literal_target(activation.path)
    if literal is not None and literal.exists():
        return literal
    if activation.target_exists:
        return activation.target
    return None


def sync(
    state: state_module.RegistryState,
    *,
    storage: layout.StorageLayout,
    project: layout.ProjectLayout,
    vcs: vcs_module.VersionControl,
) -> SyncReport:
    """
    Refresh all sources, then refresh every active link in the project.

    Args:
        state: Current registry.
        storage: Registry storage area.
        project: Project whose agent directories are re-linked.
        vcs: Version-control invoker for remote sources.

    Returns:
        SyncReport describing every source and activation touched.
    """
    report = SyncReport()

    for name in state.names():
        report.sources.append(sources.refresh(state, name, storage=storage, vcs=vcs))

    for activation in active.list_active(project=project, storage=storage):
        if not activation.linked:
            report.untracked.append(activation)
            continue

        target = _link_source(activation)
        if target is None:
            _logger.warning("Source for %s is missing; leaving %s", activation.key, activation.path)
            report.orphaned.append(activation)
            continue

        linking.place(target, activation.path, is_directory=True)
        report.relinked.append(activation)

    return report
