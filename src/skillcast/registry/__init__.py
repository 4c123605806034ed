"""
Source registry for skillcast.

Sources are registered origins of skills:
- remote: a git repository cloned into the storage area
- local: a directory linked into the storage area

Only the registry itself is persisted (see registry.state); everything
else is derived from the filesystem.
"""

from skillcast.registry.sources import (
    AddResult,
    AddStatus,
    RefreshResult,
    RefreshStatus,
    RemoveResult,
    Source,
    add_local,
    add_remote,
    add_source,
    derive_local_name,
    derive_remote_name,
    get_source,
    is_remote_origin,
    iter_sources,
    refresh,
    remove,
)
from skillcast.registry.state import (
    RegistryState,
    SourceEntry,
    SourceKind,
    load_state,
    save_state,
)
from skillcast.registry.vcs import GitVersionControl, VersionControl

__all__ = [
    # State
    "RegistryState",
    "SourceEntry",
    "SourceKind",
    "load_state",
    "save_state",
    # Operations
    "Source",
    "AddResult",
    "AddStatus",
    "RefreshResult",
    "RefreshStatus",
    "RemoveResult",
    "add_local",
    "add_remote",
    "add_source",
    "derive_local_name",
    "derive_remote_name",
    "get_source",
    "is_remote_origin",
    "iter_sources",
    "refresh",
    "remove",
    # Version control
    "GitVersionControl",
    "VersionControl",
]
