"""
Skill discovery, activation, and active-set reconstruction.

A skill is a directory containing SKILL.md. Skills are discovered inside
registered sources and activated into a project's agent folders:

    .claude/skills/<name>
    .gemini/skills/<name>
    .codex/skills/<name>

Activations are links (or copies, when links are unavailable). Which skills
are active, and where they came from, is always recomputed from the links.
"""

from skillcast.skills.activation import (
    ActivationReport,
    TargetResult,
    TargetStatus,
    activate,
    resolve_skill_path,
)
from skillcast.skills.active import (
    Activation,
    RemovalResult,
    find_active,
    list_active,
    remove_activation,
    remove_skill,
    remove_source_activations,
)
from skillcast.skills.discovery import SkillDiscovery, discover, discover_source
from skillcast.skills.layout import ProjectLayout, StorageLayout, agent_folder_name
from skillcast.skills.linking import PlaceMethod, place
from skillcast.skills.skill import Skill, read_description

__all__ = [
    # Records
    "Skill",
    "read_description",
    # Layouts
    "ProjectLayout",
    "StorageLayout",
    "agent_folder_name",
    # Discovery
    "SkillDiscovery",
    "discover",
    "discover_source",
    # Placement
    "PlaceMethod",
    "place",
    # Activation
    "ActivationReport",
    "TargetResult",
    "TargetStatus",
    "activate",
    "resolve_skill_path",
    # Active set
    "Activation",
    "RemovalResult",
    "find_active",
    "list_active",
    "remove_activation",
    "remove_skill",
    "remove_source_activations",
]
