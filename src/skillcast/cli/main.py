"""
Main CLI entry point for skillcast.

Provides the command-line interface using Click. Commands load the
registry once, run one engine operation, and write the registry back once
at the end.
"""

import dataclasses as _dataclasses
import functools as _functools
import json as _json
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import click as _click
import pydantic as _pydantic

import skillcast
import skillcast.config as config
import skillcast.errors as errors
import skillcast.registry as registry
import skillcast.skills as skills
import skillcast.sync as sync_module
import skillcast.ui as ui

# Custom Click context settings for better help formatting
CONTEXT_SETTINGS: dict[str, _typing.Any] = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 100,
}

_F = _typing.TypeVar("_F", bound=_typing.Callable[..., _typing.Any])


def _fail(message: str) -> _typing.NoReturn:
    """Print a one-line error and exit."""
    _click.echo(f"Error: {message}", err=True)
    raise SystemExit(1)


def _handle_errors(func: _F) -> _F:
    """Turn engine errors into one-line messages instead of tracebacks."""

    @_functools.wraps(func)
    def wrapper(*args: _typing.Any, **kwargs: _typing.Any) -> _typing.Any:
        try:
            return func(*args, **kwargs)
        except errors.RegistryCorruptError as e:
            _click.echo(f"Fatal: {e}", err=True)
            raise SystemExit(2) from None
        except (errors.SkillcastError, ValueError) as e:
            _fail(str(e))
        except OSError as e:
            _fail(f"{e.strerror or e}: {e.filename}" if e.filename else str(e))

    return _typing.cast(_F, wrapper)


@_dataclasses.dataclass
class _Runtime:
    """Everything a command needs, built once from Settings."""

    settings: config.Settings
    storage: skills.StorageLayout
    project: skills.ProjectLayout
    vcs: registry.VersionControl

    def load(self) -> registry.RegistryState:
        """Load the persisted registry."""
        return registry.load_state(self.settings.registry_file)

    def save(self, state: registry.RegistryState) -> None:
        """Persist the registry."""
        registry.save_state(self.settings.registry_file, state)


def _runtime(ctx: _click.Context) -> _Runtime:
    """Get the runtime stored on the root context."""
    return _typing.cast(_Runtime, ctx.find_root().obj["runtime"])


def _configure_logging(level: str) -> None:
    """Send diagnostic logging to stderr at the configured level."""
    _logging.basicConfig(
        level=getattr(_logging, level, _logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _echo_json(data: _typing.Any) -> None:
    """Print data as indented JSON."""
    _click.echo(_json.dumps(data, indent=2))


def _choose(items: list[str], prompt: str) -> int:
    """Show a numbered list and return the chosen zero-based index."""
    for i, item in enumerate(items, start=1):
        _click.echo(f"  [{i}] {item}")
    choice = _click.prompt(prompt, type=_click.IntRange(1, len(items)))
    return int(choice) - 1


def _parse_indices(raw: str, count: int) -> list[int]:
    """Parse `1, 3,4` into zero-based indices, ignoring anything out of range."""
    indices: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part.isdigit():
            continue
        index = int(part) - 1
        if 0 <= index < count and index not in indices:
            indices.append(index)
    return indices


@_click.group(context_settings=CONTEXT_SETTINGS)
@_click.version_option(skillcast.__version__, "-v", "--version", prog_name="skillcast")
@_click.option("--verbose", is_flag=True, help="Enable debug logging")
@_click.option(
    "--project",
    "project_dir",
    type=_click.Path(file_okay=False, path_type=_pathlib.Path),
    default=None,
    help="Project directory holding agent folders (default: current directory)",
)
@_click.pass_context
def cli(ctx: _click.Context, verbose: bool, project_dir: _pathlib.Path | None) -> None:
    """
    skillcast - cast agent skills into your projects.

    Register skill sources (git repositories or local folders), then link
    the skills you want into .claude/, .gemini/ and .codex/ folders.

    \b
    Examples:
        skillcast init
        skillcast source add https://github.com/org/skills.git
        skillcast source add ~/my-skills
        skillcast use skills/pdf-tools --claude
        skillcast list
        skillcast sync
    """
    overrides: dict[str, _typing.Any] = {}
    if verbose:
        overrides["verbose"] = True
    if project_dir is not None:
        overrides["project_dir"] = str(project_dir)

    try:
        settings = config.Settings(**overrides)
    except (config.ConfigFileError, _pydantic.ValidationError) as e:
        _fail(f"invalid configuration: {e}")

    _configure_logging(settings.log_level)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["runtime"] = _Runtime(
        settings=settings,
        storage=settings.storage_layout(),
        project=settings.project_layout(),
        vcs=registry.GitVersionControl(
            settings.vcs.executable,
            clone_depth=settings.vcs.clone_depth,
        ),
    )


# ============================================================================
# Init
# ============================================================================


@cli.command()
@_click.pass_context
@_handle_errors
def init(ctx: _click.Context) -> None:
    """Create the storage area and an empty registry."""
    rt = _runtime(ctx)
    rt.storage.ensure()

    registry_file = rt.settings.registry_file
    if registry_file.exists():
        rt.load()
        _click.echo(f"Registry already exists: {registry_file}")
    else:
        rt.save(registry.RegistryState())
        _click.echo(f"Created registry: {registry_file}")

    _click.echo("\nNext steps:")
    _click.echo("  skillcast source add <git-url>   # register a repository")
    _click.echo("  skillcast source add <path>      # register a local folder")
    _click.echo("  skillcast use                    # pick skills for this project")


# ============================================================================
# Source Commands
# ============================================================================


@cli.group(invoke_without_command=True)
@_click.pass_context
def source_cmd(ctx: _click.Context) -> None:
    """Manage skill sources.

    Without a subcommand, lists registered sources.
    """
    if ctx.invoked_subcommand is None:
        ctx.invoke(source_list)


# Register source_cmd with the name "source" to avoid shadowing names
cli.add_command(source_cmd, name="source")


def _print_add_result(result: registry.AddResult) -> None:
    """Describe the outcome of a registration."""
    name = result.source.name
    if result.status is registry.AddStatus.ADDED:
        _click.echo(f"{ui.icon_success()}Added source {name} ({result.source.origin})")
    elif result.status is registry.AddStatus.REFRESHED:
        _click.echo(f"{ui.icon_success()}Source {name} already registered; updated")
    elif result.status is registry.AddStatus.RELINKED:
        _click.echo(f"{ui.icon_success()}Re-linked local source {name}")
    else:
        _click.echo(f"{ui.icon_warning()}Source {name}: {result.warning}")
    _click.echo(f"Run 'skillcast use {name}' to pick skills from it.")


@source_cmd.command(name="add")
@_click.argument("target", required=False)
@_click.option("--name", type=str, default=None, help="Register under this name")
@_click.pass_context
@_handle_errors
def source_add(ctx: _click.Context, target: str | None, name: str | None) -> None:
    """Register a git repository or a local folder.

    TARGET is treated as a repository if it starts with http or git@, or
    ends with .git; anything else is a local path.
    """
    rt = _runtime(ctx)
    if not target:
        target = _click.prompt("Git URL or local path", type=str).strip()
    if not target:
        _fail("no source given")

    state = rt.load()
    new_state, result = registry.add_source(
        state, target, storage=rt.storage, vcs=rt.vcs, name=name
    )
    rt.save(new_state)
    _print_add_result(result)


@source_cmd.command(name="list")
@_click.option("--json", "json_output", is_flag=True, help="JSON output")
@_click.pass_context
@_handle_errors
def source_list(ctx: _click.Context, json_output: bool = False) -> None:
    """List registered sources."""
    rt = _runtime(ctx)
    sources = registry.iter_sources(rt.load(), rt.storage)

    if json_output:
        _echo_json({"sources": [s.to_dict() for s in sources]})
        return

    if not sources:
        _click.echo("No sources registered. Add one with 'skillcast source add'.")
        return

    _click.echo(f"Registered Sources ({len(sources)}):")
    width = ui.column_width([s.name for s in sources])
    for s in sources:
        icon = ui.icon_source(s.kind is registry.SourceKind.REMOTE)
        missing = "" if s.available else f"  {ui.ICON_FAILURE} missing"
        _click.echo(f"  {icon}{ui.cell_ljust(s.name, width)}  ({s.origin}){missing}")


def _pick_source(state: registry.RegistryState, prompt: str) -> str:
    """Interactively choose a registered source."""
    names = state.names()
    if not names:
        _fail("no sources registered")
    labels = [
        f"{ui.icon_source(state.sources[n].is_remote)}{n}" for n in names
    ]
    return names[_choose(labels, prompt)]


@source_cmd.command(name="remove")
@_click.argument("name", required=False)
@_click.pass_context
@_handle_errors
def source_remove(ctx: _click.Context, name: str | None) -> None:
    """Unregister a source and remove every skill linked from it."""
    rt = _runtime(ctx)
    state = rt.load()
    if not name:
        name = _pick_source(state, "Source to remove")

    new_state, result = registry.remove(state, name, storage=rt.storage, project=rt.project)
    rt.save(new_state)

    for activation in result.removed_activations:
        _click.echo(f"  {ui.icon_success()}Removed {activation.name} from .{activation.agent}")
    for warning in result.warnings:
        _click.echo(f"{ui.icon_warning()}{warning}", err=True)
    _click.echo(f"Removed source {name}")


def _run_sync(rt: _Runtime, json_output: bool) -> None:
    """Shared body of `sync` and `source sync`."""
    report = sync_module.sync(rt.load(), storage=rt.storage, project=rt.project, vcs=rt.vcs)

    if json_output:
        _echo_json(report.to_dict())
        return

    for result in report.sources:
        if result.status is registry.RefreshStatus.UPDATED:
            _click.echo(f"  {ui.icon_success()}{result.name}: updated")
        elif result.status is registry.RefreshStatus.LOCAL:
            _click.echo(f"  {ui.icon_success()}{result.name}: local (live link)")
        else:
            _click.echo(f"  {ui.icon_warning()}{result.name}: {result.message}")

    for activation in report.orphaned:
        _click.echo(
            f"{ui.icon_warning()}{activation.key} (.{activation.agent}): "
            "source is gone, left as is",
            err=True,
        )
    _click.echo(f"Sync complete: {len(report.relinked)} skill link(s) refreshed")


@source_cmd.command(name="sync")
@_click.option("--json", "json_output", is_flag=True, help="JSON output")
@_click.pass_context
@_handle_errors
def source_sync(ctx: _click.Context, json_output: bool) -> None:
    """Update remote sources and refresh every skill link."""
    _run_sync(_runtime(ctx), json_output)


@cli.command(name="sync")
@_click.option("--json", "json_output", is_flag=True, help="JSON output")
@_click.pass_context
@_handle_errors
def sync_cmd(ctx: _click.Context, json_output: bool) -> None:
    """Update remote sources and refresh every skill link."""
    _run_sync(_runtime(ctx), json_output)


# ============================================================================
# Skill Commands
# ============================================================================


@cli.command(name="skills")
@_click.argument("source_name")
@_click.option("--json", "json_output", is_flag=True, help="JSON output")
@_click.pass_context
@_handle_errors
def skills_cmd(ctx: _click.Context, source_name: str, json_output: bool) -> None:
    """List the skills available in a source."""
    rt = _runtime(ctx)
    source = registry.get_source(rt.load(), source_name, rt.storage)
    found = skills.discover_source(rt.storage, source.name)

    if json_output:
        data = []
        for skill in found:
            entry = skill.to_dict()
            entry["description"] = skills.read_description(skill, rt.storage.manifest_filename)
            data.append(entry)
        _echo_json({"source": source.name, "skills": data})
        return

    if not found:
        _click.echo(f"No skills found in {source.name}.")
        return

    _click.echo(f"Skills in {source.name} ({len(found)}):")
    width = ui.column_width([s.name for s in found])
    for skill in found:
        description = skills.read_description(skill, rt.storage.manifest_filename) or ""
        _click.echo(
            f"  {ui.cell_ljust(skill.name, width)}  {skill.location_label}  {description}".rstrip()
        )


def _print_activation(report: skills.ActivationReport) -> None:
    """Describe the outcome of one activation."""
    for result in report.results:
        folder = skills.agent_folder_name(result.agent)
        if result.status is skills.TargetStatus.INSTALLED:
            method = "copied" if result.method is skills.PlaceMethod.COPY else "linked"
            _click.echo(f"  {ui.icon_success()}{report.skill_name} -> {folder} ({method})")
        elif result.status is skills.TargetStatus.CONFLICT:
            _click.echo(
                f"  {ui.icon_warning()}{report.skill_name} already present in {folder}, skipped"
            )

    if report.no_eligible_targets:
        folders = ", ".join(skills.agent_folder_name(a) for a in report.targets)
        _click.echo(
            f"{ui.icon_warning()}No target folders found among [{folders}]. "
            "Create one of them in this project first."
        )


@cli.command()
@_click.argument("query", required=False)
@_click.option("--claude", is_flag=True, help="Only activate for Claude")
@_click.option("--gemini", is_flag=True, help="Only activate for Gemini")
@_click.option("--codex", is_flag=True, help="Only activate for Codex")
@_click.option(
    "--agent",
    "extra_agents",
    multiple=True,
    help="Only activate for this agent (repeatable; for custom agents)",
)
@_click.option("--copy", is_flag=True, help="Copy the skill instead of linking it")
@_click.pass_context
@_handle_errors
def use(
    ctx: _click.Context,
    query: str | None,
    claude: bool,
    gemini: bool,
    codex: bool,
    extra_agents: tuple[str, ...],
    copy: bool,
) -> None:
    """Activate skills in this project.

    QUERY is SOURCE/SKILL for direct activation. With only SOURCE, or
    nothing at all, skills are chosen interactively.

    \b
    Examples:
        skillcast use                       # choose source, then skills
        skillcast use my-skills             # choose skills from my-skills
        skillcast use my-skills/pdf --claude
    """
    rt = _runtime(ctx)
    state = rt.load()

    targets = [a for a, on in (("claude", claude), ("gemini", gemini), ("codex", codex)) if on]
    targets.extend(extra_agents)

    if not state.sources:
        _fail("no sources registered. Add one with 'skillcast source add'")

    if query and "/" in query:
        source_name, skill_name = query.split("/", 1)
        registry.get_source(state, source_name, rt.storage)
        report = skills.activate(
            source_name,
            skill_name,
            storage=rt.storage,
            project=rt.project,
            targets=targets or None,
            copy=copy,
        )
        _print_activation(report)
        return

    if query:
        source_name = registry.get_source(state, query, rt.storage).name
    else:
        _click.echo("Sources:")
        source_name = _pick_source(state, "Source number")

    found = skills.discover_source(rt.storage, source_name)
    if not found:
        _click.echo(f"No skills found in {source_name}.")
        return

    _click.echo(f"Skills in {source_name}:")
    for i, skill in enumerate(found, start=1):
        _click.echo(f"  [{i}] {skill.name} {skill.location_label}")
    raw = _click.prompt("Skill numbers (comma-separated)", type=str)

    indices = _parse_indices(raw, len(found))
    if not indices:
        _fail("no valid skill selected")

    for index in indices:
        skill = found[index]
        report = skills.activate(
            source_name,
            skill.name,
            storage=rt.storage,
            project=rt.project,
            skill_path=skill.path,
            targets=targets or None,
            copy=copy,
        )
        _print_activation(report)


@cli.command(name="list")
@_click.option("--json", "json_output", is_flag=True, help="JSON output")
@_click.pass_context
@_handle_errors
def list_cmd(ctx: _click.Context, json_output: bool) -> None:
    """List skills present in this project's agent folders."""
    rt = _runtime(ctx)
    entries = skills.list_active(project=rt.project, storage=rt.storage)

    if json_output:
        _echo_json({"project": str(rt.project.root), "skills": [a.to_dict() for a in entries]})
        return

    if not entries:
        _click.echo("No skills in this project.")
        _click.echo("Run 'skillcast use' to add some.")
        return

    _click.echo("Project Skills:")
    width = ui.column_width([a.name for a in entries])
    for agent in rt.project.agents:
        agent_entries = [a for a in entries if a.agent == agent]
        if not agent_entries:
            continue
        _click.echo(f"\n  {skills.agent_folder_name(agent)}:")
        for activation in agent_entries:
            if not activation.linked:
                origin = "(local copy)"
            elif activation.source_name:
                origin = f"(source: {activation.source_name})"
            else:
                origin = f"(local link {ui.ICON_LINK} {activation.target})"
            _click.echo(f"    {ui.icon_success()}{ui.cell_ljust(activation.name, width)}  {origin}")


cli.add_command(list_cmd, name="ls")


@cli.command(name="remove")
@_click.argument("query", required=False)
@_click.option("--agent", type=str, default=None, help="Only remove from this agent's folder")
@_click.option("--force", is_flag=True, help="Also delete local copies (origin unknown)")
@_click.pass_context
@_handle_errors
def remove_cmd(ctx: _click.Context, query: str | None, agent: str | None, force: bool) -> None:
    """Remove a skill from this project.

    QUERY is a SOURCE/SKILL key or a skill name. Without it, choose
    interactively.
    """
    rt = _runtime(ctx)

    if not query:
        entries = skills.list_active(project=rt.project, storage=rt.storage)
        if agent is not None:
            entries = [a for a in entries if a.agent == agent]
        if not entries:
            _fail("no skills to remove")
        labels = [f"{a.key} (.{a.agent})" for a in entries]
        chosen = entries[_choose(labels, "Skill to remove")]
        query, agent = chosen.key, chosen.agent

    result = skills.remove_skill(
        query, project=rt.project, storage=rt.storage, agent=agent, force=force
    )
    for activation in result.removed:
        _click.echo(f"{ui.icon_success()}Removed {activation.name} from .{activation.agent}")
    for activation in result.refused:
        _click.echo(
            f"{ui.icon_warning()}{activation.name} in .{activation.agent} is a local copy; "
            "use --force to delete it",
            err=True,
        )
    if not result.removed:
        raise SystemExit(1)


cli.add_command(remove_cmd, name="rm")


# ============================================================================
# Config Commands
# ============================================================================


@cli.group(invoke_without_command=True)
@_click.pass_context
def config_cmd(ctx: _click.Context) -> None:
    """Configuration management commands.

    Without a subcommand, shows configuration overview.
    """
    if ctx.invoked_subcommand is None:
        settings: config.Settings = ctx.obj["settings"]
        _click.echo("skillcast Configuration:")
        _click.echo(f"  Project Root: {settings.project_root}")
        _click.echo(f"  Agents: {', '.join(settings.agents.names)}")
        _click.echo(f"  Sources Dir: {settings.sources_dir}")
        _click.echo(f"  Registry File: {settings.registry_file}")
        _click.echo(f"  Config Dir: {settings.config_dir}")
        _click.echo("\nRun 'skillcast config show' for full configuration details.")


# Register config_cmd with the name "config" to avoid shadowing the module
cli.add_command(config_cmd, name="config")


@config_cmd.command(name="show")
@_click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_click.option("--section", type=str, default=None, help="Show specific section only")
@_click.option(
    "--color/--no-color",
    "use_color",
    default=None,
    help="Enable/disable syntax highlighting (default: auto-detect TTY)",
)
@_click.pass_context
def config_show(
    ctx: _click.Context,
    as_json: bool,
    section: str | None,
    use_color: bool | None,
) -> None:
    """Show effective configuration from all sources.

    \b
    Examples:
        skillcast config show              # Show all config as YAML
        skillcast config show --json       # Show as JSON
        skillcast config show --section agents
    """
    import yaml as _yaml

    settings: config.Settings = ctx.obj["settings"]
    full_config = settings.model_dump(mode="json")

    if section:
        if section not in full_config:
            raise _click.ClickException(f"Unknown section: {section}")
        full_config = {section: full_config[section]}

    if as_json:
        _echo_json(full_config)
        return

    yaml_text = _yaml.dump(full_config, default_flow_style=False, sort_keys=False)
    color = use_color if use_color is not None else _click.get_text_stream("stdout").isatty()
    _print_yaml(yaml_text, color=color, force_color=bool(use_color))


def _print_yaml(yaml_text: str, *, color: bool = True, force_color: bool = False) -> None:
    """Print YAML text, optionally with syntax highlighting.

    Args:
        yaml_text: The YAML text to print
        color: Whether to use syntax highlighting
        force_color: Force color even when not a TTY (for piping with --color)
    """
    if not color:
        _click.echo(yaml_text)
        return

    import rich.console as _rich_console
    import rich.syntax as _rich_syntax

    console = _rich_console.Console(
        force_terminal=force_color,
        no_color=False if force_color else None,
    )
    syntax = _rich_syntax.Syntax(
        yaml_text,
        "yaml",
        theme="monokai",
        background_color="default",
    )
    console.print(syntax)


@config_cmd.command(name="path")
@_click.option("--all", "show_all", is_flag=True, help="Show all paths even if not found")
@_click.pass_context
def config_path(ctx: _click.Context, show_all: bool) -> None:
    """Show configuration file paths and their status.

    \b
    Examples:
        skillcast config path        # Show existing config files
        skillcast config path --all  # Show all possible paths
    """
    import skillcast.config.sources as config_sources

    settings: config.Settings = ctx.obj["settings"]
    paths = [
        ("Project config", config_sources.get_project_config_path(settings.project_root)),
        ("User config", config_sources.get_user_config_path()),
        ("Registry", settings.registry_file),
    ]

    for name, path in paths:
        exists = path.exists()
        if exists or show_all:
            status = ui.ICON_SUCCESS if exists else ui.ICON_FAILURE
            _click.echo(f"{status} {name}: {path}")


def main() -> None:
    """Main entry point with correct program name."""
    cli(prog_name="skillcast")


if __name__ == "__main__":
    main()
