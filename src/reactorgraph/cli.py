"""reactorgraph CLI entry point."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from reactorgraph import __version__
from reactorgraph.errors import ReactorGraphError
from reactorgraph.loader import load, load_workspace
from reactorgraph.render import project_to_dict, render_project, render_tree, tree_root
from reactorgraph.settings import LoaderSettings, default_config_path, load_settings


def _parse_defines(defines: tuple[str, ...]) -> dict[str, str]:
    """Parse ``-D key=value`` options into a properties mapping."""
    result: dict[str, str] = {}
    for item in defines:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            msg = f"Invalid property definition '{item}', expected key=value"
            raise click.BadParameter(msg, param_hint="-D")
        result[key.strip()] = value
    return result


def _settings(ctx: click.Context, defines: tuple[str, ...]) -> LoaderSettings:
    settings: LoaderSettings = ctx.obj["settings"]
    return settings.with_properties(_parse_defines(defines))


@click.group()
@click.version_option(version=__version__, prog_name="reactorgraph")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (default: .reactorgraph/config.yml).",
)
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool, config_path: Path | None) -> None:
    """reactorgraph - multi-module workspace discovery."""
    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    ctx.ensure_object(dict)
    ctx.obj["settings"] = load_settings(config_path or default_config_path(Path.cwd()))


@main.command()
@click.argument(
    "path",
    type=click.Path(exists=True, path_type=Path),
    default=Path(),
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option(
    "--root",
    "workspace_root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Workspace root outside the current project's parent chain.",
)
@click.option("-D", "--define", "defines", multiple=True, help="Property as key=value.")
@click.pass_context
def tree(
    ctx: click.Context,
    path: Path,
    *,
    as_json: bool,
    workspace_root: Path | None,
    defines: tuple[str, ...],
) -> None:
    """Discover the workspace around PATH and print its project tree."""
    settings = _settings(ctx, defines)
    try:
        project = load_workspace(
            path,
            properties=settings.properties,
            descriptor_name=settings.descriptor_name,
            workspace_root=workspace_root or settings.workspace_root,
        )
    except ReactorGraphError as exc:
        raise click.ClickException(str(exc)) from exc
    if project is None:
        raise click.ClickException(f"No project found for {path}")

    if as_json:
        data = {
            "current": f"{project.group_id}:{project.artifact_id}",
            "root": project_to_dict(tree_root(project)),
        }
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return

    from rich.console import Console

    render_tree(project, Console())


@main.command()
@click.argument(
    "path",
    type=click.Path(exists=True, path_type=Path),
    default=Path(),
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("-D", "--define", "defines", multiple=True, help="Property as key=value.")
@click.pass_context
def show(ctx: click.Context, path: Path, *, as_json: bool, defines: tuple[str, ...]) -> None:
    """Load the single project at PATH and print its identity and paths."""
    settings = _settings(ctx, defines)
    try:
        project = load(
            path,
            properties=settings.properties,
            descriptor_name=settings.descriptor_name,
        )
    except ReactorGraphError as exc:
        raise click.ClickException(str(exc)) from exc
    assert project is not None

    if as_json:
        click.echo(json.dumps(project_to_dict(project, recursive=False), indent=2))
        return

    from rich.console import Console

    render_project(project, Console())
