"""Rendering of resolved projects: Rich trees and JSON-compatible dicts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from reactorgraph.errors import UnresolvedVersionError

if TYPE_CHECKING:
    from rich.console import Console
    from rich.tree import Tree

    from reactorgraph.project import ProjectNode


def tree_root(project: ProjectNode) -> ProjectNode:
    """Follow the discovery links up to the top of *project*'s tree."""
    node = project
    while node.parent is not None:
        node = node.parent
    return node


def _version_label(project: ProjectNode) -> str:
    try:
        return project.version
    except UnresolvedVersionError:
        return project.raw_version


def project_paths(project: ProjectNode) -> dict[str, str]:
    """Derived build locations of *project* as strings."""
    return {
        "output_dir": str(project.output_dir),
        "classes_dir": str(project.classes_dir),
        "test_classes_dir": str(project.test_classes_dir),
        "code_gen_output_dir": str(project.code_gen_output_dir),
        "sources_dir": str(project.sources_source_dir),
        "test_sources_dir": str(project.test_sources_source_dir),
        "resources_dir": str(project.resources_source_dir),
        "test_resources_dir": str(project.test_resources_source_dir),
    }


def project_to_dict(project: ProjectNode, *, recursive: bool = True) -> dict[str, object]:
    """Serialize *project* (and its modules) to a JSON-compatible dict."""
    data: dict[str, object] = {
        "group_id": project.group_id,
        "artifact_id": project.artifact_id,
        "version": _version_label(project),
        "packaging": project.packaging,
        "dir": str(project.dir),
        "paths": project_paths(project),
    }
    if recursive:
        data["modules"] = [project_to_dict(m) for m in project.modules]
    return data


def _add_branches(project: ProjectNode, branch: Tree, current: ProjectNode | None) -> None:
    for module in project.modules:
        child = branch.add(_label(module, current))
        _add_branches(module, child, current)


def _label(project: ProjectNode, current: ProjectNode | None) -> str:
    label = f"[bold]{project.artifact_id}[/] [dim]{project.group_id}:{_version_label(project)}[/]"
    if project is current:
        label += " [green](current)[/]"
    return label


def render_tree(project: ProjectNode, console: Console) -> None:
    """Print the whole workspace tree containing *project*."""
    from rich.tree import Tree

    root = tree_root(project)
    tree = Tree(_label(root, project))
    _add_branches(root, tree, project)
    console.print(tree)


def render_project(project: ProjectNode, console: Console) -> None:
    """Print identity and derived paths of a single project."""
    from rich.table import Table

    table = Table(title=f"{project.group_id}:{project.artifact_id}:{_version_label(project)}")
    table.add_column("Location")
    table.add_column("Path")
    table.add_row("dir", str(project.dir))
    for name, path in project_paths(project).items():
        table.add_row(name, path)
    console.print(table)
