"""Tests for reactorgraph.workspace — registry and shared resolved version."""

from __future__ import annotations

from pathlib import Path

import pytest

from reactorgraph.descriptor import RawDescriptor
from reactorgraph.errors import WorkspaceStateError
from reactorgraph.project import ProjectNode
from reactorgraph.workspace import ArtifactKey, ResolvedVersionCell, WorkspaceRegistry


def _node(
    registry: WorkspaceRegistry | None,
    artifact_id: str,
    *,
    base: Path = Path("/ws"),
    version: str = "1.0",
) -> ProjectNode:
    desc = RawDescriptor(
        path=base / artifact_id / "project.yml",
        artifact_id=artifact_id,
        group_id="org.acme",
        version=version,
    )
    return ProjectNode.from_descriptor(desc, registry)


class TestResolvedVersionCell:
    def test_first_writer_wins(self) -> None:
        cell = ResolvedVersionCell()
        assert cell.value is None
        assert not cell.is_set()

        assert cell.set_if_empty("1.0") is True
        assert cell.set_if_empty("2.0") is False
        assert cell.value == "1.0"
        assert cell.is_set()


class TestArtifactKey:
    def test_str_and_equality(self) -> None:
        assert str(ArtifactKey("org.acme", "core")) == "org.acme:core"
        assert ArtifactKey("g", "a") == ArtifactKey("g", "a")
        assert len({ArtifactKey("g", "a"), ArtifactKey("g", "a")}) == 1


class TestWorkspaceRegistry:
    def test_register_and_lookup(self) -> None:
        registry = WorkspaceRegistry()
        node = _node(registry, "core")
        assert registry.register(node, 100.0) is True
        assert registry.get_project("org.acme", "core") is node
        assert registry.get_project("org.acme", "missing") is None
        assert ArtifactKey("org.acme", "core") in registry
        assert len(registry) == 1
        assert list(registry) == [node]

    def test_duplicate_registration_is_reported_not_raised(self) -> None:
        registry = WorkspaceRegistry()
        first = _node(registry, "core", base=Path("/ws1"))
        second = _node(registry, "core", base=Path("/ws2"))
        assert registry.register(first) is True
        assert registry.register(second) is False
        assert registry.get_project("org.acme", "core") is first
        assert len(registry) == 1

    def test_last_modified_tracks_newest(self) -> None:
        registry = WorkspaceRegistry()
        registry.register(_node(registry, "a"), 200.0)
        registry.register(_node(registry, "b"), 100.0)
        assert registry.last_modified == 200.0

    def test_resolved_version_first_offer_wins(self) -> None:
        registry = WorkspaceRegistry()
        assert registry.resolved_version is None
        assert registry.offer_resolved_version("1.0") is True
        assert registry.offer_resolved_version("2.0") is False
        assert registry.resolved_version == "1.0"

    def test_projects_view_is_read_only(self) -> None:
        registry = WorkspaceRegistry()
        registry.register(_node(registry, "a"))
        with pytest.raises(TypeError):
            registry.projects[ArtifactKey("x", "y")] = _node(None, "y")  # type: ignore[index]

    def test_frozen_registry_rejects_mutation(self) -> None:
        registry = WorkspaceRegistry()
        registry.freeze()
        assert registry.frozen
        with pytest.raises(WorkspaceStateError):
            registry.register(_node(registry, "a"))
        with pytest.raises(WorkspaceStateError):
            registry.offer_resolved_version("1.0")
        with pytest.raises(WorkspaceStateError):
            registry.set_current_project(None)

    def test_attach_context_once(self) -> None:
        registry = WorkspaceRegistry()
        registry.freeze()
        context = object()
        registry.attach_context(context)
        assert registry.bootstrap_context is context
        with pytest.raises(WorkspaceStateError, match="already attached"):
            registry.attach_context(object())

    def test_find_artifact(self, tmp_path: Path) -> None:
        registry = WorkspaceRegistry()
        node = _node(registry, "core", base=tmp_path)
        registry.register(node)
        key = ArtifactKey("org.acme", "core")

        assert registry.find_artifact(key, "descriptor") == tmp_path / "core" / "project.yml"
        # Not built yet.
        assert registry.find_artifact(key, "jar") is None

        node.classes_dir.mkdir(parents=True)
        assert registry.find_artifact(key, "jar") == node.classes_dir
        assert registry.find_artifact(ArtifactKey("org.acme", "other"), "jar") is None
