"""Resolved project node.

A :class:`ProjectNode` carries the resolved identity of one descriptor,
its links inside the workspace tree and the derived build locations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from reactorgraph.descriptor import DESCRIPTOR_NAME
from reactorgraph.errors import UnresolvedVersionError, WorkspaceStateError
from reactorgraph.properties import (
    effective_group_id,
    is_group_placeholder,
    parent_group_id,
    resolve_descriptor_version,
)
from reactorgraph.workspace import ArtifactKey

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from reactorgraph.descriptor import RawDescriptor
    from reactorgraph.properties import VersionResolution
    from reactorgraph.workspace import WorkspaceRegistry

PROJECT_BASEDIR = "${project.basedir}"
PROJECT_BUILD_DIR = "${project.build.directory}"

DEFAULT_BUILD_DIR = "target"
DEFAULT_CLASSES_DIR = "classes"
DEFAULT_TEST_CLASSES_DIR = "test-classes"
DEFAULT_SOURCES_DIR = "src/main/java"
DEFAULT_TEST_SOURCES_DIR = "src/test/java"
DEFAULT_RESOURCES_DIR = "src/main/resources"
DEFAULT_TEST_RESOURCES_DIR = "src/test/resources"
GENERATED_SOURCES_DIR = "generated-sources"


@dataclass(frozen=True)
class Artifact:
    """Fully qualified coordinates of a project's main artifact."""

    group_id: str
    artifact_id: str
    classifier: str
    type: str
    version: str

    def __str__(self) -> str:
        parts = [self.group_id, self.artifact_id]
        if self.classifier:
            parts.append(self.classifier)
        parts.extend((self.type, self.version))
        return ":".join(parts)


def _strip_prefix(path: str, expr: str) -> str:
    """Strip a leading ``${...}`` expression followed by a separator."""
    if not path.startswith(expr):
        return path
    rest = path[len(expr) :]
    if rest and rest[0] not in "/\\":
        return path
    return rest.lstrip("/\\") or "."


class ProjectNode:
    """One project of a workspace, or a standalone project."""

    def __init__(
        self,
        descriptor: RawDescriptor,
        *,
        group_id: str,
        resolution: VersionResolution,
        parent_key: ArtifactKey | None = None,
        workspace: WorkspaceRegistry | None = None,
    ) -> None:
        self._descriptor = descriptor
        self._group_id = group_id
        self._artifact_id = descriptor.artifact_id
        self._resolution = resolution
        self._raw_version = resolution.raw
        self._version: str | None = resolution.value
        self._parent_key = parent_key
        self._workspace = workspace
        self._key = ArtifactKey(group_id, descriptor.artifact_id)

        # Declared modules come from the descriptor's module list; discovered
        # modules were attached during ascent.  ``modules`` is their union.
        self._declared_modules: list[ProjectNode] = []
        self._discovered_modules: list[ProjectNode] = []
        self._parent: ProjectNode | None = None

        if workspace is None and self._version is None:
            raise UnresolvedVersionError(group_id, self._artifact_id, self._raw_version)

    @classmethod
    def from_descriptor(
        cls,
        descriptor: RawDescriptor,
        workspace: WorkspaceRegistry | None = None,
        *,
        properties: Mapping[str, str] | None = None,
        descriptor_name: str = DESCRIPTOR_NAME,
    ) -> ProjectNode:
        """Resolve identity and version of *descriptor* and build a node.

        Without a *workspace* an unresolvable version placeholder raises
        :class:`UnresolvedVersionError`.  With one, the version is deferred
        to the workspace's shared resolved version.
        """
        group_id = effective_group_id(descriptor, descriptor_name)
        parent_key: ArtifactKey | None = None
        if descriptor.parent is not None:
            # An inherited group id already is the parent's group id.
            parent_group = (
                group_id
                if is_group_placeholder(descriptor.group_id)
                else parent_group_id(descriptor, descriptor_name)
            )
            if parent_group is not None:
                parent_key = ArtifactKey(parent_group, descriptor.parent.artifact_id)

        return cls(
            descriptor,
            group_id=group_id,
            resolution=resolve_descriptor_version(descriptor, properties),
            parent_key=parent_key,
            workspace=workspace,
        )

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def group_id(self) -> str:
        return self._group_id

    @property
    def artifact_id(self) -> str:
        return self._artifact_id

    @property
    def raw_version(self) -> str:
        return self._raw_version

    @property
    def version_resolution(self) -> VersionResolution:
        """How the version was resolved when the node was built."""
        return self._resolution

    @property
    def has_resolved_version(self) -> bool:
        """True if the version was concrete at construction or already looked up."""
        return self._version is not None

    @property
    def version(self) -> str:
        """Concrete version, looked up from the workspace at most once."""
        if self._version is not None:
            return self._version
        if self._workspace is not None:
            resolved = self._workspace.resolved_version
            if resolved is not None:
                self._version = resolved
                return resolved
        raise UnresolvedVersionError(self._group_id, self._artifact_id, self._raw_version)

    @property
    def key(self) -> ArtifactKey:
        return self._key

    @property
    def packaging(self) -> str:
        return self._descriptor.packaging

    def artifact(self, extension: str | None = None) -> Artifact:
        return Artifact(
            group_id=self._group_id,
            artifact_id=self._artifact_id,
            classifier="",
            type=extension or self.packaging,
            version=self.version,
        )

    @property
    def descriptor(self) -> RawDescriptor:
        return self._descriptor

    @property
    def workspace(self) -> WorkspaceRegistry | None:
        return self._workspace

    @property
    def dir(self) -> Path:
        return self._descriptor.directory

    # ------------------------------------------------------------------
    # Tree links
    # ------------------------------------------------------------------

    @property
    def parent(self) -> ProjectNode | None:
        """The node this project was attached under during discovery."""
        return self._parent

    @property
    def local_parent(self) -> ProjectNode | None:
        """The declared parent, if it is part of the same workspace."""
        if self._workspace is None or self._parent_key is None:
            return None
        return self._workspace.get_project(
            self._parent_key.group_id, self._parent_key.artifact_id
        )

    @property
    def modules(self) -> tuple[ProjectNode, ...]:
        """Declared modules followed by modules discovered during ascent."""
        return (*self._declared_modules, *self._discovered_modules)

    @property
    def declared_modules(self) -> tuple[ProjectNode, ...]:
        return tuple(self._declared_modules)

    @property
    def discovered_modules(self) -> tuple[ProjectNode, ...]:
        return tuple(self._discovered_modules)

    def _link(self, child: ProjectNode) -> None:
        if self._workspace is not None and self._workspace.frozen:
            raise WorkspaceStateError("cannot attach modules to a frozen workspace")
        if child._parent is not None:
            raise WorkspaceStateError(f"{child.key} is already attached to {child._parent.key}")
        child._parent = self

    def attach_declared_module(self, child: ProjectNode) -> None:
        self._link(child)
        self._declared_modules.append(child)

    def attach_discovered_module(self, child: ProjectNode) -> None:
        self._link(child)
        self._discovered_modules.append(child)

    def walk(self) -> list[ProjectNode]:
        """This node and all its modules, depth first in module order."""
        nodes = [self]
        for module in self.modules:
            nodes.extend(module.walk())
        return nodes

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    def _configured(self, name: str) -> str | None:
        """First non-null build setting *name* up the local parent chain."""
        seen: set[ArtifactKey] = set()
        project: ProjectNode | None = self
        while project is not None and project.key not in seen:
            value: str | None = getattr(project.descriptor.build, name)
            if value is not None:
                return value
            seen.add(project.key)
            project = project.local_parent
        return None

    def _relative_to_base_dir(self, path: str | None, default: str) -> Path:
        return self.dir / (default if path is None else _strip_prefix(path, PROJECT_BASEDIR))

    def _relative_to_build_dir(self, path: str | None, default: str) -> Path:
        return self.output_dir / (
            default if path is None else _strip_prefix(path, PROJECT_BUILD_DIR)
        )

    @property
    def output_dir(self) -> Path:
        return self._relative_to_base_dir(self._configured("directory"), DEFAULT_BUILD_DIR)

    @property
    def code_gen_output_dir(self) -> Path:
        return self.output_dir / GENERATED_SOURCES_DIR

    @property
    def classes_dir(self) -> Path:
        return self._relative_to_build_dir(
            self._configured("output_directory"), DEFAULT_CLASSES_DIR
        )

    @property
    def test_classes_dir(self) -> Path:
        return self._relative_to_build_dir(
            self._configured("test_output_directory"), DEFAULT_TEST_CLASSES_DIR
        )

    @property
    def sources_source_dir(self) -> Path:
        return self._relative_to_base_dir(
            self._configured("source_directory"), DEFAULT_SOURCES_DIR
        )

    @property
    def test_sources_source_dir(self) -> Path:
        return self._relative_to_base_dir(
            self._configured("test_source_directory"), DEFAULT_TEST_SOURCES_DIR
        )

    @property
    def sources_dir(self) -> Path:
        return self.sources_source_dir.parent

    # Only the first declared resource directory is used; further entries
    # are ignored.
    @property
    def resources_source_dir(self) -> Path:
        resources = self._descriptor.build.resources
        return self._relative_to_base_dir(
            resources[0] if resources else None, DEFAULT_RESOURCES_DIR
        )

    @property
    def test_resources_source_dir(self) -> Path:
        resources = self._descriptor.build.test_resources
        return self._relative_to_base_dir(
            resources[0] if resources else None, DEFAULT_TEST_RESOURCES_DIR
        )

    def __repr__(self) -> str:
        version = self._version if self._version is not None else self._raw_version
        return f"ProjectNode({self._group_id}:{self._artifact_id}:{version} @ {self.dir})"
