"""Workspace registry: shared state for one discovery run.

The registry maps ``(group_id, artifact_id)`` to the loaded project, holds
the single shared resolved version and points at the project discovery
started from.  It is populated by one loader and frozen before it is
handed to the caller.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from reactorgraph.errors import WorkspaceStateError

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from pathlib import Path

    from reactorgraph.project import ProjectNode

DESCRIPTOR_TYPE = "descriptor"


@dataclass(frozen=True, order=True)
class ArtifactKey:
    """Workspace-unique identity of a project."""

    group_id: str
    artifact_id: str

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"


class ResolvedVersionCell:
    """Single-assignment holder for the workspace-wide resolved version.

    The first concrete version offered wins; later offers are ignored.
    All deferred-version projects of one workspace are assumed to share
    that same version.  The assumption is not checked.
    """

    def __init__(self) -> None:
        self._value: str | None = None
        self._lock = threading.Lock()

    @property
    def value(self) -> str | None:
        return self._value

    def is_set(self) -> bool:
        return self._value is not None

    def set_if_empty(self, version: str) -> bool:
        """Store *version* unless a value is already present.

        Returns True if this call stored the value.
        """
        with self._lock:
            if self._value is not None:
                return False
            self._value = version
            return True


class WorkspaceRegistry:
    """Identity index and shared state of one resolved workspace."""

    def __init__(self) -> None:
        self._projects: dict[ArtifactKey, ProjectNode] = {}
        self._resolved_version = ResolvedVersionCell()
        self._current_project: ProjectNode | None = None
        self._last_modified = 0.0
        self._bootstrap_context: Any = None
        self._frozen = False
        self._lock = threading.Lock()

    # -- mutation (discovery only) -------------------------------------------

    def _check_mutable(self) -> None:
        if self._frozen:
            raise WorkspaceStateError("workspace registry is frozen")

    def register(self, project: ProjectNode, last_modified: float = 0.0) -> bool:
        """Register *project* under its key.

        Returns False without changing anything if the key is already
        registered (overlapping workspace layout).
        """
        self._check_mutable()
        if project.key in self._projects:
            return False
        self._projects[project.key] = project
        if last_modified > self._last_modified:
            self._last_modified = last_modified
        return True

    def offer_resolved_version(self, version: str) -> bool:
        """Offer a concrete version for deferred projects; first writer wins."""
        self._check_mutable()
        return self._resolved_version.set_if_empty(version)

    def set_current_project(self, project: ProjectNode | None) -> None:
        self._check_mutable()
        self._current_project = project

    def freeze(self) -> None:
        self._frozen = True

    def attach_context(self, context: Any) -> None:
        """Attach the bootstrap context the workspace was loaded for.

        Allowed exactly once, also after the registry was frozen.
        """
        with self._lock:
            if self._bootstrap_context is not None:
                raise WorkspaceStateError("bootstrap context is already attached")
            self._bootstrap_context = context

    # -- read access -----------------------------------------------------------

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def projects(self) -> Mapping[ArtifactKey, ProjectNode]:
        return MappingProxyType(self._projects)

    @property
    def resolved_version(self) -> str | None:
        return self._resolved_version.value

    @property
    def current_project(self) -> ProjectNode | None:
        return self._current_project

    @property
    def last_modified(self) -> float:
        """Newest modification time of any registered descriptor."""
        return self._last_modified

    @property
    def bootstrap_context(self) -> Any:
        return self._bootstrap_context

    def get_project(self, group_id: str, artifact_id: str) -> ProjectNode | None:
        return self._projects.get(ArtifactKey(group_id, artifact_id))

    def find_artifact(self, key: ArtifactKey, artifact_type: str) -> Path | None:
        """Locate a workspace artifact on disk.

        The ``descriptor`` type maps to the project's descriptor file, any
        other type to its classes directory if that has been built.
        """
        project = self._projects.get(key)
        if project is None:
            return None
        if artifact_type == DESCRIPTOR_TYPE:
            return project.descriptor.path
        classes_dir = project.classes_dir
        if classes_dir.is_dir():
            return classes_dir
        return None

    def __contains__(self, key: object) -> bool:
        return key in self._projects

    def __iter__(self) -> Iterator[ProjectNode]:
        return iter(self._projects.values())

    def __len__(self) -> int:
        return len(self._projects)
