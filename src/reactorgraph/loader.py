"""Workspace discovery: locate, ascend and descend project descriptors.

Starting from a directory or descriptor file, the loader walks up through
parent descriptors and down through declared modules, producing a linked
tree of :class:`ProjectNode` objects registered in one
:class:`WorkspaceRegistry`.

Two independent structures keep the traversal finite:

- the :class:`DirectoryCache` maps a project directory to its loaded node
  so a descriptor is parsed at most once;
- the visited set holds every directory whose node has been placed in the
  tree.  No directory is descended into or attached twice, whatever the
  cache contains.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Union

from reactorgraph.descriptor import (
    DESCRIPTOR_NAME,
    is_descriptor,
    parent_descriptor_path,
    read_descriptor,
)
from reactorgraph.errors import (
    DescriptorReadError,
    MissingDescriptorError,
    ReactorGraphError,
    UnresolvedVersionError,
)
from reactorgraph.project import ProjectNode
from reactorgraph.workspace import WorkspaceRegistry

if TYPE_CHECKING:
    from collections.abc import Mapping

    from reactorgraph.workspace import ArtifactKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Loaded:
    """A descriptor was loaded (or taken from the directory cache)."""

    node: ProjectNode


@dataclass(frozen=True)
class AlreadyKnown:
    """The descriptor's identity is already registered; nothing was loaded."""

    key: ArtifactKey
    path: Path


LoadOutcome = Union[Loaded, AlreadyKnown]


@dataclass(frozen=True)
class BootstrapContext:
    """Entry point description handed in by an application bootstrap."""

    current_project_descriptor: Path | None
    root_project_dir: Path | None = None
    properties: Mapping[str, str] = field(default_factory=dict)


def _canonical(path: Path) -> Path:
    return path.expanduser().resolve()


def locate_descriptor(
    path: Path, required: bool = True, *, descriptor_name: str = DESCRIPTOR_NAME
) -> Path | None:
    """Find the descriptor for *path*.

    A *path* that is itself a valid descriptor file is returned as is.
    Otherwise the directories from *path* upwards are searched for
    *descriptor_name*.  Raises :class:`MissingDescriptorError` if nothing
    is found and *required* is set, else returns ``None``.
    """
    if path.is_file():
        if is_descriptor(path):
            return path
        current = path.parent
    else:
        current = path

    while True:
        candidate = current / descriptor_name
        if candidate.exists():
            return candidate
        if current.parent == current:
            break
        current = current.parent

    if required:
        raise MissingDescriptorError(path, descriptor_name)
    return None


class DirectoryCache:
    """Canonical project directory to loaded node, for one loader."""

    def __init__(self) -> None:
        self._nodes: dict[Path, ProjectNode] = {}

    def get(self, directory: Path) -> ProjectNode | None:
        return self._nodes.get(directory)

    def put(self, directory: Path, node: ProjectNode) -> None:
        self._nodes[directory] = node

    def __contains__(self, directory: object) -> bool:
        return directory in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)


class WorkspaceLoader:
    """Runs one workspace discovery.  Not reusable, not thread-safe."""

    def __init__(
        self,
        current_descriptor: Path,
        *,
        descriptor_name: str = DESCRIPTOR_NAME,
        properties: Mapping[str, str] | None = None,
    ) -> None:
        self._descriptor_name = descriptor_name
        self._properties = dict(properties or {})
        self._registry = WorkspaceRegistry()
        self._cache = DirectoryCache()
        self._visited: set[Path] = set()
        self._pass_roots: set[Path] = set()
        self._workspace_root_descriptor: Path | None = None

        start = _canonical(current_descriptor)
        if self._probe(start):
            self._current_descriptor = start
        else:
            located = locate_descriptor(start, True, descriptor_name=descriptor_name)
            assert located is not None
            self._current_descriptor = located

    @property
    def registry(self) -> WorkspaceRegistry:
        return self._registry

    @property
    def current_descriptor(self) -> Path:
        return self._current_descriptor

    def set_workspace_root(self, root: Path) -> None:
        """Configure a separate workspace root, given as directory or descriptor."""
        root = _canonical(root)
        if root.is_dir():
            root = root / self._descriptor_name
        self._workspace_root_descriptor = root

    # ------------------------------------------------------------------
    # Loading single descriptors
    # ------------------------------------------------------------------

    def _probe(self, path: Path) -> bool:
        """Load *path* if it is a descriptor file; failures mean "no"."""
        if not path.is_file():
            return False
        try:
            self._load_and_cache(path)
        except DescriptorReadError as exc:
            logger.debug("Not a project descriptor: %s (%s)", path, exc.reason)
            return False
        return True

    def _load_and_cache(self, descriptor_path: Path) -> LoadOutcome:
        descriptor = read_descriptor(descriptor_path)
        node = ProjectNode.from_descriptor(
            descriptor,
            self._registry,
            properties=self._properties,
            descriptor_name=self._descriptor_name,
        )
        if not self._registry.register(node, descriptor.last_modified):
            # Overlapping workspace layout: the same identity is reachable
            # through more than one directory.
            logger.debug("%s at %s is already in the workspace, skipped", node.key, descriptor_path)
            return AlreadyKnown(node.key, descriptor_path)
        resolution = node.version_resolution
        if resolution.is_placeholder and not resolution.deferred:
            self._registry.offer_resolved_version(resolution.value)  # type: ignore[arg-type]
        self._cache.put(descriptor.directory, node)
        return Loaded(node)

    def _project(self, descriptor_path: Path) -> LoadOutcome:
        cached = self._cache.get(descriptor_path.parent)
        if cached is not None:
            return Loaded(cached)
        return self._load_and_cache(descriptor_path)

    def _module_descriptor_path(self, node: ProjectNode, module: str) -> Path:
        candidate = _canonical(node.dir / module)
        if candidate.is_file():
            return candidate
        return candidate / self._descriptor_name

    # ------------------------------------------------------------------
    # Descent
    # ------------------------------------------------------------------

    def _adopt(self, node: ProjectNode, directory: Path) -> None:
        """Attach the root of an earlier discovery pass as a module of *node*."""
        if directory not in self._pass_roots:
            logger.debug("Module %s of %s is already in the tree", directory, node.key)
            return
        existing = self._cache.get(directory)
        if existing is None or existing.parent is not None:
            return
        self._pass_roots.discard(directory)
        node.attach_declared_module(existing)

    def _load_with_modules(self, descriptor_path: Path, skip: Path | None = None) -> LoadOutcome:
        """Load a descriptor and, recursively, its declared modules.

        *skip* is the directory of the child reached during ascent; it is
        linked by the ascent step rather than here.
        """
        outcome = self._project(descriptor_path)
        if isinstance(outcome, AlreadyKnown):
            return outcome
        node = outcome.node
        self._visited.add(node.dir)

        for module in node.descriptor.modules:
            module_path = self._module_descriptor_path(node, module)
            module_dir = module_path.parent
            if module_dir == skip:
                continue
            if module_dir in self._visited:
                self._adopt(node, module_dir)
                continue
            child = self._load_with_modules(module_path)
            if isinstance(child, Loaded):
                node.attach_declared_module(child.node)
        return outcome

    # ------------------------------------------------------------------
    # Ascent
    # ------------------------------------------------------------------

    def _load_current(self, descriptor_path: Path) -> ProjectNode | None:
        """Load *descriptor_path* and its ancestors, linking each to its child.

        Returns the node loaded for *descriptor_path* itself.
        """
        current: ProjectNode | None = None
        child: ProjectNode | None = None
        top: ProjectNode | None = None
        while True:
            outcome = self._load_with_modules(
                descriptor_path, skip=child.dir if child is not None else None
            )
            if isinstance(outcome, AlreadyKnown):
                break
            node = outcome.node
            if child is None:
                current = node
            else:
                node.attach_discovered_module(child)
            top = node

            next_path = parent_descriptor_path(node.descriptor, self._descriptor_name)
            if next_path is None:
                logger.debug("Ascent from %s reached the filesystem root", node.key)
                break
            next_path = _canonical(next_path)
            if not next_path.exists():
                break
            if next_path.parent in self._visited:
                logger.debug("Ascent from %s stopped at visited %s", node.key, next_path.parent)
                break
            child = node
            descriptor_path = next_path

        if top is not None:
            self._pass_roots.add(top.dir)
        return current

    def load(self) -> ProjectNode | None:
        """Run discovery and return the current project.

        The registry is frozen afterwards.
        """
        current = self._load_current(self._current_descriptor)
        self._registry.set_current_project(current)

        root = self._workspace_root_descriptor
        if root is not None and root.parent not in self._cache:
            logger.debug("Loading separate workspace root %s", root)
            self._load_current(root)

        self._registry.freeze()
        logger.info(
            "Loaded workspace of %d project(s) from %s",
            len(self._registry),
            self._current_descriptor,
        )
        return current


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def load(
    path: Path,
    required: bool = True,
    *,
    properties: Mapping[str, str] | None = None,
    descriptor_name: str = DESCRIPTOR_NAME,
    fallback_to_workspace: bool = False,
) -> ProjectNode | None:
    """Load the single project that *path* belongs to, without a workspace.

    An unresolvable version raises :class:`UnresolvedVersionError` unless
    *fallback_to_workspace* is set, in which case the version is looked up
    through a full workspace load.
    """
    descriptor_path = locate_descriptor(
        _canonical(path), required, descriptor_name=descriptor_name
    )
    if descriptor_path is None:
        return None
    try:
        return ProjectNode.from_descriptor(
            read_descriptor(descriptor_path),
            properties=properties,
            descriptor_name=descriptor_name,
        )
    except UnresolvedVersionError:
        if not fallback_to_workspace:
            raise
        logger.debug("Resolving the version of %s through its workspace", descriptor_path)
        return load_workspace(
            descriptor_path,
            required,
            properties=properties,
            descriptor_name=descriptor_name,
        )


def load_workspace(
    path: Path,
    required: bool = True,
    *,
    properties: Mapping[str, str] | None = None,
    descriptor_name: str = DESCRIPTOR_NAME,
    workspace_root: Path | None = None,
) -> ProjectNode | None:
    """Discover the workspace around *path* and return the current project.

    Any failure propagates if *required* is set; otherwise ``None`` is
    returned.
    """
    try:
        loader = WorkspaceLoader(
            path, descriptor_name=descriptor_name, properties=properties
        )
        if workspace_root is not None:
            loader.set_workspace_root(workspace_root)
        return loader.load()
    except (ReactorGraphError, OSError):
        if required:
            raise
        logger.debug("Workspace discovery for %s failed", path, exc_info=True)
        return None


def load_workspace_from_context(
    context: BootstrapContext, *, descriptor_name: str = DESCRIPTOR_NAME
) -> ProjectNode | None:
    """Discover the workspace described by *context* and attach it to the registry."""
    if context.current_project_descriptor is None:
        return None
    loader = WorkspaceLoader(
        context.current_project_descriptor,
        descriptor_name=descriptor_name,
        properties=context.properties,
    )
    root_dir = context.root_project_dir
    if root_dir is not None and _canonical(root_dir) != loader.current_descriptor.parent:
        loader.set_workspace_root(_canonical(root_dir) / descriptor_name)
    project = loader.load()
    loader.registry.attach_context(context)
    return project
