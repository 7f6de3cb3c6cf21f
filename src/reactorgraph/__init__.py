"""reactorgraph: resolve a multi-module source tree into a project graph."""

from reactorgraph.descriptor import (
    DESCRIPTOR_NAME,
    BuildConfig,
    ParentRef,
    RawDescriptor,
    is_descriptor,
    read_descriptor,
)
from reactorgraph.errors import (
    DescriptorParseError,
    DescriptorReadError,
    MissingDescriptorError,
    ReactorGraphError,
    UnresolvedVersionError,
    WorkspaceStateError,
)
from reactorgraph.loader import (
    AlreadyKnown,
    BootstrapContext,
    DirectoryCache,
    Loaded,
    WorkspaceLoader,
    load,
    load_workspace,
    load_workspace_from_context,
    locate_descriptor,
)
from reactorgraph.project import Artifact, ProjectNode
from reactorgraph.workspace import ArtifactKey, ResolvedVersionCell, WorkspaceRegistry

__version__ = "0.1.0"

__all__ = [
    "DESCRIPTOR_NAME",
    "AlreadyKnown",
    "Artifact",
    "ArtifactKey",
    "BootstrapContext",
    "BuildConfig",
    "DescriptorParseError",
    "DescriptorReadError",
    "DirectoryCache",
    "Loaded",
    "MissingDescriptorError",
    "ParentRef",
    "ProjectNode",
    "RawDescriptor",
    "ReactorGraphError",
    "ResolvedVersionCell",
    "UnresolvedVersionError",
    "WorkspaceLoader",
    "WorkspaceRegistry",
    "WorkspaceStateError",
    "__version__",
    "is_descriptor",
    "load",
    "load_workspace",
    "load_workspace_from_context",
    "locate_descriptor",
    "read_descriptor",
]
