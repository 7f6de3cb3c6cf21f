"""Error taxonomy for descriptor reading and workspace discovery."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class ReactorGraphError(Exception):
    """Base class for all errors raised by reactorgraph."""


class MissingDescriptorError(ReactorGraphError):
    """No project descriptor could be located for a required load."""

    def __init__(self, path: Path, descriptor_name: str) -> None:
        self.path = path
        self.descriptor_name = descriptor_name
        super().__init__(f"Failed to locate project {descriptor_name} for {path}")


class DescriptorReadError(ReactorGraphError):
    """A descriptor file could not be read from disk."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read {path}: {reason}")


class DescriptorParseError(DescriptorReadError):
    """A descriptor file was read but its content is malformed."""


class UnresolvedVersionError(ReactorGraphError):
    """A version placeholder could not be resolved to a concrete value."""

    def __init__(self, group_id: str, artifact_id: str, raw_version: str) -> None:
        self.group_id = group_id
        self.artifact_id = artifact_id
        self.raw_version = raw_version
        super().__init__(
            f"Failed to resolve version {raw_version!r} of {group_id}:{artifact_id}"
        )


class WorkspaceStateError(ReactorGraphError):
    """A frozen workspace registry was mutated, or a one-time write was repeated."""
