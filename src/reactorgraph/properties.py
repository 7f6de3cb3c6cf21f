"""Placeholder resolution for a single descriptor.

Resolves the effective group id (which may be inherited from the parent)
and the version (which may be a ``${...}`` placeholder).  A version that
cannot be resolved locally is reported as deferred, never guessed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from reactorgraph.descriptor import DESCRIPTOR_NAME, parent_descriptor_path, read_descriptor
from reactorgraph.errors import DescriptorParseError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from reactorgraph.descriptor import RawDescriptor

GROUP_PLACEHOLDERS: frozenset[str] = frozenset({"${project.parent.groupId}", "${parent.groupId}"})

_PROPERTY_RE = re.compile(r"\$\{([^}]+)\}")
_MAX_SUBSTITUTION_PASSES = 10


@dataclass(frozen=True)
class VersionResolution:
    """Outcome of resolving a descriptor's version."""

    raw: str
    value: str | None

    @property
    def is_placeholder(self) -> bool:
        """True if the raw version contained a placeholder."""
        return is_unresolved_version(self.raw)

    @property
    def deferred(self) -> bool:
        """True if the value has to come from the enclosing workspace."""
        return self.value is None


def is_group_placeholder(group_id: str | None) -> bool:
    return group_id is None or group_id in GROUP_PLACEHOLDERS


def is_unresolved_version(version: str) -> bool:
    return "${" in version


def _inherited_group_id(
    descriptor: RawDescriptor, descriptor_name: str, seen: set[Path]
) -> str | None:
    parent = descriptor.parent
    if parent is None:
        return None
    if not is_group_placeholder(parent.group_id):
        return parent.group_id

    # The parent reference itself does not name a group: read the parent
    # descriptor only to find out which group it belongs to.
    seen.add(descriptor.path)
    candidate = parent_descriptor_path(descriptor, descriptor_name)
    if candidate is None or candidate in seen or not candidate.is_file():
        return None
    parent_descriptor = read_descriptor(candidate)
    if parent_descriptor.artifact_id != parent.artifact_id:
        return None
    if not is_group_placeholder(parent_descriptor.group_id):
        return parent_descriptor.group_id
    return _inherited_group_id(parent_descriptor, descriptor_name, seen)


def parent_group_id(
    descriptor: RawDescriptor, descriptor_name: str = DESCRIPTOR_NAME
) -> str | None:
    """Return the group id of the declared parent, or ``None`` if unknown."""
    return _inherited_group_id(descriptor, descriptor_name, set())


def effective_group_id(descriptor: RawDescriptor, descriptor_name: str = DESCRIPTOR_NAME) -> str:
    """Return the descriptor's own group id, substituting the parent's if inherited."""
    if not is_group_placeholder(descriptor.group_id):
        return descriptor.group_id  # type: ignore[return-value]
    group_id = parent_group_id(descriptor, descriptor_name)
    if group_id is None:
        raise DescriptorParseError(
            descriptor.path, "group id is not declared and cannot be inherited from a parent"
        )
    return group_id


def raw_version(descriptor: RawDescriptor) -> str:
    """Return the declared version, falling back to the parent reference's version."""
    if descriptor.version is not None:
        return descriptor.version
    if descriptor.parent is not None and descriptor.parent.version is not None:
        return descriptor.parent.version
    raise DescriptorParseError(descriptor.path, "version is not declared")


def resolve_version(
    raw: str,
    descriptor: RawDescriptor,
    overrides: Mapping[str, str] | None = None,
) -> str | None:
    """Substitute ``${name}`` placeholders in *raw*.

    Values come from *overrides* first, then from the descriptor's
    ``properties``.  Returns ``None`` if any placeholder is left.
    """
    values: dict[str, str] = dict(descriptor.properties)
    if overrides:
        values.update(overrides)

    def _substitute(match: re.Match[str]) -> str:
        return values.get(match.group(1), match.group(0))

    version = raw
    for _ in range(_MAX_SUBSTITUTION_PASSES):
        expanded = _PROPERTY_RE.sub(_substitute, version)
        if expanded == version:
            break
        version = expanded
    if is_unresolved_version(version):
        return None
    return version


def resolve_descriptor_version(
    descriptor: RawDescriptor, overrides: Mapping[str, str] | None = None
) -> VersionResolution:
    raw = raw_version(descriptor)
    if not is_unresolved_version(raw):
        return VersionResolution(raw=raw, value=raw)
    return VersionResolution(raw=raw, value=resolve_version(raw, descriptor, overrides))
