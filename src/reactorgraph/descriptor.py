"""Project descriptor reader.

Parses a single ``project.yml`` file into an immutable :class:`RawDescriptor`.
The reader never caches; every call goes to disk.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from reactorgraph.errors import DescriptorParseError, DescriptorReadError

DESCRIPTOR_NAME = "project.yml"
DEFAULT_PACKAGING = "jar"


class TextScalarLoader(yaml.SafeLoader):
    """SafeLoader that keeps plain scalars as text.

    Only ``null`` and merge keys are resolved implicitly, so ``1.10`` stays
    ``"1.10"`` and ``on`` stays ``"on"``.
    """


TextScalarLoader.yaml_implicit_resolvers = {
    first: [
        (tag, regexp)
        for tag, regexp in resolvers
        if tag in ("tag:yaml.org,2002:null", "tag:yaml.org,2002:merge")
    ]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

# Keys accepted under ``build:``.
_BUILD_DIR_FIELDS = (
    "directory",
    "output_directory",
    "test_output_directory",
    "source_directory",
    "test_source_directory",
)


@dataclass(frozen=True)
class ParentRef:
    """Reference from a descriptor to its parent project."""

    group_id: str | None
    artifact_id: str
    version: str | None = None
    relative_path: str | None = None


@dataclass(frozen=True)
class BuildConfig:
    """Optional directory overrides from the ``build:`` section."""

    directory: str | None = None
    output_directory: str | None = None
    test_output_directory: str | None = None
    source_directory: str | None = None
    test_source_directory: str | None = None
    resources: tuple[str | None, ...] = ()
    test_resources: tuple[str | None, ...] = ()


@dataclass(frozen=True)
class RawDescriptor:
    """Parsed, unresolved content of one descriptor file."""

    path: Path
    artifact_id: str
    group_id: str | None = None
    version: str | None = None
    packaging: str = DEFAULT_PACKAGING
    parent: ParentRef | None = None
    modules: tuple[str, ...] = ()
    properties: dict[str, str] = field(default_factory=dict)
    build: BuildConfig = field(default_factory=BuildConfig)
    last_modified: float = 0.0

    @property
    def directory(self) -> Path:
        """Directory containing the descriptor file."""
        return self.path.parent


def _scalar(path: Path, key: str, value: Any) -> str | None:
    """Return a YAML scalar as stripped text, or ``None`` if empty."""
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise DescriptorParseError(path, f"'{key}' must be a scalar")
    text = str(value).strip()
    return text or None


def _mapping(path: Path, key: str, value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DescriptorParseError(path, f"'{key}' must be a mapping")
    return value


def _parse_parent(path: Path, data: dict[str, Any]) -> ParentRef | None:
    if "parent" not in data or data["parent"] is None:
        return None
    raw = _mapping(path, "parent", data["parent"])
    artifact_id = _scalar(path, "parent.artifact_id", raw.get("artifact_id"))
    if artifact_id is None:
        raise DescriptorParseError(path, "'parent.artifact_id' is required")
    return ParentRef(
        group_id=_scalar(path, "parent.group_id", raw.get("group_id")),
        artifact_id=artifact_id,
        version=_scalar(path, "parent.version", raw.get("version")),
        relative_path=_scalar(path, "parent.relative_path", raw.get("relative_path")),
    )


def _parse_resources(path: Path, key: str, value: Any) -> tuple[str | None, ...]:
    """Accept a list of plain directories or ``{directory: ...}`` mappings."""
    if value is None:
        return ()
    if not isinstance(value, list):
        raise DescriptorParseError(path, f"'{key}' must be a list")
    dirs: list[str | None] = []
    for entry in value:
        if isinstance(entry, dict):
            dirs.append(_scalar(path, f"{key}.directory", entry.get("directory")))
        else:
            dirs.append(_scalar(path, key, entry))
    return tuple(dirs)


def _parse_build(path: Path, data: dict[str, Any]) -> BuildConfig:
    raw = _mapping(path, "build", data.get("build"))
    if not raw:
        return BuildConfig()
    kwargs: dict[str, Any] = {
        name: _scalar(path, f"build.{name}", raw.get(name)) for name in _BUILD_DIR_FIELDS
    }
    kwargs["resources"] = _parse_resources(path, "build.resources", raw.get("resources"))
    kwargs["test_resources"] = _parse_resources(
        path, "build.test_resources", raw.get("test_resources")
    )
    return BuildConfig(**kwargs)


def _parse_modules(path: Path, data: dict[str, Any]) -> tuple[str, ...]:
    raw = data.get("modules")
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise DescriptorParseError(path, "'modules' must be a list")
    modules: list[str] = []
    for entry in raw:
        module = _scalar(path, "modules", entry)
        if module is not None:
            modules.append(module)
    return tuple(modules)


def read_descriptor(path: Path) -> RawDescriptor:
    """Read and validate the descriptor at *path*.

    Raises :class:`DescriptorReadError` on I/O failure and
    :class:`DescriptorParseError` when the content is malformed.
    """
    try:
        text = path.read_text(encoding="utf-8")
        mtime = path.stat().st_mtime
    except (OSError, UnicodeDecodeError) as exc:
        raise DescriptorReadError(path, str(exc)) from exc

    try:
        data = yaml.load(text, Loader=TextScalarLoader)  # noqa: S506
    except yaml.YAMLError as exc:
        raise DescriptorParseError(path, f"invalid YAML: {exc}") from exc

    if data is None:
        raise DescriptorParseError(path, "descriptor is empty")
    if not isinstance(data, dict):
        raise DescriptorParseError(path, "descriptor must be a mapping")

    artifact_id = _scalar(path, "artifact_id", data.get("artifact_id"))
    if artifact_id is None:
        raise DescriptorParseError(path, "'artifact_id' is required")

    properties = {
        str(k): str(v)
        for k, v in _mapping(path, "properties", data.get("properties")).items()
        if v is not None
    }

    return RawDescriptor(
        path=path,
        artifact_id=artifact_id,
        group_id=_scalar(path, "group_id", data.get("group_id")),
        version=_scalar(path, "version", data.get("version")),
        packaging=_scalar(path, "packaging", data.get("packaging")) or DEFAULT_PACKAGING,
        parent=_parse_parent(path, data),
        modules=_parse_modules(path, data),
        properties=properties,
        build=_parse_build(path, data),
        last_modified=mtime,
    )


def parent_descriptor_path(
    descriptor: RawDescriptor, descriptor_name: str = DESCRIPTOR_NAME
) -> Path | None:
    """Return the candidate path of the parent descriptor.

    An explicit ``parent.relative_path`` is resolved against the descriptor's
    directory (a directory gets *descriptor_name* appended).  Otherwise the
    descriptor file in the enclosing directory is the candidate.  Returns
    ``None`` at the filesystem root.
    """
    base = descriptor.directory
    parent = descriptor.parent
    if parent is not None and parent.relative_path:
        candidate = Path(os.path.normpath(base / parent.relative_path))
        if candidate.is_dir():
            candidate = candidate / descriptor_name
        return candidate
    if base.parent == base:
        return None
    return base.parent / descriptor_name


def is_descriptor(path: Path) -> bool:
    """Probe whether *path* is a readable, valid descriptor file.

    Read and parse failures are reported as ``False``, never raised.
    """
    if not path.is_file():
        return False
    try:
        read_descriptor(path)
    except DescriptorReadError:
        return False
    return True
