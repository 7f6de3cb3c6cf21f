"""Shared test fixtures for reactorgraph."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
import yaml

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


def write_descriptor(directory: Path, data: Any, name: str = "project.yml") -> Path:
    """Create *directory* and write *data* as a YAML descriptor into it."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    if isinstance(data, str):
        path.write_text(data, encoding="utf-8")
    else:
        path.write_text(yaml.dump(data, sort_keys=False), encoding="utf-8")
    return path


def _parent(artifact_id: str, **extra: str) -> dict[str, str]:
    ref = {"group_id": "org.acme", "artifact_id": artifact_id, "version": "1.0.0"}
    ref.update(extra)
    return ref


@pytest.fixture()
def write_project() -> Callable[..., Path]:
    return write_descriptor


@pytest.fixture()
def reactor(tmp_path: Path) -> Path:
    """Synthetic workspace: root -> {a, b}, b -> c.

    Returns the root directory.
    """
    root = tmp_path / "root"
    write_descriptor(
        root,
        {
            "group_id": "org.acme",
            "artifact_id": "root",
            "version": "1.0.0",
            "packaging": "pom",
            "modules": ["a", "b"],
        },
    )
    write_descriptor(
        root / "a",
        {"artifact_id": "a", "parent": _parent("root", relative_path="..")},
    )
    write_descriptor(
        root / "b",
        {
            "artifact_id": "b",
            "packaging": "pom",
            "parent": _parent("root", relative_path=".."),
            "modules": ["c"],
        },
    )
    write_descriptor(
        root / "b" / "c",
        {"artifact_id": "c", "parent": _parent("b", relative_path="..")},
    )
    return root
