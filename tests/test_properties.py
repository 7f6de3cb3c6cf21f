"""Tests for reactorgraph.properties — group id and version placeholders."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from reactorgraph.descriptor import read_descriptor
from reactorgraph.errors import DescriptorParseError
from reactorgraph.properties import (
    effective_group_id,
    is_unresolved_version,
    raw_version,
    resolve_descriptor_version,
    resolve_version,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


# ---------------------------------------------------------------------------
# Group id
# ---------------------------------------------------------------------------


class TestEffectiveGroupId:
    def test_own_group(self, tmp_path: Path, write_project: Callable[..., Path]) -> None:
        path = write_project(tmp_path, {"group_id": "org.acme", "artifact_id": "a"})
        assert effective_group_id(read_descriptor(path)) == "org.acme"

    def test_inherited_from_parent_ref(self, tmp_path: Path, write_project: Callable[..., Path]) -> None:
        path = write_project(
            tmp_path, {"artifact_id": "a", "parent": {"group_id": "org.acme", "artifact_id": "p"}}
        )
        assert effective_group_id(read_descriptor(path)) == "org.acme"

    def test_placeholder_inherits(self, tmp_path: Path, write_project: Callable[..., Path]) -> None:
        path = write_project(
            tmp_path,
            {
                "group_id": "${project.parent.groupId}",
                "artifact_id": "a",
                "parent": {"group_id": "org.acme", "artifact_id": "p"},
            },
        )
        assert effective_group_id(read_descriptor(path)) == "org.acme"

    def test_read_from_parent_descriptor(self, tmp_path: Path, write_project: Callable[..., Path]) -> None:
        write_project(tmp_path, {"group_id": "org.top", "artifact_id": "p", "version": "1"})
        path = write_project(tmp_path / "child", {"artifact_id": "a", "parent": {"artifact_id": "p"}})
        assert effective_group_id(read_descriptor(path)) == "org.top"

    def test_parent_descriptor_for_other_artifact_is_ignored(
        self, tmp_path: Path, write_project: Callable[..., Path]
    ) -> None:
        write_project(tmp_path, {"group_id": "org.top", "artifact_id": "unrelated"})
        path = write_project(tmp_path / "child", {"artifact_id": "a", "parent": {"artifact_id": "p"}})
        with pytest.raises(DescriptorParseError, match="group id"):
            effective_group_id(read_descriptor(path))

    def test_no_parent(self, tmp_path: Path, write_project: Callable[..., Path]) -> None:
        path = write_project(tmp_path, {"artifact_id": "a"})
        with pytest.raises(DescriptorParseError, match="group id"):
            effective_group_id(read_descriptor(path))


# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------


class TestRawVersion:
    def test_own_version(self, tmp_path: Path, write_project: Callable[..., Path]) -> None:
        path = write_project(tmp_path, {"artifact_id": "a", "version": "3.0"})
        assert raw_version(read_descriptor(path)) == "3.0"

    def test_parent_version(self, tmp_path: Path, write_project: Callable[..., Path]) -> None:
        path = write_project(
            tmp_path, {"artifact_id": "a", "parent": {"artifact_id": "p", "version": "2.0"}}
        )
        assert raw_version(read_descriptor(path)) == "2.0"

    def test_missing(self, tmp_path: Path, write_project: Callable[..., Path]) -> None:
        path = write_project(tmp_path, {"artifact_id": "a"})
        with pytest.raises(DescriptorParseError, match="version"):
            raw_version(read_descriptor(path))


class TestResolveVersion:
    def test_is_unresolved_version(self) -> None:
        assert is_unresolved_version("${revision}")
        assert is_unresolved_version("1.0-${sha1}")
        assert not is_unresolved_version("1.0.0")

    def test_from_properties(self, tmp_path: Path, write_project: Callable[..., Path]) -> None:
        path = write_project(
            tmp_path,
            {"artifact_id": "a", "version": "${revision}", "properties": {"revision": "1.2.3"}},
        )
        desc = read_descriptor(path)
        assert resolve_version("${revision}", desc) == "1.2.3"

    def test_nested_properties(self, tmp_path: Path, write_project: Callable[..., Path]) -> None:
        path = write_project(
            tmp_path,
            {
                "artifact_id": "a",
                "version": "${revision}${changelist}",
                "properties": {"revision": "${major}.1", "major": "2", "changelist": "-SNAPSHOT"},
            },
        )
        desc = read_descriptor(path)
        assert resolve_version("${revision}${changelist}", desc) == "2.1-SNAPSHOT"

    def test_overrides_win(self, tmp_path: Path, write_project: Callable[..., Path]) -> None:
        path = write_project(
            tmp_path,
            {"artifact_id": "a", "version": "${revision}", "properties": {"revision": "1.0"}},
        )
        desc = read_descriptor(path)
        assert resolve_version("${revision}", desc, {"revision": "9.9"}) == "9.9"

    def test_unresolvable(self, tmp_path: Path, write_project: Callable[..., Path]) -> None:
        path = write_project(tmp_path, {"artifact_id": "a", "version": "${revision}"})
        desc = read_descriptor(path)
        assert resolve_version("${revision}", desc) is None

    def test_self_referencing_property_terminates(
        self, tmp_path: Path, write_project: Callable[..., Path]
    ) -> None:
        path = write_project(
            tmp_path,
            {"artifact_id": "a", "version": "${loop}", "properties": {"loop": "x${loop}"}},
        )
        assert resolve_version("${loop}", read_descriptor(path)) is None

    def test_descriptor_resolution(self, tmp_path: Path, write_project: Callable[..., Path]) -> None:
        concrete = write_project(tmp_path / "c", {"artifact_id": "c", "version": "1.0"})
        deferred = write_project(tmp_path / "d", {"artifact_id": "d", "version": "${revision}"})

        result = resolve_descriptor_version(read_descriptor(concrete))
        assert result.value == "1.0"
        assert not result.is_placeholder
        assert not result.deferred

        result = resolve_descriptor_version(read_descriptor(deferred))
        assert result.raw == "${revision}"
        assert result.is_placeholder
        assert result.deferred
