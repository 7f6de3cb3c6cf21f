"""Loader settings read from ``.reactorgraph/config.yml``."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from reactorgraph.descriptor import DESCRIPTOR_NAME, TextScalarLoader

logger = logging.getLogger(__name__)

CONFIG_DIR = ".reactorgraph"
CONFIG_FILE = "config.yml"


@dataclass(frozen=True)
class LoaderSettings:
    """Options shared by every discovery entry point.

    ``properties`` override descriptor properties during version
    resolution.  ``workspace_root`` names a workspace root that is not on
    the current project's parent chain.
    """

    descriptor_name: str = DESCRIPTOR_NAME
    properties: dict[str, str] = field(default_factory=dict)
    workspace_root: Path | None = None

    def with_properties(self, extra: dict[str, str]) -> LoaderSettings:
        """Return a copy with *extra* merged over the configured properties."""
        merged = dict(self.properties)
        merged.update(extra)
        return LoaderSettings(
            descriptor_name=self.descriptor_name,
            properties=merged,
            workspace_root=self.workspace_root,
        )


def default_config_path(start: Path) -> Path:
    return start / CONFIG_DIR / CONFIG_FILE


def load_settings(config_path: Path) -> LoaderSettings:
    """Load settings from *config_path*.

    Falls back to defaults for a missing file, an unreadable file or
    invalid values.
    """
    if not config_path.is_file():
        return LoaderSettings()

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.load(fh, Loader=TextScalarLoader)  # noqa: S506
    except (OSError, yaml.YAMLError):
        logger.warning("Failed to read %s, using default settings", config_path)
        return LoaderSettings()

    if data is None:
        return LoaderSettings()
    if not isinstance(data, dict):
        logger.warning("%s is not a mapping, using default settings", config_path)
        return LoaderSettings()

    descriptor_name = data.get("descriptor_name", DESCRIPTOR_NAME)
    if not isinstance(descriptor_name, str) or not descriptor_name.strip():
        logger.warning("Invalid descriptor_name in %s, using %s", config_path, DESCRIPTOR_NAME)
        descriptor_name = DESCRIPTOR_NAME

    properties: dict[str, str] = {}
    raw_properties = data.get("properties")
    if isinstance(raw_properties, dict):
        properties = {str(k): str(v) for k, v in raw_properties.items() if v is not None}
    elif raw_properties is not None:
        logger.warning("Ignoring non-mapping properties in %s", config_path)

    workspace_root: Path | None = None
    raw_root = data.get("workspace_root")
    if isinstance(raw_root, str) and raw_root.strip():
        # Relative roots are taken from the directory holding .reactorgraph/.
        base = config_path.parent.parent if config_path.parent.name == CONFIG_DIR else config_path.parent
        workspace_root = (base / raw_root).resolve()

    return LoaderSettings(
        descriptor_name=descriptor_name.strip(),
        properties=properties,
        workspace_root=workspace_root,
    )
