"""Resolver for the user-authored connection list (.vscode/db-lens.json)."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import yaml

from db_lens.config import Settings
from db_lens.descriptors import ServerDescriptor, SqliteDescriptor, parse_descriptors

logger = logging.getLogger(__name__)


def load_config_file(path: Path) -> Any | None:
    """Decode the connection file.

    ``.yaml``/``.yml`` files are read with PyYAML, everything else as JSON.

    Returns:
        The decoded document, or None if the file is absent, unreadable or unparsable
    """
    if not path.is_file():
        logger.debug("No connection file at %s", path)
        return None

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Cannot read connection file %s: %s", path, e)
        return None

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            return yaml.safe_load(content)
        return json.loads(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        logger.warning("Cannot parse connection file %s: %s", path, e)
        return None


class ConfigFileResolver:
    """Read the declared connection list from the workspace."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def resolve(self) -> list[SqliteDescriptor | ServerDescriptor] | None:
        return await asyncio.to_thread(self._resolve_sync)

    def _resolve_sync(self) -> list[SqliteDescriptor | ServerDescriptor] | None:
        raw = load_config_file(self.settings.get_config_file_path())
        descriptors = parse_descriptors(raw)
        if descriptors is None:
            return None
        return [self._anchor(descriptor) for descriptor in descriptors]

    def _anchor(
        self, descriptor: SqliteDescriptor | ServerDescriptor
    ) -> SqliteDescriptor | ServerDescriptor:
        """Resolve relative SQLite paths against the workspace root."""
        if not isinstance(descriptor, SqliteDescriptor) or not descriptor.path:
            return descriptor
        path = Path(descriptor.path).expanduser()
        if path.is_absolute():
            return descriptor
        root = self.settings.get_workspace_root()
        return descriptor.model_copy(update={"path": str(root / path)})
