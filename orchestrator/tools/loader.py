"""Load *.tool.json definitions from a directory into a registry (one pass, no watching)."""
import json
import logging
from pathlib import Path
from typing import List

from ..errors import ToolDefinitionError
from .registry import ToolRegistry

logger = logging.getLogger(__name__)

DEFINITION_GLOB = "*.tool.json"


def load_definitions(registry: ToolRegistry, directory: Path) -> List[str]:
    """Register every definition file found; bad files are logged and skipped.

    Returns the ids that were registered.
    """
    if not directory.exists():
        logger.warning(f"Tool definitions directory not found: {directory}")
        return []

    loaded = []
    for path in sorted(directory.glob(DEFINITION_GLOB)):
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ToolDefinitionError("definition must be a JSON object")
            descriptor = registry.register(data)
            loaded.append(descriptor.id)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load tool from {path.name}: {e}")

    logger.info(f"Loaded {len(loaded)} tool definition(s) from {directory}")
    return loaded
