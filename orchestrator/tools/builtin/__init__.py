"""Builtin tools. Importing the modules runs their @builtin_tool decorators."""
from ..registry import ToolRegistry, builtin_definitions
from . import file_processor
from . import visualization


def install_builtin_tools(registry: ToolRegistry) -> list:
    """Register every builtin tool into `registry`; returns their ids."""
    return [registry.register(definition).id for definition in builtin_definitions()]
