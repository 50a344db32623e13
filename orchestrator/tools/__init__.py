"""Tool system — registry, invocation variants, definition loading."""
from .registry import (
    Capabilities,
    ToolDescriptor,
    ToolRegistry,
    builtin_tool,
    register_remote_service,
    slugify,
)
from .loader import load_definitions
