"""Tool registry — capability descriptors, upsert-by-id and snapshot listing."""
import logging
import re
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Union

from ..errors import ToolDefinitionError
from ..models import Intent
from .invocation import Invocation, invocation_payload, resolve_invocation

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    """'File Processor' -> 'file-processor'."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.strip().lower())
    return slug.strip("-")


def _lower_set(values) -> FrozenSet[str]:
    return frozenset(str(v).lower() for v in values or [])


def _intent_set(values) -> FrozenSet[Intent]:
    intents = set()
    for value in values or []:
        try:
            intents.add(Intent(str(value).upper()))
        except ValueError:
            logger.warning(f"Ignoring unknown intent in capabilities: {value!r}")
    return frozenset(intents)


@dataclass(frozen=True)
class Capabilities:
    intents: FrozenSet[Intent] = frozenset()
    file_types: FrozenSet[str] = frozenset()
    data_types: FrozenSet[str] = frozenset()
    languages: FrozenSet[str] = frozenset()
    visualization_types: FrozenSet[str] = frozenset()

    @classmethod
    def from_payload(cls, raw: Optional[Mapping[str, Any]]) -> "Capabilities":
        raw = raw or {}
        return cls(
            intents=_intent_set(raw.get("intents")),
            file_types=frozenset(
                t.lstrip(".") for t in _lower_set(raw.get("file_types") or raw.get("fileTypes"))
            ),
            data_types=_lower_set(raw.get("data_types") or raw.get("dataTypes")),
            languages=_lower_set(raw.get("languages")),
            visualization_types=_lower_set(
                raw.get("visualization_types") or raw.get("visualizationTypes")
            ),
        )


@dataclass(frozen=True)
class ToolDescriptor:
    id: str
    name: str
    description: str = ""
    version: str = ""
    capabilities: Capabilities = field(default_factory=Capabilities)
    default_params: Dict[str, Any] = field(default_factory=dict)
    outputs: Optional[Dict[str, Any]] = None
    invocation: Optional[Invocation] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ToolDescriptor":
        name = payload.get("name") or ""
        tool_id = payload.get("id") or (slugify(name) if name else "")
        if not tool_id:
            raise ToolDefinitionError("Tool definition must include an id or a name")

        default_params = payload.get("default_params", payload.get("defaultParams")) or {}
        outputs = payload.get("outputs")
        return cls(
            id=tool_id,
            name=name or tool_id,
            description=payload.get("description") or "",
            version=str(payload.get("version") or ""),
            capabilities=Capabilities.from_payload(payload.get("capabilities")),
            default_params=dict(default_params),
            outputs=dict(outputs) if outputs is not None else None,
            invocation=resolve_invocation(tool_id, payload),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Inverse of from_payload: raw keys that rebuild an equal descriptor."""
        caps = self.capabilities
        payload: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "capabilities": {
                "intents": sorted(i.value for i in caps.intents),
                "file_types": sorted(caps.file_types),
                "data_types": sorted(caps.data_types),
                "languages": sorted(caps.languages),
                "visualization_types": sorted(caps.visualization_types),
            },
            "default_params": dict(self.default_params),
            "outputs": dict(self.outputs) if self.outputs is not None else None,
        }
        payload.update(invocation_payload(self.invocation))
        return payload


ToolPayload = Union[ToolDescriptor, Mapping[str, Any]]


# Canonical top-level key -> accepted spellings, in lookup priority order
_KEY_ALIASES = {
    "handler": ("handler", "execute"),
    "execution": ("execution", "execution_config", "executionConfig"),
    "endpoint": ("endpoint", "api_endpoint", "apiEndpoint"),
    "default_params": ("default_params", "defaultParams"),
}


def _canonical(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Fold alias spellings into one key each so merges compare like with like."""
    result = dict(payload)
    for key, spellings in _KEY_ALIASES.items():
        present = [s for s in spellings if s in result]
        if not present:
            continue
        values = [result.pop(s) for s in present]
        result[key] = next((v for v in values if v is not None), None)
    return result


def _as_payload(tool: ToolPayload) -> Dict[str, Any]:
    if isinstance(tool, ToolDescriptor):
        return _canonical(tool.to_payload())
    if not isinstance(tool, Mapping):
        raise ToolDefinitionError(f"Cannot register {type(tool).__name__} as a tool")
    return _canonical(tool)


class ToolRegistry:
    """Keyed, insertion-ordered map of tool descriptors.

    Descriptors are immutable and entries are replaced whole under a lock,
    so list() never sees a half-merged tool.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._tools: Dict[str, ToolDescriptor] = {}
        self._payloads: Dict[str, Dict[str, Any]] = {}

    def register(self, tool: ToolPayload) -> ToolDescriptor:
        payload = _as_payload(tool)
        descriptor = ToolDescriptor.from_payload(payload)
        payload["id"] = descriptor.id

        with self._lock:
            existing = self._payloads.get(descriptor.id)
            if existing is not None:
                # Shallow merge: top-level keys of the new payload win
                payload = {**existing, **payload}
                descriptor = ToolDescriptor.from_payload(payload)
            # dict assignment keeps the original insertion position
            self._tools[descriptor.id] = descriptor
            self._payloads[descriptor.id] = payload

        if existing is not None:
            logger.info(f"Updated tool: {descriptor.name} ({descriptor.id})")
        else:
            logger.info(f"Registered new tool: {descriptor.name} ({descriptor.id})")
        return descriptor

    def get(self, tool_id: str) -> Optional[ToolDescriptor]:
        with self._lock:
            return self._tools.get(tool_id)

    def list(self) -> List[ToolDescriptor]:
        """Stable-order snapshot of every registered tool."""
        with self._lock:
            return list(self._tools.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)

    def __contains__(self, tool_id: str) -> bool:
        with self._lock:
            return tool_id in self._tools


def register_remote_service(registry: ToolRegistry, definition: Mapping[str, Any]) -> Dict[str, Any]:
    """Register a tool served by a remote endpoint, generating an id if needed."""
    payload = dict(definition)
    if not payload.get("id"):
        payload["id"] = f"remote-service-{int(time.time() * 1000)}"
    if not (payload.get("endpoint") or payload.get("api_endpoint") or payload.get("apiEndpoint")):
        raise ToolDefinitionError(f"Remote service {payload['id']} needs an endpoint")

    descriptor = registry.register(payload)
    return {
        "success": True,
        "tool_id": descriptor.id,
        "message": f"Remote service {descriptor.name} registered successfully",
    }


# Builtin tools declared with @builtin_tool, installed into a registry on demand
_builtin: Dict[str, Dict[str, Any]] = {}


def builtin_tool(
    tool_id: str,
    name: str,
    description: str = "",
    capabilities: Optional[Dict[str, Any]] = None,
    default_params: Optional[Dict[str, Any]] = None,
    outputs: Optional[Dict[str, Any]] = None,
    version: str = "0.1.0",
):
    """Decorator to declare a direct-callable builtin tool."""
    def decorator(func: Callable[..., Any]):
        _builtin[tool_id] = {
            "id": tool_id,
            "name": name,
            "description": description or func.__doc__ or "",
            "version": version,
            "capabilities": capabilities or {},
            "default_params": default_params or {},
            "outputs": outputs,
            "handler": func,
        }
        return func
    return decorator


def builtin_definitions() -> List[Dict[str, Any]]:
    return [dict(d) for d in _builtin.values()]
