"""How a tool gets called — resolved once from the tool payload.

Priority order: a direct callable handler, then a declarative execution
config (network or process call), then a remote-service endpoint.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from ..errors import ToolDefinitionError

logger = logging.getLogger(__name__)

NETWORK = "network"
PROCESS = "process"

# Spellings accepted in execution configs for each declarative sub-kind
_KIND_ALIASES = {
    "network": NETWORK,
    "http": NETWORK,
    "process": PROCESS,
    "command-line": PROCESS,
    "command_line": PROCESS,
    "cli": PROCESS,
}


@dataclass(frozen=True)
class DirectInvocation:
    handler: Callable[..., Any]


@dataclass(frozen=True)
class NetworkCall:
    url: str
    method: str = "POST"
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ProcessCall:
    command: str
    args: List[str] = field(default_factory=list)
    cwd: Optional[str] = None


@dataclass(frozen=True)
class DeclarativeInvocation:
    kind: str  # NETWORK | PROCESS
    call: Union[NetworkCall, ProcessCall]


@dataclass(frozen=True)
class RemoteServiceInvocation:
    endpoint: str


Invocation = Union[DirectInvocation, DeclarativeInvocation, RemoteServiceInvocation]


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


def _declarative(tool_id: str, config: Mapping[str, Any]) -> DeclarativeInvocation:
    raw_kind = str(config.get("type", "")).lower()
    kind = _KIND_ALIASES.get(raw_kind)
    if kind is None:
        raise ToolDefinitionError(f"Tool {tool_id}: unknown execution type {raw_kind!r}")

    if kind == NETWORK:
        url = config.get("url")
        if not url:
            raise ToolDefinitionError(f"Tool {tool_id}: network execution needs a url")
        call = NetworkCall(
            url=url,
            method=str(config.get("method", "POST")).upper(),
            headers=dict(config.get("headers") or {}),
        )
    else:
        command = config.get("command")
        if not command:
            raise ToolDefinitionError(f"Tool {tool_id}: process execution needs a command")
        call = ProcessCall(
            command=command,
            args=[str(a) for a in config.get("args") or []],
            cwd=config.get("cwd"),
        )
    return DeclarativeInvocation(kind=kind, call=call)


def resolve_invocation(tool_id: str, payload: Mapping[str, Any]) -> Optional[Invocation]:
    """Pick the invocation variant for a tool payload, or None if it has none."""
    handler = _first(payload, "handler", "execute")
    if handler is not None:
        if not callable(handler):
            raise ToolDefinitionError(f"Tool {tool_id}: handler is not callable")
        return DirectInvocation(handler=handler)

    config = _first(payload, "execution", "execution_config", "executionConfig")
    if config is not None:
        if not isinstance(config, Mapping):
            raise ToolDefinitionError(f"Tool {tool_id}: execution config must be a mapping")
        return _declarative(tool_id, config)

    endpoint = _first(payload, "endpoint", "api_endpoint", "apiEndpoint")
    if endpoint:
        return RemoteServiceInvocation(endpoint=str(endpoint))

    logger.debug(f"Tool {tool_id} declares no invocation strategy")
    return None


def invocation_payload(invocation: Optional[Invocation]) -> Dict[str, Any]:
    """Raw payload keys that resolve back to the given variant."""
    if isinstance(invocation, DirectInvocation):
        return {"handler": invocation.handler}
    if isinstance(invocation, DeclarativeInvocation):
        call = invocation.call
        if isinstance(call, NetworkCall):
            config = {"type": NETWORK, "url": call.url, "method": call.method, "headers": dict(call.headers)}
        else:
            config = {"type": PROCESS, "command": call.command, "args": list(call.args), "cwd": call.cwd}
        return {"execution": config}
    if isinstance(invocation, RemoteServiceInvocation):
        return {"endpoint": invocation.endpoint}
    return {}
