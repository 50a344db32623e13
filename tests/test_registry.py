"""Tests for tools/registry.py and tools/invocation.py — upsert, snapshots, invocation variants."""
import threading

import pytest

from orchestrator.errors import ToolDefinitionError
from orchestrator.models import Intent
from orchestrator.tools.invocation import (
    DeclarativeInvocation,
    DirectInvocation,
    NETWORK,
    PROCESS,
    RemoteServiceInvocation,
    resolve_invocation,
)
from orchestrator.tools.registry import (
    ToolDescriptor,
    ToolRegistry,
    register_remote_service,
    slugify,
)

from conftest import bar_chart_payload, csv_processor_payload


def _noop(**kwargs):
    return {}


class TestSlugify:
    def test_spaces_and_case(self):
        assert slugify("File Processor") == "file-processor"

    def test_punctuation_collapsed(self):
        assert slugify("  Chart  Maker (v2)! ") == "chart-maker-v2"


class TestRegister:
    def test_new_tool_appended(self, registry):
        registry.register(csv_processor_payload())
        registry.register(bar_chart_payload())
        assert [t.id for t in registry.list()] == ["csv-processor", "bar-charter"]

    def test_id_derived_from_name(self, registry):
        tool = registry.register({"name": "Web Fetcher", "capabilities": {"intents": ["WEB_SEARCH"]}})
        assert tool.id == "web-fetcher"
        assert registry.get("web-fetcher") is tool

    def test_missing_id_and_name_rejected(self, registry):
        with pytest.raises(ToolDefinitionError):
            registry.register({"capabilities": {}})

    def test_non_mapping_rejected(self, registry):
        with pytest.raises(ToolDefinitionError):
            registry.register(["not", "a", "tool"])

    def test_idempotent_upsert(self, registry):
        payload = csv_processor_payload(handler=_noop)
        registry.register(payload)
        registry.register(payload)
        assert len(registry.list()) == 1
        assert registry.get("csv-processor") == ToolDescriptor.from_payload(payload)

    def test_shallow_merge_keeps_unspecified_keys(self, registry):
        registry.register(csv_processor_payload())
        registry.register({"id": "csv-processor", "description": "Reads CSV"})
        tool = registry.get("csv-processor")
        assert tool.description == "Reads CSV"
        assert tool.name == "CSV Processor"
        assert tool.capabilities.file_types == frozenset({"csv"})

    def test_shallow_merge_replaces_nested_objects_whole(self, registry):
        registry.register(csv_processor_payload())
        registry.register({"id": "csv-processor", "capabilities": {"intents": ["FILE_OPERATION"]}})
        caps = registry.get("csv-processor").capabilities
        assert caps.intents == frozenset({Intent.FILE_OPERATION})
        assert caps.file_types == frozenset()

    def test_merge_across_default_params_spellings(self, registry):
        registry.register({"id": "t", "default_params": {"mode": "old"}})
        registry.register({"id": "t", "defaultParams": {"mode": "new"}})
        assert registry.get("t").default_params == {"mode": "new"}

    def test_merge_across_endpoint_spellings(self, registry):
        registry.register({"id": "svc", "endpoint": "http://old/api"})
        registry.register({"id": "svc", "apiEndpoint": "http://new/api"})
        assert registry.get("svc").invocation == RemoteServiceInvocation(endpoint="http://new/api")

    def test_merge_across_execution_spellings(self, registry):
        registry.register({"id": "net", "execution": {"type": "http", "url": "http://old/run"}})
        registry.register({"id": "net", "executionConfig": {"type": "http", "url": "http://new/run"}})
        assert registry.get("net").invocation.call.url == "http://new/run"

    def test_json_definition_overrides_builtin_style_payload(self, registry):
        registry.register(ToolDescriptor.from_payload(
            {"id": "fp", "default_params": {"outputFormat": "json"}, "endpoint": "http://a/api"}
        ))
        registry.register({"id": "fp", "defaultParams": {"outputFormat": "csv"}})
        tool = registry.get("fp")
        assert tool.default_params == {"outputFormat": "csv"}
        assert tool.invocation == RemoteServiceInvocation(endpoint="http://a/api")

    def test_replacement_keeps_position(self, registry):
        registry.register(csv_processor_payload())
        registry.register(bar_chart_payload())
        registry.register({"id": "csv-processor", "name": "Renamed"})
        assert [t.id for t in registry.list()] == ["csv-processor", "bar-charter"]
        assert registry.list()[0].name == "Renamed"

    def test_register_descriptor(self, registry):
        descriptor = ToolDescriptor.from_payload(bar_chart_payload(handler=_noop))
        stored = registry.register(descriptor)
        assert stored == descriptor
        # A later dict payload merges over the descriptor's fields
        registry.register({"id": "bar-charter", "version": "2.0"})
        merged = registry.get("bar-charter")
        assert merged.version == "2.0"
        assert merged.capabilities == descriptor.capabilities
        assert merged.invocation == DirectInvocation(handler=_noop)

    def test_list_is_snapshot(self, registry):
        registry.register(csv_processor_payload())
        snapshot = registry.list()
        registry.register(bar_chart_payload())
        assert len(snapshot) == 1
        assert len(registry) == 2

    def test_unknown_intent_ignored(self, registry):
        tool = registry.register({"id": "x", "capabilities": {"intents": ["TELEPATHY", "web_search"]}})
        assert tool.capabilities.intents == frozenset({Intent.WEB_SEARCH})

    def test_camel_and_snake_keys(self, registry):
        tool = registry.register({
            "id": "t",
            "capabilities": {"file_types": [".CSV"], "visualization_types": ["heatmap"]},
            "default_params": {"a": 1},
        })
        assert tool.capabilities.file_types == frozenset({"csv"})
        assert tool.capabilities.visualization_types == frozenset({"heatmap"})
        assert tool.default_params == {"a": 1}

    def test_concurrent_readers_never_see_partial_tool(self, registry):
        registry.register(csv_processor_payload())
        errors = []

        def writer():
            for i in range(200):
                registry.register({"id": "csv-processor", "name": f"CSV {i}",
                                   "capabilities": {"intents": ["DATA_PROCESSING"], "fileTypes": ["csv"]}})

        def reader():
            for _ in range(200):
                for tool in registry.list():
                    if tool.capabilities.file_types != frozenset({"csv"}):
                        errors.append(tool)

        threads = [threading.Thread(target=writer)] + [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert errors == []
        assert len(registry) == 1


class TestRemoteService:
    def test_generates_id(self, registry):
        result = register_remote_service(registry, {"name": "Summarizer", "endpoint": "http://svc/run"})
        assert result["success"] is True
        assert result["tool_id"].startswith("remote-service-")
        tool = registry.get(result["tool_id"])
        assert tool.invocation == RemoteServiceInvocation(endpoint="http://svc/run")

    def test_keeps_given_id(self, registry):
        result = register_remote_service(registry, {"id": "sum", "apiEndpoint": "http://svc/run"})
        assert result["tool_id"] == "sum"

    def test_endpoint_required(self, registry):
        with pytest.raises(ToolDefinitionError):
            register_remote_service(registry, {"name": "Nowhere"})


class TestResolveInvocation:
    def test_handler_wins(self):
        inv = resolve_invocation("t", {
            "handler": _noop,
            "execution": {"type": "http", "url": "http://x"},
            "endpoint": "http://y",
        })
        assert isinstance(inv, DirectInvocation)

    def test_declarative_network(self):
        inv = resolve_invocation("t", {
            "executionConfig": {"type": "http", "url": "http://x", "method": "put", "headers": {"A": "b"}},
            "apiEndpoint": "http://y",
        })
        assert isinstance(inv, DeclarativeInvocation)
        assert inv.kind == NETWORK
        assert inv.call.method == "PUT"
        assert inv.call.headers == {"A": "b"}

    def test_declarative_process(self):
        inv = resolve_invocation("t", {"execution": {"type": "command-line", "command": "wc", "args": ["-l"]}})
        assert inv.kind == PROCESS
        assert inv.call.command == "wc"
        assert inv.call.args == ["-l"]

    def test_remote_service(self):
        inv = resolve_invocation("t", {"endpoint": "http://svc"})
        assert inv == RemoteServiceInvocation(endpoint="http://svc")

    def test_none(self):
        assert resolve_invocation("t", {"name": "bare"}) is None

    def test_unknown_execution_type(self):
        with pytest.raises(ToolDefinitionError):
            resolve_invocation("t", {"execution": {"type": "carrier-pigeon"}})

    def test_network_needs_url(self):
        with pytest.raises(ToolDefinitionError):
            resolve_invocation("t", {"execution": {"type": "network"}})

    def test_handler_must_be_callable(self):
        with pytest.raises(ToolDefinitionError):
            resolve_invocation("t", {"handler": "not callable"})
