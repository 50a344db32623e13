"""Shared fixtures: registries and tool payloads."""
import pytest

from orchestrator.tools.registry import ToolRegistry


def csv_processor_payload(handler=None):
    payload = {
        "id": "csv-processor",
        "name": "CSV Processor",
        "capabilities": {
            "intents": ["DATA_PROCESSING"],
            "fileTypes": ["csv"],
        },
        "defaultParams": {"delimiter": ","},
        "outputs": {"success": True, "result": {}},
    }
    if handler is not None:
        payload["handler"] = handler
    return payload


def bar_chart_payload(handler=None):
    payload = {
        "id": "bar-charter",
        "name": "Bar Charter",
        "capabilities": {
            "intents": ["VISUALIZATION"],
            "visualizationTypes": ["bar_chart"],
        },
    }
    if handler is not None:
        payload["handler"] = handler
    return payload


@pytest.fixture
def registry():
    return ToolRegistry()


@pytest.fixture
def sales_csv(tmp_path):
    path = tmp_path / "sales.csv"
    path.write_text("region,sales\nnorth,120\nsouth,80\neast,95\n", encoding="utf-8")
    return path
