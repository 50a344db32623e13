"""Tests for matcher.py — candidacy, scoring, ordering."""
from orchestrator.matcher import match, score_tool
from orchestrator.models import EntitySet, Intent
from orchestrator.tools.registry import ToolDescriptor


def _tool(tool_id, intents, **caps):
    return ToolDescriptor.from_payload({
        "id": tool_id,
        "capabilities": {"intents": intents, **caps},
    })


SALES = EntitySet(files=["sales.csv"], data_types=["tabular"], visualization_types=["bar_chart"])


class TestScore:
    def test_weights(self):
        tool = _tool("all", ["DATA_PROCESSING"], fileTypes=["csv"], dataTypes=["tabular"],
                     languages=["python"], visualizationTypes=["bar_chart"])
        entities = EntitySet(files=["a.csv", "b.CSV", "c.json"], data_types=["tabular"],
                             code_languages=["python"], visualization_types=["bar_chart"])
        assert score_tool(tool, entities) == 2 * 10 + 5 + 8 + 7

    def test_empty_capabilities_scores_zero(self):
        tool = _tool("empty", [])
        assert score_tool(tool, SALES) == 0


class TestMatch:
    def test_requires_intent_overlap(self):
        tool = _tool("csv", ["FILE_OPERATION"], fileTypes=["csv"])
        assert match([Intent.VISUALIZATION], SALES, [tool]) == []

    def test_zero_score_excluded_despite_intent(self):
        tool = ToolDescriptor.from_payload({"id": "bare", "capabilities": {"intents": ["DATA_PROCESSING"]}})
        assert match([Intent.DATA_PROCESSING], SALES, [tool]) == []

    def test_no_capabilities_object(self):
        tool = ToolDescriptor.from_payload({"id": "nothing"})
        assert match([Intent.DATA_PROCESSING], SALES, [tool]) == []

    def test_sorted_by_score(self):
        low = _tool("low", ["DATA_PROCESSING"], dataTypes=["tabular"])
        high = _tool("high", ["DATA_PROCESSING"], fileTypes=["csv"], dataTypes=["tabular"])
        result = match([Intent.DATA_PROCESSING], SALES, [low, high])
        assert [(m.tool.id, m.score) for m in result] == [("high", 15), ("low", 5)]

    def test_ties_keep_registry_order(self):
        first = _tool("first", ["VISUALIZATION"], visualizationTypes=["bar_chart"])
        second = _tool("second", ["VISUALIZATION"], visualizationTypes=["bar_chart"])
        result = match([Intent.VISUALIZATION], SALES, [first, second])
        assert [m.tool.id for m in result] == ["first", "second"]

    def test_to_dict(self):
        tool = _tool("csv", ["DATA_PROCESSING"], fileTypes=["csv"])
        [matched] = match([Intent.DATA_PROCESSING], SALES, [tool])
        assert matched.to_dict() == {"tool_id": "csv", "tool_name": "csv", "score": 10}
