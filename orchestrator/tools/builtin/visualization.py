"""Visualization creator — turn tabular records into a Vega-Lite chart spec."""
import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..registry import builtin_tool
from .file_processor import read_data_file

logger = logging.getLogger(__name__)

SUPPORTED_TYPES = (
    "bar_chart", "line_chart", "pie_chart", "scatter_plot", "heatmap", "histogram", "box_plot",
)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    try:
        float(str(value))
        return True
    except ValueError:
        return False


def pick_fields(records: List[Dict[str, Any]]) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """(category field, first numeric field, second numeric field) from the first record."""
    if not records:
        return None, None, None
    columns = list(records[0].keys())
    numeric = [c for c in columns if all(_is_number(r.get(c)) for r in records if r.get(c) not in (None, ""))]
    categorical = [c for c in columns if c not in numeric]
    category = categorical[0] if categorical else None
    first = numeric[0] if numeric else None
    second = numeric[1] if len(numeric) > 1 else None
    return category, first, second


def _encoding(chart_type: str, category, value, second) -> Tuple[Any, Dict[str, Any]]:
    if chart_type == "line_chart":
        return "line", {"x": {"field": category, "type": "ordinal"},
                        "y": {"field": value, "type": "quantitative"}}
    if chart_type == "pie_chart":
        return {"type": "arc"}, {"theta": {"field": value, "type": "quantitative"},
                                 "color": {"field": category, "type": "nominal"}}
    if chart_type == "scatter_plot":
        return "point", {"x": {"field": value, "type": "quantitative"},
                         "y": {"field": second or value, "type": "quantitative"}}
    if chart_type == "heatmap":
        return "rect", {"x": {"field": category, "type": "nominal"},
                        "y": {"field": second or value, "type": "ordinal"},
                        "color": {"field": value, "type": "quantitative"}}
    if chart_type == "histogram":
        return "bar", {"x": {"field": value, "bin": True, "type": "quantitative"},
                       "y": {"aggregate": "count", "type": "quantitative"}}
    if chart_type == "box_plot":
        return "boxplot", {"x": {"field": category, "type": "nominal"},
                           "y": {"field": value, "type": "quantitative"}}
    return "bar", {"x": {"field": category, "type": "nominal"},
                   "y": {"field": value, "type": "quantitative"}}


def build_chart_spec(records: List[Dict[str, Any]], chart_type: str, title: str,
                     width: int, height: int) -> Dict[str, Any]:
    if chart_type not in SUPPORTED_TYPES:
        raise ValueError(f"Unsupported visualization type: {chart_type}")
    category, value, second = pick_fields(records)
    if value is None:
        raise ValueError("Data has no numeric column to plot")

    mark, encoding = _encoding(chart_type, category, value, second)
    return {
        "$schema": "https://vega.github.io/schema/vega-lite/v5.json",
        "title": title,
        "width": width,
        "height": height,
        "data": {"values": records},
        "mark": mark,
        "encoding": encoding,
    }


@builtin_tool(
    "visualization-creator",
    name="Visualization Creator",
    description="Create chart specifications from tabular data",
    capabilities={
        "intents": ["VISUALIZATION"],
        "fileTypes": ["csv", "json"],
        "dataTypes": ["tabular", "json"],
        "visualizationTypes": list(SUPPORTED_TYPES),
    },
    default_params={"title": "Visualization", "width": 800, "height": 600},
    outputs={"success": True, "result": {}, "format": "vega-lite"},
)
async def create_visualization(**params) -> Dict[str, Any]:
    records = params.get("input")
    if records is None and params.get("dataSource"):
        records = await asyncio.to_thread(read_data_file, Path(params["dataSource"]).expanduser())
    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        raise ValueError("Visualization needs a list of records (input or dataSource)")

    chart_type = params.get("visualizationType") or "bar_chart"
    spec = build_chart_spec(
        records,
        chart_type,
        title=params.get("title", "Visualization"),
        width=int(params.get("width", 800)),
        height=int(params.get("height", 600)),
    )
    logger.info(f"Built {chart_type} spec over {len(records)} record(s)")
    return {"success": True, "result": spec, "format": "vega-lite", "visualizationType": chart_type}
