"""File processor — read csv/json/text files into structured data."""
import asyncio
import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict

from ..registry import builtin_tool

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = {".txt", ".md"}


def read_data_file(path: Path) -> Any:
    """csv -> list of row dicts, json -> parsed value, txt/md -> str."""
    suffix = path.suffix.lower()
    if suffix == ".csv":
        with open(path, newline="", encoding="utf-8") as f:
            return [dict(row) for row in csv.DictReader(f)]
    if suffix == ".json":
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    if suffix in TEXT_SUFFIXES:
        return path.read_text(encoding="utf-8")
    raise ValueError(f"Unsupported file type: {suffix or path.name}")


@builtin_tool(
    "file-processor",
    name="File Processor",
    description="Read and parse csv, json and text files",
    capabilities={
        "intents": ["FILE_OPERATION", "DATA_PROCESSING"],
        "fileTypes": ["csv", "json", "txt", "md"],
        "dataTypes": ["tabular", "json", "text"],
    },
    default_params={"outputFormat": "json"},
    outputs={"success": True, "result": {}, "rowCount": 0},
)
async def process_file(**params) -> Dict[str, Any]:
    source = params.get("filePath") or params.get("inputFile")
    if not source:
        # Chained after another step: pass its data through
        if params.get("input") is not None:
            data = params["input"]
            return {"success": True, "result": data, "rowCount": _count(data)}
        raise ValueError("No file given (expected filePath or inputFile)")

    path = Path(source).expanduser()
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {source}")

    data = await asyncio.to_thread(read_data_file, path)
    logger.info(f"Read {path.name}: {_count(data)} record(s)")
    return {"success": True, "result": data, "filePath": str(path), "rowCount": _count(data)}


def _count(data: Any) -> int:
    if isinstance(data, list):
        return len(data)
    return 1 if data else 0
