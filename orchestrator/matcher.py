"""Score registered tools against the classified intents and entities."""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from .models import EntitySet, Intent
from .tools.registry import ToolDescriptor

logger = logging.getLogger(__name__)

FILE_WEIGHT = 10
DATA_TYPE_WEIGHT = 5
LANGUAGE_WEIGHT = 8
VISUALIZATION_WEIGHT = 7


@dataclass(frozen=True)
class MatchedTool:
    tool: ToolDescriptor
    score: int

    def to_dict(self) -> dict:
        return {"tool_id": self.tool.id, "tool_name": self.tool.name, "score": self.score}


def _extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower()


def score_tool(tool: ToolDescriptor, entities: EntitySet) -> int:
    caps = tool.capabilities
    file_matches = sum(1 for f in entities.files if _extension(f) in caps.file_types)
    data_matches = sum(1 for t in entities.data_types if t in caps.data_types)
    language_matches = sum(1 for lang in entities.code_languages if lang in caps.languages)
    vis_matches = sum(1 for v in entities.visualization_types if v in caps.visualization_types)
    return (
        FILE_WEIGHT * file_matches
        + DATA_TYPE_WEIGHT * data_matches
        + LANGUAGE_WEIGHT * language_matches
        + VISUALIZATION_WEIGHT * vis_matches
    )


def match(intents: Sequence[Intent], entities: EntitySet, tools: Iterable[ToolDescriptor]) -> List[MatchedTool]:
    """Tools sharing an intent with the query, best score first.

    A tool that shares an intent but scores 0 is left out.
    """
    wanted = set(intents)
    matched = []
    for tool in tools:
        if not wanted & tool.capabilities.intents:
            continue
        score = score_tool(tool, entities)
        if score > 0:
            matched.append(MatchedTool(tool=tool, score=score))
        else:
            logger.debug(f"Tool {tool.id} shares an intent but scored 0, skipped")

    # sorted() is stable, so equal scores keep registry order
    return sorted(matched, key=lambda m: -m.score)
