"""Rule-based intent classifier — keyword tables and entity extraction.

Intents come from case-insensitive substring triggers, checked in table order.
Entities are extracted independently of the intents.
"""
import logging
import re
from typing import Dict, List, Tuple

from .models import EntitySet, Intent

logger = logging.getLogger(__name__)


INTENT_KEYWORDS: Dict[Intent, Tuple[str, ...]] = {
    Intent.FILE_OPERATION: ("file", "read", "write", "save", "load", "csv", "json", "txt"),
    Intent.DATA_PROCESSING: ("process", "transform", "extract", "convert", "analyze", "calculate"),
    Intent.CODE_GENERATION: ("code", "program", "function", "script", "algorithm", "develop"),
    Intent.VISUALIZATION: ("visualize", "chart", "plot", "graph", "dashboard", "display"),
    Intent.KNOWLEDGE_RETRIEVAL: ("search", "find", "lookup", "retrieve", "get information"),
    Intent.TERMINAL_EXECUTION: ("run", "execute", "terminal", "command", "shell", "bash"),
    Intent.WEB_SEARCH: ("web", "internet", "online", "website", "url", "http"),
}

FILE_EXTENSIONS = ("csv", "json", "txt", "md", "py", "js", "html", "css", "xml", "pdf")

_FILE_PATTERN = re.compile(r"\b[\w-]+\.(?:" + "|".join(FILE_EXTENSIONS) + r")\b", re.IGNORECASE)

DATA_TYPE_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "tabular": ("csv", "spreadsheet", "excel", "table"),
    "json": ("json", "object", "dictionary"),
    "text": ("text", "string", "document"),
    "image": ("image", "picture", "photo", "graphic"),
}

VISUALIZATION_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "bar_chart": ("bar", "column"),
    "line_chart": ("line", "trend"),
    "pie_chart": ("pie", "donut"),
    "scatter_plot": ("scatter", "point"),
    "heatmap": ("heatmap", "heat map"),
    "histogram": ("histogram",),
    "box_plot": ("box plot", "boxplot"),
}

_LANGUAGE_PATTERNS: List[Tuple[re.Pattern, str]] = []


def _build_language_patterns():
    # Lookarounds instead of \b so "c++" and "c#" can match
    patterns = [
        (r"(python|py)", "python"),
        (r"(javascript|js|node)", "javascript"),
        (r"(typescript|ts)", "typescript"),
        (r"(java)", "java"),
        (r"(c\+\+|cpp)", "cpp"),
        (r"(c#|csharp)", "csharp"),
        (r"(ruby|rb)", "ruby"),
        (r"(go|golang)", "go"),
        (r"(php)", "php"),
        (r"(sql)", "sql"),
        (r"(bash|shell)", "bash"),
        (r"(rust)", "rust"),
        (r"(html)", "html"),
        (r"(css)", "css"),
    ]

    _LANGUAGE_PATTERNS.clear()
    for pattern, language in patterns:
        _LANGUAGE_PATTERNS.append((re.compile(rf"(?<![\w+#]){pattern}(?![\w+#])", re.IGNORECASE), language))


def _dedupe(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


def _keyword_buckets(lowered: str, table: Dict[str, Tuple[str, ...]]) -> List[str]:
    return [label for label, words in table.items() if any(w in lowered for w in words)]


def extract_files(text: str) -> List[str]:
    return _dedupe(m.group(0) for m in _FILE_PATTERN.finditer(text))


def extract_data_types(text: str) -> List[str]:
    return _keyword_buckets(text.lower(), DATA_TYPE_KEYWORDS)


def extract_code_languages(text: str) -> List[str]:
    return [language for regex, language in _LANGUAGE_PATTERNS if regex.search(text)]


def extract_visualization_types(text: str) -> List[str]:
    return _keyword_buckets(text.lower(), VISUALIZATION_KEYWORDS)


def extract_entities(text: str) -> EntitySet:
    return EntitySet(
        files=extract_files(text),
        data_types=extract_data_types(text),
        code_languages=extract_code_languages(text),
        visualization_types=extract_visualization_types(text),
    )


def detect_intents(text: str) -> List[Intent]:
    """Intents triggered by the text, in table order; [UNKNOWN] if none."""
    # File names are entities; "sales.csv" alone must not look like a file operation
    lowered = _FILE_PATTERN.sub(" ", text).lower()
    intents = [
        intent for intent, triggers in INTENT_KEYWORDS.items()
        if any(trigger in lowered for trigger in triggers)
    ]
    return intents or [Intent.UNKNOWN]


def confidence(intents: List[Intent], entities: EntitySet) -> float:
    """Reported only; nothing branches on it."""
    score = 0.0
    if intents != [Intent.UNKNOWN]:
        score += 0.4
    score += 0.15 * entities.non_empty_categories()
    return min(round(score, 2), 1.0)


def classify(text: str) -> Tuple[List[Intent], EntitySet]:
    intents = detect_intents(text)
    entities = extract_entities(text)
    logger.info(
        f"Classified: '{text}' -> {[i.value for i in intents]} "
        f"(files={entities.files}, languages={entities.code_languages})"
    )
    return intents, entities


_build_language_patterns()
