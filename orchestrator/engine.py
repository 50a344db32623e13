"""Query -> analysis -> plan -> result, over an injected tool registry."""
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .classifier import classify, confidence
from .config import Settings, settings as default_settings
from .executor import PlanExecutor, RemoteInvoker
from .matcher import MatchedTool, match
from .models import EntitySet, ExecutionPlan, ExecutionResult, Intent
from .planner import build_plan
from .tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass
class Analysis:
    query: str
    intents: List[Intent]
    entities: EntitySet
    matched_tools: List[MatchedTool] = field(default_factory=list)
    confidence: float = 0.0
    timestamp: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "intents": [i.value for i in self.intents],
            "entities": self.entities.model_dump(),
            "matched_tools": [m.to_dict() for m in self.matched_tools],
            "confidence": self.confidence,
            "timestamp": self.timestamp,
        }


class Orchestrator:
    def __init__(
        self,
        registry: ToolRegistry,
        remote_invoker: Optional[RemoteInvoker] = None,
        config: Optional[Settings] = None,
    ):
        self.registry = registry
        self.config = config or default_settings
        self.executor = PlanExecutor(registry, remote_invoker=remote_invoker, config=self.config)

    def analyze(self, query: str) -> Analysis:
        intents, entities = classify(query)
        matched = match(intents, entities, self.registry.list())
        logger.info(f"Matched {len(matched)} tool(s): {[(m.tool.id, m.score) for m in matched]}")
        return Analysis(
            query=query,
            intents=intents,
            entities=entities,
            matched_tools=matched,
            confidence=confidence(intents, entities),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    def plan(self, analysis: Analysis) -> ExecutionPlan:
        return build_plan(analysis.intents, analysis.entities, analysis.matched_tools, query=analysis.query)

    async def execute(self, plan: ExecutionPlan) -> ExecutionResult:
        return await self.executor.execute(plan)

    async def handle(self, query: str) -> Dict[str, Any]:
        """Full request: analyze, plan, execute. Returns a JSON-ready dict."""
        t0 = time.monotonic()
        analysis = self.analyze(query)
        plan = self.plan(analysis)
        result = await self.execute(plan)
        logger.info(f"Request handled in {time.monotonic() - t0:.2f}s (success={result.success})")
        return {
            "query": query,
            "analysis": analysis.to_dict(),
            "execution_plan": plan.model_dump(mode="json"),
            "result": result.model_dump(mode="json"),
        }


def create_registry(config: Optional[Settings] = None) -> ToolRegistry:
    """Registry populated from the builtin tools and the configured definitions dir."""
    from .tools.builtin import install_builtin_tools
    from .tools.loader import load_definitions

    config = config or default_settings
    registry = ToolRegistry()
    if config.load_builtin_tools:
        install_builtin_tools(registry)
    if config.tools_dir:
        load_definitions(registry, Path(config.tools_dir))
    logger.info(f"Registry ready with {len(registry)} tool(s)")
    return registry
