"""Plan builder — one tool per intent, chained step to step.

The plan is always a single linear chain: step_1 -> step_2 -> ... Each edge
copies the previous step's `result` field into the next step's `input`.
"""
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from .matcher import MatchedTool
from .models import (
    DataFlowEdge,
    EntitySet,
    ExecutionPlan,
    FieldMapping,
    Intent,
    PlanStep,
    ToolSuggestion,
)
from .tools.registry import ToolDescriptor

logger = logging.getLogger(__name__)

NO_TOOLS_REASON = "No suitable tools found"

# Fallback output schema when a tool declares none
GENERIC_OUTPUTS: Dict[Intent, Dict[str, Any]] = {
    Intent.FILE_OPERATION: {"success": True, "filePath": ""},
    Intent.DATA_PROCESSING: {"success": True, "result": {}},
    Intent.CODE_GENERATION: {"success": True, "code": ""},
    Intent.VISUALIZATION: {"success": True, "visualizationPath": ""},
    Intent.KNOWLEDGE_RETRIEVAL: {"success": True, "knowledge": {}},
    Intent.TERMINAL_EXECUTION: {"success": True, "output": ""},
    Intent.WEB_SEARCH: {"success": True, "results": []},
}

# Default params for a suggested tool, per intent
TEMPLATE_PARAMS: Dict[Intent, Dict[str, Any]] = {
    Intent.FILE_OPERATION: {"filePath": ""},
    Intent.DATA_PROCESSING: {"inputData": {}},
    Intent.CODE_GENERATION: {"prompt": ""},
    Intent.VISUALIZATION: {"data": {}},
    Intent.KNOWLEDGE_RETRIEVAL: {"query": ""},
    Intent.TERMINAL_EXECUTION: {"command": ""},
    Intent.WEB_SEARCH: {"query": ""},
}


def generate_plan_id() -> str:
    return f"plan_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _humanize(intent: Intent) -> str:
    return intent.value.lower().replace("_", " ")


def _extensions(files: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(f.rsplit(".", 1)[-1].lower() for f in files))


def best_tool_for_intent(intent: Intent, matched_tools: Sequence[MatchedTool]) -> Optional[MatchedTool]:
    best = None
    for candidate in matched_tools:
        if intent not in candidate.tool.capabilities.intents:
            continue
        # strict > keeps the earlier entry on ties
        if best is None or candidate.score > best.score:
            best = candidate
    return best


def input_params_for(intent: Intent, entities: EntitySet, tool: ToolDescriptor) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    if intent == Intent.FILE_OPERATION:
        if entities.files:
            params["filePath"] = entities.files[0]
    elif intent == Intent.DATA_PROCESSING:
        if entities.files:
            params["inputFile"] = entities.files[0]
        if entities.data_types:
            params["dataType"] = entities.data_types[0]
    elif intent == Intent.CODE_GENERATION:
        if entities.code_languages:
            params["language"] = entities.code_languages[0]
    elif intent == Intent.VISUALIZATION:
        if entities.files:
            params["dataSource"] = entities.files[0]
        if entities.visualization_types:
            params["visualizationType"] = entities.visualization_types[0]

    # Tool defaults are laid over the entity-derived values
    params.update(tool.default_params)
    return params


def output_params_for(intent: Intent, tool: ToolDescriptor) -> Dict[str, Any]:
    if tool.outputs is not None:
        return dict(tool.outputs)
    return dict(GENERIC_OUTPUTS.get(intent, {"success": True}))


def build_data_flow(steps: Sequence[PlanStep]) -> List[DataFlowEdge]:
    return [
        DataFlowEdge(
            from_step=current.step_id,
            to_step=following.step_id,
            mappings=[FieldMapping(from_param="result", to_param="input")],
        )
        for current, following in zip(steps, steps[1:])
    ]


def tool_template(intent: Intent, entities: EntitySet) -> Dict[str, Any]:
    """Skeleton definition for a tool that would handle `intent`."""
    capabilities: Dict[str, Any] = {"intents": [intent.value]}
    if intent == Intent.FILE_OPERATION:
        capabilities["fileTypes"] = _extensions(entities.files)
    elif intent == Intent.DATA_PROCESSING:
        capabilities["dataTypes"] = list(entities.data_types)
    elif intent == Intent.CODE_GENERATION:
        capabilities["languages"] = list(entities.code_languages)
    elif intent == Intent.VISUALIZATION:
        capabilities["visualizationTypes"] = list(entities.visualization_types)

    return {
        "id": f"{intent.value.lower()}_tool",
        "name": " ".join(word.capitalize() for word in intent.value.split("_")) + " Tool",
        "version": "0.1.0",
        "description": f"A tool for {_humanize(intent)}",
        "capabilities": capabilities,
        "defaultParams": dict(TEMPLATE_PARAMS.get(intent, {})),
        "outputs": dict(GENERIC_OUTPUTS.get(intent, {"success": True})),
    }


def suggest_tools(intents: Sequence[Intent], entities: EntitySet) -> List[ToolSuggestion]:
    suggestions = []
    for intent in intents:
        if intent == Intent.UNKNOWN:
            continue

        description = f"A tool that can handle {_humanize(intent)}"
        if intent == Intent.FILE_OPERATION and entities.files:
            description += f" for {', '.join(_extensions(entities.files))} files"
        elif intent == Intent.DATA_PROCESSING and entities.data_types:
            description += f" with {', '.join(entities.data_types)} data"
        elif intent == Intent.CODE_GENERATION and entities.code_languages:
            description += f" in {', '.join(entities.code_languages)}"
        elif intent == Intent.VISUALIZATION and entities.visualization_types:
            description += f" for {', '.join(entities.visualization_types)} visualizations"

        suggestions.append(ToolSuggestion(
            intent=intent,
            description=description,
            template=tool_template(intent, entities),
        ))
    return suggestions


def build_plan(
    intents: Sequence[Intent],
    entities: EntitySet,
    matched_tools: Sequence[MatchedTool],
    query: str = "",
) -> ExecutionPlan:
    plan_id = generate_plan_id()

    if not matched_tools:
        logger.info(f"Plan {plan_id}: no matching tools for {[i.value for i in intents]}")
        return ExecutionPlan(
            plan_id=plan_id,
            query=query,
            executable=False,
            reason=NO_TOOLS_REASON,
            suggested_tools=suggest_tools(intents, entities),
            created_at=_now(),
        )

    steps: List[PlanStep] = []
    unaddressed: List[Intent] = []
    for intent in intents:
        if intent == Intent.UNKNOWN:
            continue

        chosen = best_tool_for_intent(intent, matched_tools)
        if chosen is None:
            unaddressed.append(intent)
            continue

        steps.append(PlanStep(
            step_id=f"step_{len(steps) + 1}",
            intent=intent,
            tool_id=chosen.tool.id,
            tool_name=chosen.tool.name,
            input_params=input_params_for(intent, entities, chosen.tool),
            output_params=output_params_for(intent, chosen.tool),
        ))

    plan = ExecutionPlan(
        plan_id=plan_id,
        query=query,
        steps=steps,
        data_flow=build_data_flow(steps),
        executable=len(steps) > 0,
        created_at=_now(),
    )
    if not plan.executable:
        plan.reason = NO_TOOLS_REASON
    if unaddressed:
        plan.unaddressed_intents = unaddressed
        plan.suggested_tools = suggest_tools(unaddressed, entities)
        logger.info(f"Plan {plan_id}: unaddressed intents {[i.value for i in unaddressed]}")

    logger.info(f"Plan {plan_id}: {len(steps)} step(s) -> {[s.tool_id for s in steps]}")
    return plan
