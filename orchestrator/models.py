"""Plan and result models handed to callers (JSON-ready via model_dump)."""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .errors import ErrorCode


class Intent(str, Enum):
    FILE_OPERATION = "FILE_OPERATION"
    DATA_PROCESSING = "DATA_PROCESSING"
    CODE_GENERATION = "CODE_GENERATION"
    VISUALIZATION = "VISUALIZATION"
    KNOWLEDGE_RETRIEVAL = "KNOWLEDGE_RETRIEVAL"
    TERMINAL_EXECUTION = "TERMINAL_EXECUTION"
    WEB_SEARCH = "WEB_SEARCH"
    UNKNOWN = "UNKNOWN"


class RunState(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class EntitySet(BaseModel):
    """Facts pulled out of the query text. Lists keep first-seen order, no duplicates."""
    files: List[str] = Field(default_factory=list)
    data_types: List[str] = Field(default_factory=list)
    code_languages: List[str] = Field(default_factory=list)
    visualization_types: List[str] = Field(default_factory=list)

    def non_empty_categories(self) -> int:
        return sum(
            1 for values in (self.files, self.data_types, self.code_languages, self.visualization_types)
            if values
        )


class FieldMapping(BaseModel):
    from_param: str
    to_param: str


class DataFlowEdge(BaseModel):
    from_step: str
    to_step: str
    mappings: List[FieldMapping]


class PlanStep(BaseModel):
    step_id: str
    intent: Intent
    tool_id: str
    tool_name: str = ""
    input_params: Dict[str, Any] = Field(default_factory=dict)
    output_params: Dict[str, Any] = Field(default_factory=dict)


class ToolSuggestion(BaseModel):
    intent: Intent
    description: str
    template: Dict[str, Any]


class ExecutionPlan(BaseModel):
    plan_id: str
    query: str = ""
    steps: List[PlanStep] = Field(default_factory=list)
    data_flow: List[DataFlowEdge] = Field(default_factory=list)
    executable: bool = False
    reason: Optional[str] = None
    unaddressed_intents: Optional[List[Intent]] = None
    suggested_tools: Optional[List[ToolSuggestion]] = None
    created_at: str = ""


class StepResult(BaseModel):
    success: bool
    result: Any = None
    error: Optional[str] = None


class ErrorInfo(BaseModel):
    code: ErrorCode
    message: str
    step_id: Optional[str] = None


class ExecutionResult(BaseModel):
    plan_id: str
    state: RunState = RunState.NOT_STARTED
    success: bool = False
    step_results: Dict[str, StepResult] = Field(default_factory=dict)
    error: Optional[ErrorInfo] = None
    # Non-fatal conditions, e.g. intents the plan could not address
    warnings: List[ErrorInfo] = Field(default_factory=list)
    reason: Optional[str] = None
    unaddressed_intents: Optional[List[Intent]] = None
    suggested_tools: Optional[List[ToolSuggestion]] = None
    completed_at: str = ""
