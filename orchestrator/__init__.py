"""Request orchestration — classify a query, plan a tool chain, run it."""
from .classifier import classify
from .engine import Analysis, Orchestrator, create_registry
from .errors import ErrorCode, OrchestratorError, StepFailure, ToolDefinitionError
from .executor import HttpRemoteInvoker, PlanExecutor
from .matcher import MatchedTool, match
from .models import ExecutionPlan, ExecutionResult, Intent, RunState, StepResult
from .planner import build_plan
from .tools import ToolDescriptor, ToolRegistry
