"""Error taxonomy for planning and execution."""
from enum import Enum


class ErrorCode(str, Enum):
    NO_MATCHING_TOOLS = "NO_MATCHING_TOOLS"
    UNADDRESSED_INTENT = "UNADDRESSED_INTENT"
    MISSING_TOOL = "MISSING_TOOL"
    NO_INVOCATION_STRATEGY = "NO_INVOCATION_STRATEGY"
    INVOCATION_FAILURE = "INVOCATION_FAILURE"


class OrchestratorError(Exception):
    """Base class for errors raised by the orchestrator."""


class ToolDefinitionError(OrchestratorError, ValueError):
    """A tool payload cannot be turned into a descriptor."""


class StepFailure(OrchestratorError):
    """A step failed; the executor turns this into a failed StepResult."""

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message
