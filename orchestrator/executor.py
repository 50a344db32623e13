"""Plan executor — runs chained steps in order, stopping at the first failure."""
import asyncio
import inspect
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

import httpx

from .config import Settings, settings as default_settings
from .errors import ErrorCode, StepFailure
from .models import ErrorInfo, ExecutionPlan, ExecutionResult, PlanStep, RunState, StepResult
from .tools.invocation import (
    DeclarativeInvocation,
    DirectInvocation,
    NetworkCall,
    ProcessCall,
    RemoteServiceInvocation,
)
from .tools.registry import ToolDescriptor, ToolRegistry

logger = logging.getLogger(__name__)


class RemoteInvoker(Protocol):
    async def invoke(self, endpoint: str, params: Dict[str, Any]) -> Any:
        ...


class HttpRemoteInvoker:
    """POSTs the params as JSON to the service endpoint and returns the JSON reply."""

    def __init__(self, timeout: float = 15.0, client: Optional[httpx.AsyncClient] = None):
        self.timeout = timeout
        self._client = client

    async def invoke(self, endpoint: str, params: Dict[str, Any]) -> Any:
        if self._client is not None:
            resp = await self._client.post(endpoint, json=params, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(endpoint, json=params)
            resp.raise_for_status()
            return resp.json()


def resolve_inputs(step: PlanStep, plan: ExecutionPlan, step_results: Dict[str, StepResult]) -> Dict[str, Any]:
    """Step params plus fields copied along incoming data-flow edges."""
    params = dict(step.input_params)
    for edge in plan.data_flow:
        if edge.to_step != step.step_id:
            continue
        source = step_results.get(edge.from_step)
        if source is None or not source.success:
            continue
        if not isinstance(source.result, dict):
            continue
        for mapping in edge.mappings:
            # Absent source fields are skipped, not an error
            if mapping.from_param in source.result:
                params[mapping.to_param] = source.result[mapping.from_param]
    return params


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class PlanExecutor:
    """Executes one plan per execute() call; each run owns its own results map."""

    def __init__(
        self,
        registry: ToolRegistry,
        remote_invoker: Optional[RemoteInvoker] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        config: Optional[Settings] = None,
    ):
        self.registry = registry
        self.config = config or default_settings
        self.http_client = http_client
        self.remote_invoker = remote_invoker or HttpRemoteInvoker(
            timeout=self.config.http_timeout_s, client=http_client,
        )

    async def execute(self, plan: ExecutionPlan) -> ExecutionResult:
        result = ExecutionResult(plan_id=plan.plan_id)

        if not plan.executable:
            logger.info(f"Plan {plan.plan_id} is not executable: {plan.reason}")
            result.state = RunState.FAILED
            result.reason = plan.reason or "Plan cannot be executed"
            result.suggested_tools = plan.suggested_tools
            result.error = ErrorInfo(code=ErrorCode.NO_MATCHING_TOOLS, message=result.reason)
            result.completed_at = _now()
            return result

        logger.info(f"Executing plan {plan.plan_id} with {len(plan.steps)} steps")
        result.state = RunState.RUNNING
        if plan.unaddressed_intents:
            names = ", ".join(i.value for i in plan.unaddressed_intents)
            logger.warning(f"Plan {plan.plan_id} leaves intents unaddressed: {names}")
            result.unaddressed_intents = plan.unaddressed_intents
            result.suggested_tools = plan.suggested_tools
            result.warnings.append(ErrorInfo(
                code=ErrorCode.UNADDRESSED_INTENT,
                message=f"No tool found for: {names}",
            ))
        step_results = result.step_results

        for step in plan.steps:
            t0 = time.monotonic()
            try:
                params = resolve_inputs(step, plan, step_results)
                tool = self.registry.get(step.tool_id)
                if tool is None:
                    raise StepFailure(ErrorCode.MISSING_TOOL, f"Tool {step.tool_id} not found")
                logger.info(f"Executing step {step.step_id} with tool {step.tool_id}")
                value = await self._invoke(tool, params)
            except StepFailure as e:
                logger.error(f"Step {step.step_id} failed: {e.message}")
                self._fail(result, step, e.code, e.message)
                break
            except Exception as e:
                logger.error(f"Tool {step.tool_id} failed in step {step.step_id}: {e}", exc_info=True)
                self._fail(result, step, ErrorCode.INVOCATION_FAILURE, str(e))
                break

            step_results[step.step_id] = StepResult(success=True, result=value)
            elapsed = time.monotonic() - t0
            logger.info(f"Step {step.step_id} completed in {elapsed:.2f}s")
        else:
            result.state = RunState.COMPLETED
            result.success = True

        result.completed_at = _now()
        return result

    @staticmethod
    def _fail(result: ExecutionResult, step: PlanStep, code: ErrorCode, message: str):
        result.step_results[step.step_id] = StepResult(success=False, error=message)
        result.state = RunState.FAILED
        result.success = False
        result.error = ErrorInfo(code=code, message=message, step_id=step.step_id)

    async def _invoke(self, tool: ToolDescriptor, params: Dict[str, Any]) -> Any:
        invocation = tool.invocation
        if isinstance(invocation, DirectInvocation):
            return await self._call_handler(invocation, params)
        if isinstance(invocation, DeclarativeInvocation):
            if isinstance(invocation.call, NetworkCall):
                return await self._call_network(invocation.call, params)
            return await self._call_process(invocation.call, params)
        if isinstance(invocation, RemoteServiceInvocation):
            logger.info(f"Calling remote service {tool.id} at {invocation.endpoint}")
            return await self.remote_invoker.invoke(invocation.endpoint, params)
        raise StepFailure(
            ErrorCode.NO_INVOCATION_STRATEGY,
            f"Tool {tool.id} doesn't have a valid execution mechanism",
        )

    @staticmethod
    async def _call_handler(invocation: DirectInvocation, params: Dict[str, Any]) -> Any:
        value = invocation.handler(**params)
        if inspect.isawaitable(value):
            value = await value
        return value

    async def _call_network(self, call: NetworkCall, params: Dict[str, Any]) -> Any:
        logger.info(f"Network call: {call.method} {call.url}")
        request_kwargs: Dict[str, Any] = {"headers": call.headers}
        if call.method in ("GET", "DELETE"):
            # Structured values (e.g. chained input rows) travel as JSON text
            request_kwargs["params"] = {
                k: v if isinstance(v, (str, int, float)) else json.dumps(v)
                for k, v in params.items()
            }
        else:
            request_kwargs["json"] = params

        if self.http_client is not None:
            resp = await self.http_client.request(
                call.method, call.url, timeout=self.config.http_timeout_s, **request_kwargs,
            )
        else:
            async with httpx.AsyncClient(timeout=self.config.http_timeout_s) as client:
                resp = await client.request(call.method, call.url, **request_kwargs)
        resp.raise_for_status()
        try:
            return resp.json()
        except ValueError:
            return {"result": resp.text}

    async def _call_process(self, call: ProcessCall, params: Dict[str, Any]) -> Any:
        logger.info(f"Process call: {call.command} {' '.join(call.args)}")
        # Serialize before spawning so a bad payload never leaves a child behind
        stdin_data = json.dumps(params).encode()
        proc = await asyncio.create_subprocess_exec(
            call.command, *call.args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=call.cwd,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(stdin_data),
                timeout=self.config.process_timeout_s,
            )
        except asyncio.TimeoutError:
            raise RuntimeError(f"{call.command} timed out after {self.config.process_timeout_s}s")
        finally:
            if proc.returncode is None:
                try:
                    proc.kill()
                except ProcessLookupError:
                    pass
                await proc.wait()

        if proc.returncode != 0:
            detail = stderr.decode(errors="replace").strip() or f"exit code {proc.returncode}"
            raise RuntimeError(f"{call.command} failed: {detail}")

        output = stdout.decode(errors="replace").strip()
        try:
            return json.loads(output)
        except ValueError:
            return {"result": output}
