"""Workflow execution engine: drives one run of a workflow to completion.

Each iteration computes the wave of steps whose dependencies are complete,
runs the whole wave concurrently via asyncio.gather, waits for every step to
settle, then applies the outcomes one at a time. The coordinating task is
the only writer of an execution's results, errors, and status; step
handlers just return values or raise.

Error policies per failed step:
  stop      the execution fails once the wave's outcomes are applied
  continue  the step counts as complete and its output name is cleared,
            so dependents see it as absent
  retry     the step reruns in the next wave while its budget lasts;
            an exhausted budget fails the execution like ``stop``
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any

from loguru import logger

from promptweave.agents.registry import AgentRegistry
from promptweave.config.schema import EngineSettings
from promptweave.errors import DeadlockError, ExecutionError
from promptweave.http import ApiCaller
from promptweave.providers.types import TextGenerator
from promptweave.workflow.execution import (
    ExecutionStatus,
    ExecutionStore,
    LogLevel,
    WorkflowExecution,
)
from promptweave.workflow.executor import StepExecutor
from promptweave.workflow.models import ErrorPolicy, StepDef, WorkflowDef
from promptweave.workflow.store import WorkflowStore


class WorkflowEngine:
    """Starts executions and runs them in the background.

    Runs beyond ``max_concurrent_executions`` wait in Pending until a slot
    frees up.
    """

    def __init__(
        self,
        workflows: WorkflowStore,
        agents: AgentRegistry,
        executions: ExecutionStore,
        generator: TextGenerator,
        api_caller: ApiCaller,
        settings: EngineSettings | None = None,
    ) -> None:
        self._workflows = workflows
        self._agents = agents
        self._executions = executions
        self._generator = generator
        self._api_caller = api_caller
        self._settings = settings or EngineSettings()
        self._slots = asyncio.Semaphore(self._settings.max_concurrent_executions)
        self._tasks: dict[str, asyncio.Task[WorkflowExecution]] = {}

    async def start_execution(self, workflow_id: str, variables: dict[str, Any] | None = None) -> str:
        """Create a Pending execution, schedule it, and return its id."""
        workflow = self._workflows.get(workflow_id)
        if not workflow.is_active:
            raise ExecutionError(f"Workflow '{workflow_id}' is inactive")

        execution = self._executions.new(
            execution_id=uuid.uuid4().hex,
            workflow_id=workflow.id,
            results={**workflow.variables, **(variables or {})},
        )
        executor = StepExecutor(
            self._generator,
            self._api_caller,
            self._agents.snapshot(workflow.agent_ids()),
        )

        task = asyncio.create_task(
            self._drive(execution, workflow, executor),
            name=f"execution:{execution.id}",
        )
        self._tasks[execution.id] = task
        task.add_done_callback(lambda _t, eid=execution.id: self._tasks.pop(eid, None))

        logger.info("Workflow execution started: {} (workflow '{}')", execution.id, workflow.id)
        return execution.id

    async def run_execution(
        self, workflow_id: str, variables: dict[str, Any] | None = None
    ) -> WorkflowExecution:
        """Start an execution and wait for it to reach a terminal status."""
        execution_id = await self.start_execution(workflow_id, variables)
        return await self.wait(execution_id)

    async def wait(self, execution_id: str) -> WorkflowExecution:
        """Wait for a background execution to finish and return it.

        A tracked run is returned from its task, so it stays reachable even
        after the execution store has pruned it.
        """
        task = self._tasks.get(execution_id)
        if task is not None:
            return await asyncio.shield(task)
        return self._executions.get(execution_id)

    def cancel(self, execution_id: str) -> bool:
        """Cancel a Running execution. In-flight steps finish but are ignored."""
        return self._executions.cancel(execution_id)

    @property
    def running(self) -> int:
        return len(self._tasks)

    async def shutdown(self) -> None:
        """Cancel every background execution and wait for them to unwind."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _drive(
        self,
        execution: WorkflowExecution,
        workflow: WorkflowDef,
        executor: StepExecutor,
    ) -> WorkflowExecution:
        with logger.contextualize(execution_id=execution.id):
            try:
                async with self._slots:
                    if execution.is_terminal:
                        return execution
                    execution.transition(ExecutionStatus.RUNNING)
                    execution.log(LogLevel.INFO, f"Execution started: {len(workflow.steps)} steps")
                    await self._run_waves(execution, workflow, executor)
            except asyncio.CancelledError:
                if not execution.is_terminal:
                    execution.transition(ExecutionStatus.CANCELLED)
                    execution.log(LogLevel.WARN, "Execution cancelled by engine shutdown")
                raise
            except Exception as exc:
                logger.exception("Workflow execution crashed: {}", execution.id)
                if not execution.is_terminal:
                    execution.record_error("", exc)
                    self._fail(execution, f"Workflow execution failed: {exc}")
            finally:
                if execution.is_terminal:
                    self._executions.finished(execution)
                    logger.info(
                        "Workflow execution {} {}: {} waves, {} errors, {:.1f}s",
                        execution.id,
                        execution.status,
                        execution.waves,
                        len(execution.errors),
                        execution.duration_seconds,
                    )
        return execution

    async def _run_waves(
        self,
        execution: WorkflowExecution,
        workflow: WorkflowDef,
        executor: StepExecutor,
    ) -> None:
        completed: set[str] = set()
        budgets = {step.id: step.retry_count for step in workflow.steps}
        total = len(workflow.steps)

        while len(completed) < total:
            if execution.is_terminal:
                return

            ready = [
                step
                for step in workflow.steps
                if step.id not in completed and all(dep in completed for dep in step.depends_on)
            ]
            if not ready:
                pending = sorted(s.id for s in workflow.steps if s.id not in completed)
                exc = DeadlockError(f"Workflow deadlock: no steps can run (waiting: {', '.join(pending)})")
                execution.record_error("", exc)
                self._fail(execution, str(exc))
                return

            execution.waves += 1
            execution.current_steps = [step.id for step in ready]
            logger.debug("Execution {} wave {}: {}", execution.id, execution.waves, execution.current_steps)
            for step in ready:
                execution.log(LogLevel.INFO, f"Executing step: {step.id}", step.id)

            view = dict(execution.results)
            outcomes = await asyncio.gather(
                *(executor.run(step, view, self._timeout(step)) for step in ready),
                return_exceptions=True,
            )

            if execution.is_terminal:
                logger.info(
                    "Execution {} is {}; discarding results of wave {}",
                    execution.id,
                    execution.status,
                    execution.waves,
                )
                return

            fatal: tuple[StepDef, BaseException] | None = None
            for step, outcome in zip(ready, outcomes, strict=True):
                if isinstance(outcome, BaseException):
                    if self._apply_failure(execution, step, outcome, completed, budgets) and fatal is None:
                        fatal = (step, outcome)
                    continue
                completed.add(step.id)
                execution.results[step.output_name] = outcome
                execution.log(LogLevel.INFO, f"Step completed: {step.id}", step.id)
            execution.current_steps = []

            if fatal is not None:
                step, exc = fatal
                self._fail(execution, f"Workflow execution failed at step '{step.id}': {exc}")
                return

        execution.transition(ExecutionStatus.COMPLETED)
        execution.log(LogLevel.INFO, "Execution completed")

    def _apply_failure(
        self,
        execution: WorkflowExecution,
        step: StepDef,
        exc: BaseException,
        completed: set[str],
        budgets: dict[str, int],
    ) -> bool:
        """Record a step failure and apply its policy. Returns True if fatal."""
        error = execution.record_error(step.id, exc)
        execution.log(LogLevel.ERROR, f"Step failed: {step.id} - {error.message}", step.id)
        logger.warning("Execution {} step '{}' failed: {}", execution.id, step.id, error.message)

        match step.on_error:
            case ErrorPolicy.CONTINUE:
                completed.add(step.id)
                execution.results.pop(step.output_name, None)
                execution.log(LogLevel.WARN, f"Continuing without output of step: {step.id}", step.id)
                return False
            case ErrorPolicy.RETRY if budgets[step.id] > 0:
                budgets[step.id] -= 1
                execution.log(
                    LogLevel.INFO,
                    f"Retrying step: {step.id} ({budgets[step.id]} retries left)",
                    step.id,
                )
                return False
            case ErrorPolicy.RETRY:
                execution.log(LogLevel.ERROR, f"Retry budget exhausted for step: {step.id}", step.id)
                return True
            case _:
                return True

    def _timeout(self, step: StepDef) -> float:
        return step.timeout_seconds or self._settings.default_step_timeout

    @staticmethod
    def _fail(execution: WorkflowExecution, message: str) -> None:
        execution.transition(ExecutionStatus.FAILED)
        execution.log(LogLevel.ERROR, message)
        logger.error("Execution {}: {}", execution.id, message)
