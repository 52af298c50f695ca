"""Sequential chain execution with subFn threading and fail-fast attribution.

A chain is an ordered list of StepDefinitions. Step N+1 never starts before
step N finished, because its inputs may reference ``{{subFn.<N's id>...}}``.
"""

import inspect
import logging
import uuid
from typing import Any, Callable, Optional

from pydantic import ValidationError

from oidclab.engine.executor import StepExecutor
from oidclab.exceptions import ChainValidationError
from oidclab.functions.registry import FunctionRegistry
from oidclab.types import ChainResult, ExecutionContext, StepDefinition, StepResult

logger = logging.getLogger(__name__)

_ABSENT = object()


def parse_chain(raw: Any) -> list[StepDefinition]:
    """Convert request data into StepDefinitions.

    Raises:
        ChainValidationError: not a list, a step without ``fn``, or a step
            that does not fit the StepDefinition shape.
    """
    if not isinstance(raw, list):
        raise ChainValidationError('Request body must include "chain" array')

    steps = []
    for i, item in enumerate(raw):
        if isinstance(item, StepDefinition):
            steps.append(item)
            continue
        if not isinstance(item, dict) or not item.get("fn"):
            raise ChainValidationError(f'Chain step {i} missing "fn" (function ID)', step_index=i)
        try:
            steps.append(StepDefinition.model_validate(item))
        except ValidationError as exc:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()
            )
            raise ChainValidationError(f"Chain step {i} is invalid: {errors}", step_index=i) from None
    return steps


class ChainExecutor:
    """Runs chains of registered functions, one step at a time."""

    def __init__(
        self,
        registry: FunctionRegistry,
        step_executor: Optional[StepExecutor] = None,
        callbacks: Optional[list[Callable]] = None,
        strict_step_ids: bool = False,
    ):
        """
        Args:
            registry: Function registry used for pre-validation
            step_executor: Executor for single steps; built from ``registry`` if omitted
            callbacks: ``async def cb(event: str, data: dict)`` lifecycle hooks
            strict_step_ids: Reject chains where two steps share an id instead
                of letting the later step overwrite ``subFn.<id>``
        """
        self.registry = registry
        self.step_executor = step_executor or StepExecutor(registry)
        self.callbacks = callbacks or []
        self.strict_step_ids = strict_step_ids

    def validate_chain(self, steps: list[StepDefinition]) -> None:
        """Check every step's function is registered before anything runs.

        Raises:
            ChainValidationError: with the index of the first offending step.
        """
        for i, step in enumerate(steps):
            if not self.registry.has(step.fn):
                raise ChainValidationError(
                    f'Unknown function "{step.fn}" in chain step {i}',
                    step_index=i,
                    available=self.registry.ids(),
                )

        seen: set[str] = set()
        duplicates: list[str] = []
        for i, step in enumerate(steps):
            if step.step_id in seen:
                if self.strict_step_ids:
                    raise ChainValidationError(
                        f"Duplicate step id \"{step.step_id}\" in chain step {i}",
                        step_index=i,
                    )
                duplicates.append(step.step_id)
            seen.add(step.step_id)
        if duplicates:
            logger.warning(
                "[ChainExecutor] Duplicate step ids %s: later steps overwrite earlier subFn results",
                duplicates,
            )

    async def execute_chain(
        self,
        steps: list[StepDefinition],
        context: Optional[ExecutionContext] = None,
    ) -> ChainResult:
        """Execute ``steps`` in order, threading outputs through ``subFn``.

        The first failing step stops the chain; its index and id are reported
        together with every StepResult produced so far.

        Args:
            steps: Ordered step definitions
            context: Caller scopes (``config``, ``state``); any ``subFnResults``
                it carries are ignored, each chain starts from an empty map.

        Returns:
            ChainResult (success shape or failure shape).
        """
        context = context or ExecutionContext()
        chain_id = str(uuid.uuid4())
        sub_fn_results: dict[str, Any] = {}
        state_updates: dict[str, Any] = {}
        results: list[StepResult] = []

        await self._fire_callbacks("chain_started", {"chain_id": chain_id, "steps": len(steps)})

        for i, step in enumerate(steps):
            step_id = step.step_id
            await self._fire_callbacks("step_started", {
                "chain_id": chain_id, "step_index": i, "step_id": step_id, "fn": step.fn,
            })

            step_context = context.model_copy(update={"sub_fn_results": dict(sub_fn_results)})
            result = await self.step_executor.execute(step.fn, step.inputs, step_context)

            step_result = StepResult(id=step_id, fn=step.fn, **result.model_dump(exclude_unset=True))
            results.append(step_result)

            if not result.success:
                logger.info("[ChainExecutor] Chain %s failed at step %d (%s): %s", chain_id, i, step_id, result.error)
                await self._fire_callbacks("step_failed", {
                    "chain_id": chain_id, "step_index": i, "step_id": step_id, "fn": step.fn,
                    "error": result.error,
                })
                await self._fire_callbacks("chain_failed", {
                    "chain_id": chain_id, "failed_at": i, "failed_step": step_id, "completed": i,
                })
                return ChainResult(
                    success=False,
                    error=result.error,
                    failed_at=i,
                    failed_step=step_id,
                    results=results,
                )

            sub_fn_results[step_id] = result.outputs

            if isinstance(result.outputs, dict):
                for mapping in step.store_results:
                    value = result.outputs.get(mapping.from_, _ABSENT)
                    if value is not _ABSENT:
                        state_updates[mapping.to] = value

            await self._fire_callbacks("step_completed", {
                "chain_id": chain_id, "step_index": i, "step_id": step_id, "fn": step.fn,
                "has_curl": bool(result.curl),
            })

        await self._fire_callbacks("chain_completed", {
            "chain_id": chain_id, "steps": len(results), "state_updates": sorted(state_updates),
        })
        return ChainResult(success=True, results=results, state_updates=state_updates)

    async def _fire_callbacks(self, event: str, data: dict) -> None:
        """Invoke all registered callbacks for a lifecycle event."""
        for cb in self.callbacks:
            try:
                outcome = cb(event, data)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as cb_exc:
                logger.warning(f"[ChainExecutor] Callback error on '{event}': {cb_exc}")
