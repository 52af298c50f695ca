"""Orchestrates: lookup → resolve templates → validate → execute → normalize.

The last stop before a sub function actually runs. Every outcome, including
an exception raised by the function, comes back as a FunctionResult.
"""

import inspect
import logging
from typing import Any, Optional

from oidclab.engine.inputs import apply_defaults, resolve_inputs, validate_inputs
from oidclab.exceptions import ExpressionError, FunctionError, FunctionNotFound
from oidclab.functions.registry import FunctionRegistry
from oidclab.types import ExecutionContext, FunctionOutput, FunctionResult

logger = logging.getLogger(__name__)


def _normalize(raw: Any) -> FunctionResult:
    """Accept ``FunctionOutput``, ``{"outputs": ..., "curl": ...}`` or bare outputs."""
    if isinstance(raw, FunctionOutput):
        return FunctionResult(success=True, outputs=raw.outputs, curl=raw.curl)
    if isinstance(raw, dict) and "outputs" in raw:
        return FunctionResult(success=True, outputs=raw["outputs"], curl=raw.get("curl"))
    if raw is None:
        return FunctionResult(success=True, outputs={}, curl=None)
    return FunctionResult(success=True, outputs=raw, curl=None)


class StepExecutor:
    """Validates and executes a single registered function."""

    def __init__(self, registry: FunctionRegistry):
        self.registry = registry

    async def execute(
        self,
        function_id: str,
        raw_inputs: Optional[dict] = None,
        context: Optional[ExecutionContext] = None,
    ) -> FunctionResult:
        """Execute one function call.

        Steps:
        1. Get descriptor + implementation from the registry
        2. Resolve ``{{...}}`` templates in the inputs
        3. Fill declared defaults and validate (no call on any error)
        4. Invoke the implementation
        5. Normalize its return value

        Args:
            function_id: Registered function id, e.g. "tokenExchange"
            raw_inputs: Inputs that may still contain templates
            context: Scopes for template resolution; also passed to the function

        Returns:
            FunctionResult; ``success`` is False for every kind of failure.
        """
        context = context or ExecutionContext()

        # Step 1: Resolve function from registry
        try:
            descriptor, implementation = self.registry.get(function_id)
        except FunctionNotFound as exc:
            logger.warning("[StepExecutor] %s", exc)
            return FunctionResult(success=False, error=str(exc))

        # Step 2: Resolve templates against config/state/subFn/env
        try:
            resolved = resolve_inputs(raw_inputs or {}, context)
        except ExpressionError as exc:
            logger.warning("[StepExecutor] Bad expression for '%s': %s", function_id, exc)
            return FunctionResult(success=False, error=f"Validation failed: {exc}")
        except Exception as exc:
            logger.error("[StepExecutor] Input resolution error in '%s': %s", function_id, exc, exc_info=True)
            return FunctionResult(success=False, error=f"Validation failed: {exc}")

        # Step 3: Defaults + schema validation, fail fast before any network call
        resolved = apply_defaults(descriptor, resolved)
        errors = validate_inputs(descriptor, resolved)
        if errors:
            logger.info("[StepExecutor] Validation failed for '%s': %s", function_id, errors)
            return FunctionResult(success=False, error=f"Validation failed: {'; '.join(errors)}")

        # Step 4: Execute
        try:
            raw = implementation(resolved, context)
            if inspect.isawaitable(raw):
                raw = await raw
        except FunctionError as fe:
            # Surface the function's own message (e.g. "Token Exchange Error: invalid_grant")
            logger.warning("[StepExecutor] FunctionError in '%s': %s", function_id, fe)
            return FunctionResult(success=False, error=str(fe))
        except Exception as exc:
            logger.error("[StepExecutor] Execution error in '%s': %s", function_id, exc, exc_info=True)
            return FunctionResult(success=False, error=str(exc) or exc.__class__.__name__)

        # Step 5: Normalize
        return _normalize(raw)
