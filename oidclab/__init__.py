"""oidclab: OAuth 2.0 / OpenID Connect learning tool built on chainable sub functions.

Usage:
    from oidclab import ChainExecutor, build_default_registry

    registry = build_default_registry()
    result = await ChainExecutor(registry).execute_chain(steps, context)
"""

from oidclab.types import (
    InputType, InputSpec, OutputSpec, FunctionDescriptor, FunctionOutput,
    ExecutionContext, StoreMapping, StepDefinition,
    FunctionResult, StepResult, ChainResult,
)
from oidclab.exceptions import (
    OidcLabError, FunctionError, FunctionNotFound, ExpressionError, ChainValidationError,
)
from oidclab.functions.registry import FunctionRegistry, build_default_registry
from oidclab.engine.executor import StepExecutor
from oidclab.engine.chain import ChainExecutor, parse_chain
from oidclab.version import __version__

__all__ = [
    "InputType", "InputSpec", "OutputSpec", "FunctionDescriptor", "FunctionOutput",
    "ExecutionContext", "StoreMapping", "StepDefinition",
    "FunctionResult", "StepResult", "ChainResult",
    "OidcLabError", "FunctionError", "FunctionNotFound", "ExpressionError", "ChainValidationError",
    "FunctionRegistry", "build_default_registry",
    "StepExecutor", "ChainExecutor", "parse_chain",
    "__version__",
]
