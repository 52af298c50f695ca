"""All shared types, enums, and type aliases. Everything imports from here.

Wire names are camelCase (``subFnResults``, ``storeResults``, ``failedAt``...)
because the browser UI speaks JSON; Python attributes stay snake_case through
pydantic aliases, and every model accepts either spelling on input.
"""

from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ── Enums ──────────────────────────────────────────────────────────────

class InputType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    JWK = "jwk"         # JSON Web Key: dict, or a JSON string that parses to one
    ANY = "any"


# ── Function descriptors ───────────────────────────────────────────────

class InputSpec(BaseModel):
    """Declared schema for one function input."""
    model_config = ConfigDict(frozen=True)

    type: InputType = InputType.STRING
    required: bool = False
    default: Any = None
    description: str = ""
    example: Any = None


class OutputSpec(BaseModel):
    """Declared schema for one function output."""
    model_config = ConfigDict(frozen=True)

    type: InputType = InputType.ANY
    description: str = ""


class FunctionDescriptor(BaseModel):
    """Static metadata for a registered sub function.

    The executable lives next to the descriptor in the FunctionRegistry;
    this record is what the API lists and what the validator checks against.
    """
    model_config = ConfigDict(frozen=True)

    id: str                                  # unique registry key, e.g. "tokenExchange"
    name: str                                # human title shown in the UI
    category: str = "general"                # "jwt", "oauth", "http"
    description: str = ""
    inputs: dict[str, InputSpec] = Field(default_factory=dict)
    outputs: dict[str, OutputSpec] = Field(default_factory=dict)

    def metadata(self) -> dict:
        """JSON-ready metadata (everything except the implementation)."""
        return self.model_dump(mode="json")


class FunctionOutput(BaseModel):
    """Explicit return shape for an implementation that also produced a cURL command."""
    outputs: Any = Field(default_factory=dict)
    curl: Optional[str] = None


# ── Execution context ──────────────────────────────────────────────────

class ExecutionContext(BaseModel):
    """Variable scopes visible to ``{{...}}`` expressions.

    ``config`` and ``state`` come from the caller and are never written by the
    engine. ``sub_fn_results`` is rebuilt by the ChainExecutor on every chain.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    config: dict[str, Any] = Field(default_factory=dict)
    state: dict[str, Any] = Field(default_factory=dict)
    sub_fn_results: dict[str, Any] = Field(default_factory=dict, alias="subFnResults")

    @field_validator("config", "state", "sub_fn_results", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value


FunctionImplementation = Callable[
    [dict, ExecutionContext],
    Union[dict, FunctionOutput, None, Awaitable[Union[dict, FunctionOutput, None]]],
]


# ── Chain definitions ──────────────────────────────────────────────────

class StoreMapping(BaseModel):
    """Promote ``outputs[from]`` into the chain's ``stateUpdates[to]``."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    from_: str = Field(alias="from")
    to: str


class StepDefinition(BaseModel):
    """One entry of a chain, as supplied by the caller."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    fn: str
    id: Optional[str] = None
    inputs: dict[str, Any] = Field(default_factory=dict)
    store_results: list[StoreMapping] = Field(default_factory=list, alias="storeResults")

    @field_validator("inputs", "store_results", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any, info) -> Any:
        if value is None:
            return {} if info.field_name == "inputs" else []
        return value

    @property
    def step_id(self) -> str:
        """Key under which this step's outputs land in ``subFnResults``."""
        return self.id if self.id is not None else self.fn


# ── Results ────────────────────────────────────────────────────────────

class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_dict(self) -> dict:
        """Serialize with camelCase keys, omitting fields that were never set."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class FunctionResult(_WireModel):
    """Normalized outcome of a single function execution."""
    success: bool
    outputs: Any = None
    error: Optional[str] = None
    curl: Optional[str] = None


class StepResult(_WireModel):
    """FunctionResult tagged with the step that produced it."""
    id: str
    fn: str
    success: bool
    outputs: Any = None
    error: Optional[str] = None
    curl: Optional[str] = None


class ChainResult(_WireModel):
    """Outcome of a whole chain.

    Success: ``success``, ``results``, ``stateUpdates``.
    Failure: ``success``, ``error``, ``failedAt``, ``failedStep``, ``results``.
    """
    success: bool
    results: list[StepResult] = Field(default_factory=list)
    state_updates: Optional[dict[str, Any]] = Field(default=None, alias="stateUpdates")
    error: Optional[str] = None
    failed_at: Optional[int] = Field(default=None, alias="failedAt")
    failed_step: Optional[str] = Field(default=None, alias="failedStep")
