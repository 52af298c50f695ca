"""Pydantic models for API request/response bodies."""

from typing import Any, Optional

from pydantic import BaseModel

from oidclab.types import ExecutionContext


# ── Requests ──

class ExecuteRequest(BaseModel):
    inputs: Optional[dict[str, Any]] = None   # may contain {{...}} templates
    context: Optional[ExecutionContext] = None


class ChainRequest(BaseModel):
    chain: Any = None                       # list of steps; checked by parse_chain for a readable 400
    context: Optional[ExecutionContext] = None


# ── Responses ──

class FunctionListResponse(BaseModel):
    functions: list[dict]
    total: int
    filter: Optional[str] = None


class CategoryResponse(BaseModel):
    name: str
    count: int


class CategoryListResponse(BaseModel):
    categories: list[CategoryResponse]


class HealthResponse(BaseModel):
    status: str
    version: str
    functions: int
