"""/functions: discovery, single execution and chain execution of sub functions."""

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from oidclab.api.schemas import CategoryListResponse, ChainRequest, ExecuteRequest, FunctionListResponse
from oidclab.engine.chain import parse_chain
from oidclab.exceptions import ChainValidationError

logger = logging.getLogger(__name__)
router = APIRouter(tags=["functions"])


def _internal_error(what: str, exc: Exception) -> JSONResponse:
    logger.error(f"[functions] {what} failed: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": f"Failed to {what}", "message": str(exc)},
    )


@router.get("/functions", response_model=FunctionListResponse)
async def list_functions(request: Request, category: Optional[str] = None):
    """List registered functions, optionally filtered by category."""
    registry = request.app.state.registry
    functions = [d.metadata() for d in registry.list_functions(category)]
    return FunctionListResponse(functions=functions, total=len(functions), filter=category)


# Declared before /functions/{function_id} so "categories" is not taken for an id
@router.get("/functions/categories", response_model=CategoryListResponse)
async def list_categories(request: Request):
    """Categories with function counts."""
    return {"categories": request.app.state.registry.get_categories()}


@router.get("/functions/{function_id}")
async def get_function(function_id: str, request: Request):
    """Full metadata for one function."""
    registry = request.app.state.registry
    if not registry.has(function_id):
        return JSONResponse(
            status_code=404,
            content={
                "error": f"Function not found: {function_id}",
                "id": function_id,
                "available": registry.ids(),
            },
        )
    descriptor, _ = registry.get(function_id)
    return descriptor.metadata()


@router.post("/functions/chain")
async def execute_chain(body: ChainRequest, request: Request):
    """Run a chain of functions, threading outputs between steps.

    400 when the chain is malformed or names an unknown function (nothing
    runs), 200 on success, 400 with the partial results when a step fails.
    """
    chain_executor = request.app.state.chain_executor
    try:
        steps = parse_chain(body.chain)
        chain_executor.validate_chain(steps)
    except ChainValidationError as exc:
        content = {"success": False, "error": str(exc), "stepIndex": exc.step_index}
        if exc.available:
            content["available"] = exc.available
        return JSONResponse(status_code=400, content=content)

    try:
        result = await chain_executor.execute_chain(steps, body.context)
    except Exception as exc:
        return _internal_error("execute chain", exc)
    return JSONResponse(status_code=200 if result.success else 400, content=result.to_dict())


@router.post("/functions/{function_id}/execute")
async def execute_function(function_id: str, body: ExecuteRequest, request: Request):
    """Execute one function with the given inputs and context."""
    registry = request.app.state.registry
    if not registry.has(function_id):
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "error": f"Function not found: {function_id}",
                "available": registry.ids(),
            },
        )

    try:
        result = await request.app.state.step_executor.execute(function_id, body.inputs or {}, body.context)
    except Exception as exc:
        return _internal_error("execute function", exc)
    return JSONResponse(status_code=200 if result.success else 400, content=result.to_dict())
