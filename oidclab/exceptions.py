"""Typed exception hierarchy. Every error oidclab can raise."""


class OidcLabError(Exception):
    """Base exception for all oidclab errors."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}


class FunctionError(OidcLabError):
    """A sub function failed while executing."""
    def __init__(self, message: str, function_id: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.function_id = function_id


class FunctionNotFound(FunctionError):
    """Requested function id is not registered."""
    def __init__(self, message: str, function_id: str = "", available: list = None, **kwargs):
        super().__init__(message, function_id=function_id, **kwargs)
        self.available = available or []


class ExpressionError(OidcLabError):
    """A ``{{...}}`` template expression could not be parsed."""
    def __init__(self, message: str, expression: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.expression = expression


class ChainValidationError(OidcLabError):
    """Chain definition is structurally invalid (missing fn, unknown function, duplicate ids)."""
    def __init__(self, message: str, step_index: int = None, available: list = None, **kwargs):
        super().__init__(message, **kwargs)
        self.step_index = step_index
        self.available = available or []
