"""Built-in protocol functions. Register them all with register_builtin_functions()."""

from oidclab.functions.builtin import (
    create_jwt_assertion,
    decode_jwt,
    http_request,
    jwt_bearer_grant,
    token_exchange,
)

BUILTIN_FUNCTIONS = (
    (create_jwt_assertion.DESCRIPTOR, create_jwt_assertion.create_jwt_assertion),
    (decode_jwt.DESCRIPTOR, decode_jwt.decode_jwt),
    (http_request.DESCRIPTOR, http_request.http_request),
    (jwt_bearer_grant.DESCRIPTOR, jwt_bearer_grant.jwt_bearer_grant),
    (token_exchange.DESCRIPTOR, token_exchange.token_exchange),
)


def register_builtin_functions(registry) -> None:
    for descriptor, implementation in BUILTIN_FUNCTIONS:
        registry.register(descriptor, implementation)


__all__ = ["BUILTIN_FUNCTIONS", "register_builtin_functions"]
