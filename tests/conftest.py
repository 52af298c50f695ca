"""Test fixtures: stub functions, registries, contexts.

All tests should use these fixtures for consistency.
"""

import pytest

from oidclab.exceptions import FunctionError
from oidclab.functions.registry import FunctionRegistry, build_default_registry
from oidclab.types import ExecutionContext, FunctionDescriptor, InputSpec, InputType


ECHO = FunctionDescriptor(
    id="echo",
    name="Echo",
    category="test",
    description="Returns its input v as out.",
    inputs={"v": InputSpec(required=True)},
)

FAIL = FunctionDescriptor(
    id="fail",
    name="Fail",
    category="test",
    description="Always raises FunctionError.",
    inputs={"reason": InputSpec(default="boom")},
)

NEEDS_FOO = FunctionDescriptor(
    id="needsFoo",
    name="Needs foo",
    category="test",
    description="Requires input foo.",
    inputs={
        "foo": InputSpec(required=True),
        "key": InputSpec(type=InputType.JWK),
    },
)


class Recorder:
    """Stub implementation that remembers every call it receives."""

    def __init__(self, outputs=None):
        self.calls = []
        self.outputs = outputs if outputs is not None else {"ok": True}

    async def __call__(self, inputs, context):
        self.calls.append((inputs, context))
        return {"outputs": self.outputs}

    @property
    def called(self) -> bool:
        return bool(self.calls)


async def echo(inputs, context):
    return {"outputs": {"out": inputs["v"]}, "curl": f"echo {inputs['v']}"}


async def fail(inputs, context):
    raise FunctionError(f"Stub failure: {inputs['reason']}")


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def registry(recorder):
    """echo / fail / needsFoo (the last backed by a Recorder)."""
    reg = FunctionRegistry()
    reg.register(ECHO, echo)
    reg.register(FAIL, fail)
    reg.register(NEEDS_FOO, recorder)
    return reg


@pytest.fixture
def builtin_registry():
    return build_default_registry()


@pytest.fixture
def context():
    return ExecutionContext(
        config={
            "tokenEndpoint": "https://idp.example.com/oauth2/v1/token",
            "clientId": "client-123",
            "answer": 42,
            "jwk": {"kty": "RSA", "kid": "k1"},
            "scopes": ["openid", "profile"],
            "empty": "",
            "nested": {"deep": {"value": "found"}},
        },
        state={"accessToken": "at-abc", "zero": 0},
    )
