"""Generic HTTP request with a cURL rendition of what was sent."""

import json
from typing import Any
from urllib.parse import urlencode

import httpx
import jmespath
from jmespath.exceptions import JMESPathError

from oidclab.engine.inputs import coerce_json
from oidclab.exceptions import FunctionError
from oidclab.functions import transport
from oidclab.functions.curl import build_curl
from oidclab.types import ExecutionContext, FunctionDescriptor, InputSpec, InputType, OutputSpec

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"

DESCRIPTOR = FunctionDescriptor(
    id="httpRequest",
    name="HTTP Request",
    category="http",
    description=(
        "Makes a generic HTTP request with configurable method, headers, and body.\n\n"
        "A flexible building block for calling a protected API with an access token, "
        "sending OAuth requests no other function covers, or poking at any endpoint. "
        "Every request comes back with the equivalent cURL command so you can see "
        "exactly what went over the wire and reproduce it by hand.\n\n"
        "The body is JSON-encoded unless contentType is application/x-www-form-urlencoded. "
        "bearerToken is shorthand for an Authorization: Bearer header. Non-2xx responses "
        "are returned (ok=false), not raised."
    ),
    inputs={
        "url": InputSpec(required=True, description="The URL to send the request to.", example="https://api.example.com/users/me"),
        "method": InputSpec(default="GET", description="HTTP method: GET, POST, PUT, PATCH, DELETE, ...", example="POST"),
        "headers": InputSpec(
            type=InputType.OBJECT,
            description="Custom headers as key-value pairs (object or JSON text).",
            example='{"Accept": "application/json"}',
        ),
        "bearerToken": InputSpec(
            description='Added as "Authorization: Bearer <token>".',
            example="eyJhbGciOiJSUzI1NiIsInR5cCI6IkpXVCJ9...",
        ),
        "body": InputSpec(
            type=InputType.ANY,
            description="Request body. Objects are JSON- or form-encoded per contentType; text is sent as is.",
            example='{"name": "John", "email": "john@example.com"}',
        ),
        "contentType": InputSpec(
            default=JSON_CONTENT_TYPE,
            description=f'Content-Type for the body; "{FORM_CONTENT_TYPE}" for form data.',
            example=JSON_CONTENT_TYPE,
        ),
        "timeout": InputSpec(type=InputType.NUMBER, default=30000, description="Request timeout in milliseconds.", example=30000),
        "responsePath": InputSpec(
            description="JMESPath expression evaluated against the parsed response body; result in extracted.",
            example="data[0].id",
        ),
    },
    outputs={
        "status": OutputSpec(type=InputType.NUMBER, description="HTTP status code."),
        "statusText": OutputSpec(type=InputType.STRING, description="HTTP reason phrase."),
        "ok": OutputSpec(type=InputType.BOOLEAN, description="True for 2xx."),
        "headers": OutputSpec(type=InputType.OBJECT, description="Response headers, lower-cased names."),
        "body": OutputSpec(type=InputType.ANY, description="Parsed JSON when the response is JSON, text otherwise."),
        "extracted": OutputSpec(type=InputType.ANY, description="Value selected by responsePath."),
    },
)


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def encode_body(body: Any, content_type: str) -> str:
    """Encode a body for the wire according to its content type."""
    if content_type == FORM_CONTENT_TYPE:
        fields = coerce_json(body)
        if not isinstance(fields, dict):
            raise FunctionError("Form-encoded body must be an object of field names to values")
        return urlencode({key: _form_value(value) for key, value in fields.items()})
    if isinstance(body, str):
        return body
    return json.dumps(body, separators=(",", ":"))


def parse_body(response: httpx.Response) -> Any:
    if "application/json" in response.headers.get("content-type", ""):
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


async def http_request(inputs: dict, context: ExecutionContext) -> dict:
    method = str(inputs.get("method") or "GET").upper()
    url = inputs["url"]

    headers = {"Accept": JSON_CONTENT_TYPE}
    custom = coerce_json(inputs["headers"]) if inputs.get("headers") else {}
    headers.update({str(k): str(v) for k, v in custom.items()})
    if inputs.get("bearerToken"):
        headers["Authorization"] = f"Bearer {inputs['bearerToken']}"

    content = None
    body = inputs.get("body")
    if body is not None and body != "":
        content_type = inputs.get("contentType") or JSON_CONTENT_TYPE
        headers["Content-Type"] = content_type
        content = encode_body(body, content_type)

    curl = build_curl(method, url, headers, content)

    timeout_ms = float(inputs.get("timeout") or 30000)
    response = await transport.send_request(
        method, url, headers=headers, content=content, timeout_seconds=timeout_ms / 1000,
    )

    outputs = {
        "status": response.status_code,
        "statusText": response.reason_phrase,
        "ok": response.is_success,
        "headers": dict(response.headers),
        "body": parse_body(response),
    }
    if inputs.get("responsePath"):
        try:
            outputs["extracted"] = jmespath.search(inputs["responsePath"], outputs["body"])
        except JMESPathError as exc:
            raise FunctionError(f"Invalid responsePath '{inputs['responsePath']}': {exc}") from exc
    return {"outputs": outputs, "curl": curl}
