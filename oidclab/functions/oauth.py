"""Shared pieces of token-endpoint calls (RFC 6749 / 7523 / 8693)."""

import base64
import logging
from typing import Any
from urllib.parse import urlencode

from oidclab.exceptions import FunctionError
from oidclab.functions import transport
from oidclab.functions.curl import build_curl, mask_value

logger = logging.getLogger(__name__)

GRANT_TYPE_TOKEN_EXCHANGE = "urn:ietf:params:oauth:grant-type:token-exchange"
GRANT_TYPE_JWT_BEARER = "urn:ietf:params:oauth:grant-type:jwt-bearer"
CLIENT_ASSERTION_TYPE_JWT_BEARER = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"

TOKEN_TYPE_URNS = {
    "access_token": "urn:ietf:params:oauth:token-type:access_token",
    "id_token": "urn:ietf:params:oauth:token-type:id_token",
    "refresh_token": "urn:ietf:params:oauth:token-type:refresh_token",
}

FORM_HEADERS = {
    "Content-Type": "application/x-www-form-urlencoded",
    "Accept": "application/json",
}


def normalize_token_type(value: str) -> str:
    """Expand shorthand token types to their URN; anything else passes through."""
    return TOKEN_TYPE_URNS.get(value, value)


def apply_client_auth(params: dict, headers: dict, inputs: dict) -> str:
    """Add client authentication to a token request, in place.

    Precedence: client assertion (private_key_jwt), then client id + secret
    (HTTP Basic), then client id alone (public client).

    Returns:
        Short description of the method used, for logs.
    """
    if inputs.get("clientAssertion"):
        params["client_assertion"] = inputs["clientAssertion"]
        params["client_assertion_type"] = CLIENT_ASSERTION_TYPE_JWT_BEARER
        return "private_key_jwt"
    if inputs.get("clientId") and inputs.get("clientSecret"):
        credentials = f"{inputs['clientId']}:{inputs['clientSecret']}".encode()
        headers["Authorization"] = f"Basic {base64.b64encode(credentials).decode()}"
        return "client_secret_basic"
    if inputs.get("clientId"):
        params["client_id"] = inputs["clientId"]
        return "public_client"
    return "none"


def token_request_curl(endpoint: str, params: dict, headers: dict, masked: tuple[str, ...], suffix: str = "...") -> str:
    """cURL for a form-encoded token request with the named params shortened."""
    shown = dict(params)
    for name in masked:
        if shown.get(name):
            shown[name] = mask_value(str(shown[name]), suffix=suffix)
    return build_curl("POST", endpoint, headers, urlencode(shown))


async def post_token_request(
    endpoint: str,
    params: dict,
    headers: dict,
    error_prefix: str,
    fallback: str = "request failed",
) -> dict:
    """POST a form-encoded token request and return the parsed JSON body.

    Raises:
        FunctionError: transport failure, non-JSON body, or a non-2xx status
            (message ``"<error_prefix>: <error_description|error>"``).
    """
    response = await transport.send_request("POST", endpoint, headers=headers, content=urlencode(params))
    try:
        body = response.json()
    except ValueError:
        raise FunctionError(
            f"{error_prefix}: token endpoint returned a non-JSON response (HTTP {response.status_code})"
        )

    if not response.is_success:
        detail = None
        if isinstance(body, dict):
            detail = body.get("error_description") or body.get("error")
        logger.info("[oauth] %s returned HTTP %d", endpoint, response.status_code)
        raise FunctionError(f"{error_prefix}: {detail or fallback}")

    if not isinstance(body, dict):
        raise FunctionError(f"{error_prefix}: token endpoint returned an unexpected body")
    return body


def pick_fields(body: dict[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    """Token response fields that are actually present in ``body``."""
    return {name: body[name] for name in fields if name in body}
