"""RFC 7519 JWT inspection without signature verification."""

import time
from datetime import datetime, timezone
from typing import Any, Optional

import jwt

from oidclab.engine.inputs import coerce_bool
from oidclab.exceptions import FunctionError
from oidclab.types import ExecutionContext, FunctionDescriptor, InputSpec, InputType, OutputSpec

UNVERIFIED_WARNING = (
    "This JWT was DECODED only, NOT VALIDATED. "
    "Do not trust the claims without signature verification."
)

DESCRIPTOR = FunctionDescriptor(
    id="decodeJwt",
    name="Decode JWT",
    category="jwt",
    description=(
        "Decodes a JWT to inspect its contents without validation.\n\n"
        "Splits the token into header.payload.signature and decodes the base64url "
        "header and payload. The signature is NOT checked: anyone can mint a JWT with "
        "any claims, so use this for debugging and learning, never for access control.\n\n"
        "Header: alg, kid, typ. Payload: iss, sub, aud, exp, iat, nbf plus custom claims.\n\n"
        "SPECIFICATION: RFC 7519 - JSON Web Token (JWT)"
    ),
    inputs={
        "token": InputSpec(
            required=True,
            description="The JWT to decode: three base64url parts separated by dots.",
            example="eyJhbGciOiJSUzI1NiIsInR5cCI6IkpXVCJ9.eyJzdWIiOiIxMjM0NTY3ODkwIn0.signature",
        ),
        "checkExpiration": InputSpec(
            type=InputType.BOOLEAN,
            default=True,
            description="Compare the exp claim with the current time and report isExpired.",
            example=True,
        ),
    },
    outputs={
        "header": OutputSpec(type=InputType.OBJECT, description="Decoded JOSE header."),
        "payload": OutputSpec(type=InputType.OBJECT, description="Decoded claims."),
        "signature": OutputSpec(type=InputType.STRING, description="Raw base64url signature, not decoded."),
        "isExpired": OutputSpec(type=InputType.BOOLEAN, description="Whether exp is in the past; null without exp."),
        "expiresAt": OutputSpec(type=InputType.STRING, description="exp as ISO-8601."),
        "issuedAt": OutputSpec(type=InputType.STRING, description="iat as ISO-8601."),
        "notBefore": OutputSpec(type=InputType.STRING, description="nbf as ISO-8601."),
        "issuer": OutputSpec(type=InputType.STRING, description='The "iss" claim.'),
        "subject": OutputSpec(type=InputType.STRING, description='The "sub" claim.'),
        "audience": OutputSpec(type=InputType.ANY, description='The "aud" claim.'),
        "algorithm": OutputSpec(type=InputType.STRING, description='The "alg" header.'),
        "keyId": OutputSpec(type=InputType.STRING, description='The "kid" header.'),
    },
)


def to_iso(timestamp: Any) -> Optional[str]:
    """Unix seconds as ``2024-01-01T00:00:00.000Z``; None for non-numeric values."""
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        return None
    try:
        moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


async def decode_jwt(inputs: dict, context: ExecutionContext) -> dict:
    token = str(inputs["token"]).strip()
    parts = token.split(".")
    if len(parts) != 3:
        raise FunctionError(
            f"Invalid JWT format: Expected 3 parts separated by dots, got {len(parts)}. "
            "A valid JWT looks like: xxxxx.yyyyy.zzzzz"
        )

    try:
        header = jwt.get_unverified_header(token)
    except jwt.PyJWTError as exc:
        raise FunctionError(
            f"Failed to decode JWT header: {exc}. The header is not valid base64url-encoded JSON."
        ) from exc

    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as exc:
        raise FunctionError(
            f"Failed to decode JWT payload: {exc}. The payload is not valid base64url-encoded JSON."
        ) from exc

    is_expired = None
    exp = payload.get("exp")
    if coerce_bool(inputs.get("checkExpiration"), default=True) and to_iso(exp) is not None:
        is_expired = int(time.time()) > exp

    return {
        "outputs": {
            "header": header,
            "payload": payload,
            "signature": parts[2],
            "isExpired": is_expired,
            "expiresAt": to_iso(exp),
            "issuedAt": to_iso(payload.get("iat")),
            "notBefore": to_iso(payload.get("nbf")),
            "issuer": payload.get("iss") or None,
            "subject": payload.get("sub") or None,
            "audience": payload.get("aud") or None,
            "algorithm": header.get("alg") or None,
            "keyId": header.get("kid") or None,
            "_warning": UNVERIFIED_WARNING,
        }
    }
