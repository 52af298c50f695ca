"""RFC 7523 JWT client assertion (private_key_jwt) signing."""

import json
import re
import time
import uuid

import jwt

from oidclab.exceptions import FunctionError
from oidclab.types import ExecutionContext, FunctionDescriptor, InputSpec, InputType, OutputSpec

_EXPIRES_IN_RE = re.compile(r"^(\d+)([smh])$")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600}
_DEFAULT_LIFETIME = 300

DESCRIPTOR = FunctionDescriptor(
    id="createJwtAssertion",
    name="Create JWT Client Assertion",
    category="jwt",
    description=(
        "Creates a signed JWT for client authentication per RFC 7523.\n\n"
        "Signs a short-lived JWT with your private key. The authorization server "
        "verifies it with your public key, so no shared secret ever leaves your side. "
        "Use it when the client is registered for private_key_jwt (M2M apps, "
        "agentic/workload identity, high-security integrations).\n\n"
        "The algorithm follows the key: RSA → RS256, EC P-256 → ES256, "
        "EC P-384 → ES384, OKP Ed25519 → EdDSA. Send the result as client_assertion with "
        "client_assertion_type=urn:ietf:params:oauth:client-assertion-type:jwt-bearer.\n\n"
        "SPECIFICATION: RFC 7523 - JWT Profile for OAuth 2.0 Client Authentication "
        "and Authorization Grants"
    ),
    inputs={
        "privateJwk": InputSpec(
            type=InputType.JWK,
            required=True,
            description='Private key in JWK format; must contain "d". RSA, EC (P-256, P-384) and OKP (Ed25519).',
            example='{"kty":"RSA","kid":"my-key","d":"...","n":"...","e":"AQAB"}',
        ),
        "issuer": InputSpec(
            required=True,
            description='"iss" claim, usually your client id.',
            example="0oa1234567890abcdef",
        ),
        "subject": InputSpec(
            required=True,
            description='"sub" claim, usually the same as issuer for client authentication.',
            example="0oa1234567890abcdef",
        ),
        "audience": InputSpec(
            required=True,
            description='"aud" claim: the token endpoint URL, exactly as the server expects it.',
            example="https://dev-12345.okta.com/oauth2/default/v1/token",
        ),
        "expiresIn": InputSpec(
            default="5m",
            description='Lifetime as <n>s, <n>m or <n>h. Unrecognized values mean 5 minutes.',
            example="5m",
        ),
    },
    outputs={
        "assertion": OutputSpec(type=InputType.STRING, description="The signed JWT."),
        "algorithm": OutputSpec(type=InputType.STRING, description="RS256, ES256, ES384 or EdDSA."),
        "kid": OutputSpec(type=InputType.STRING, description="Key id from the JWK, or null."),
        "expiresAt": OutputSpec(type=InputType.NUMBER, description="Unix timestamp of the exp claim."),
    },
)


def select_algorithm(jwk: dict) -> str:
    """Signing algorithm implied by the key type and curve."""
    kty = jwk.get("kty")
    crv = jwk.get("crv")
    if kty == "RSA":
        return "RS256"
    if kty == "EC":
        if crv == "P-256":
            return "ES256"
        if crv == "P-384":
            return "ES384"
        raise FunctionError(f"Unsupported EC curve: {crv}. Supported: P-256, P-384")
    if kty == "OKP":
        if crv == "Ed25519":
            return "EdDSA"
        raise FunctionError(f"Unsupported OKP curve: {crv}. Supported: Ed25519")
    raise FunctionError(f"Unsupported key type: {kty}. Supported: RSA, EC, OKP")


def parse_lifetime(expires_in: str) -> int:
    """Seconds for "30s" / "5m" / "1h"; anything else is five minutes."""
    m = _EXPIRES_IN_RE.match(str(expires_in or ""))
    if not m:
        return _DEFAULT_LIFETIME
    return int(m.group(1)) * _UNIT_SECONDS[m.group(2)]


async def create_jwt_assertion(inputs: dict, context: ExecutionContext) -> dict:
    raw_jwk = inputs["privateJwk"]
    try:
        jwk = json.loads(raw_jwk) if isinstance(raw_jwk, str) else raw_jwk
    except json.JSONDecodeError:
        raise FunctionError(
            "Invalid JWK: Could not parse as JSON. Ensure your private key is in valid JWK format."
        )
    if not isinstance(jwk, dict):
        raise FunctionError("Invalid JWK: expected a JSON object.")

    if not jwk.get("d"):
        raise FunctionError(
            'Private key required: JWK must contain "d" field. '
            "Public keys can only verify signatures, not create them."
        )

    algorithm = select_algorithm(jwk)

    try:
        signing_key = jwt.PyJWK(jwk, algorithm=algorithm)
    except (jwt.PyJWTError, ValueError, TypeError) as exc:
        raise FunctionError(
            f"Failed to import key: {exc}. Check that your JWK has all required fields for the key type."
        ) from exc

    now = int(time.time())
    expires_at = now + parse_lifetime(inputs.get("expiresIn"))
    claims = {
        "iss": inputs["issuer"],
        "sub": inputs["subject"],
        "aud": inputs["audience"],
        "iat": now,
        "exp": expires_at,
        "jti": str(uuid.uuid4()),
    }
    headers = {"kid": jwk["kid"]} if jwk.get("kid") else None

    assertion = jwt.encode(claims, signing_key.key, algorithm=algorithm, headers=headers)
    return {
        "outputs": {
            "assertion": assertion,
            "algorithm": algorithm,
            "kid": jwk.get("kid"),
            "expiresAt": expires_at,
        }
    }
