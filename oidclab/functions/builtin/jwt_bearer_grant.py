"""RFC 7523 JWT bearer authorization grant."""

from oidclab.functions.oauth import (
    FORM_HEADERS,
    GRANT_TYPE_JWT_BEARER,
    apply_client_auth,
    pick_fields,
    post_token_request,
    token_request_curl,
)
from oidclab.types import ExecutionContext, FunctionDescriptor, InputSpec, InputType, OutputSpec

_RESPONSE_FIELDS = ("access_token", "token_type", "expires_in", "scope", "id_token", "refresh_token")

DESCRIPTOR = FunctionDescriptor(
    id="jwtBearerGrant",
    name="JWT Bearer Grant",
    category="oauth",
    description=(
        "Uses a JWT assertion as an authorization grant per RFC 7523.\n\n"
        "The assertion (for example an ID-JAG from a token exchange) is the grant itself: "
        "it proves permission to act for its subject. Client authentication is separate "
        "and optional: a client assertion, client id + secret, or a bare client id.\n\n"
        "Client assertion = who the client is. JWT bearer grant = what it may do.\n\n"
        "SPECIFICATION: RFC 7523 - JWT Profile for OAuth 2.0 Authorization Grants"
    ),
    inputs={
        "tokenEndpoint": InputSpec(
            required=True,
            description="The OAuth token endpoint URL.",
            example="https://dev-12345.okta.com/oauth2/default/v1/token",
        ),
        "assertion": InputSpec(
            required=True,
            description="The JWT used as the authorization grant.",
            example="eyJhbGciOiJSUzI1NiIsInR5cCI6IkpXVCJ9...",
        ),
        "scope": InputSpec(description="Requested scopes, space-separated.", example="openid profile email"),
        "clientAssertion": InputSpec(description="Separate JWT for client authentication (private_key_jwt)."),
        "clientId": InputSpec(description="Client ID. Required if not using a client assertion."),
        "clientSecret": InputSpec(description="Client secret for Basic Auth."),
    },
    outputs={
        "access_token": OutputSpec(type=InputType.STRING, description="Access token obtained from the grant."),
        "token_type": OutputSpec(type=InputType.STRING, description='Usually "Bearer".'),
        "expires_in": OutputSpec(type=InputType.NUMBER, description="Seconds until the access token expires."),
        "scope": OutputSpec(type=InputType.STRING, description="Scopes granted."),
        "id_token": OutputSpec(type=InputType.STRING, description="ID token, if openid was requested."),
        "refresh_token": OutputSpec(type=InputType.STRING, description="Refresh token, if issued."),
    },
)


async def jwt_bearer_grant(inputs: dict, context: ExecutionContext) -> dict:
    params = {
        "grant_type": GRANT_TYPE_JWT_BEARER,
        "assertion": inputs["assertion"],
    }
    if inputs.get("scope"):
        params["scope"] = inputs["scope"]

    headers = dict(FORM_HEADERS)
    apply_client_auth(params, headers, inputs)

    curl = token_request_curl(
        inputs["tokenEndpoint"], params, headers,
        masked=("assertion", "client_assertion"), suffix="...[JWT]",
    )
    body = await post_token_request(
        inputs["tokenEndpoint"], params, headers,
        error_prefix="JWT Bearer Grant Error", fallback="JWT Bearer Grant failed",
    )
    return {"outputs": pick_fields(body, _RESPONSE_FIELDS), "curl": curl}
