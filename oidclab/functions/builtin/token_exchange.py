"""RFC 8693 OAuth 2.0 Token Exchange."""

from oidclab.functions.oauth import (
    FORM_HEADERS,
    GRANT_TYPE_TOKEN_EXCHANGE,
    apply_client_auth,
    normalize_token_type,
    pick_fields,
    post_token_request,
    token_request_curl,
)
from oidclab.types import ExecutionContext, FunctionDescriptor, InputSpec, InputType, OutputSpec

_RESPONSE_FIELDS = (
    "access_token", "token_type", "expires_in", "issued_token_type",
    "scope", "refresh_token", "id_token",
)

DESCRIPTOR = FunctionDescriptor(
    id="tokenExchange",
    name="Token Exchange",
    category="oauth",
    description=(
        "Exchanges one token for another per RFC 8693.\n\n"
        "Sends the subject token to the token endpoint together with the type of token "
        "you want back. Used for impersonation, delegation to a downstream service, "
        "token type conversion (e.g. access token to ID-JAG) and cross-domain exchange.\n\n"
        "Shorthand token types access_token, id_token and refresh_token are expanded to "
        "urn:ietf:params:oauth:token-type:* URNs. Authenticate with a client assertion, "
        "client id + secret (HTTP Basic), or client id alone for public clients.\n\n"
        "SPECIFICATION: RFC 8693 - OAuth 2.0 Token Exchange"
    ),
    inputs={
        "tokenEndpoint": InputSpec(
            required=True,
            description="Token endpoint URL the exchange request is sent to.",
            example="https://dev-12345.okta.com/oauth2/v1/token",
        ),
        "subjectToken": InputSpec(
            required=True,
            description="The token to exchange.",
            example="eyJhbGciOiJSUzI1NiIsInR5cCI6IkpXVCJ9...",
        ),
        "subjectTokenType": InputSpec(
            required=True,
            description='Type of the subject token: "access_token", "id_token", "refresh_token" or a full URN.',
            example="access_token",
        ),
        "requestedTokenType": InputSpec(
            required=True,
            description="Type of token to receive, shorthand or full URN.",
            example="urn:ietf:params:oauth:token-type:id-jag",
        ),
        "clientAssertion": InputSpec(description="JWT client assertion (private_key_jwt). Use this OR clientId/clientSecret."),
        "clientId": InputSpec(description="Client ID for Basic Auth, or alone for a public client."),
        "clientSecret": InputSpec(description="Client secret for Basic Auth."),
        "scope": InputSpec(description="Requested scopes, space-separated.", example="openid profile"),
        "audience": InputSpec(description="Intended audience of the new token.", example="api://my-api"),
        "actorToken": InputSpec(description="Token representing the acting party (delegation)."),
        "actorTokenType": InputSpec(description="Type of the actor token.", example="access_token"),
    },
    outputs={
        "access_token": OutputSpec(type=InputType.STRING, description="The issued token."),
        "token_type": OutputSpec(type=InputType.STRING, description='Usually "Bearer" or "N_A".'),
        "expires_in": OutputSpec(type=InputType.NUMBER, description="Seconds until the new token expires."),
        "issued_token_type": OutputSpec(type=InputType.STRING, description="Actual type of the issued token."),
        "scope": OutputSpec(type=InputType.STRING, description="Scopes granted."),
        "refresh_token": OutputSpec(type=InputType.STRING, description="Refresh token, if issued."),
        "id_token": OutputSpec(type=InputType.STRING, description="ID token, if issued."),
    },
)


async def token_exchange(inputs: dict, context: ExecutionContext) -> dict:
    params = {
        "grant_type": GRANT_TYPE_TOKEN_EXCHANGE,
        "subject_token": inputs["subjectToken"],
        "subject_token_type": normalize_token_type(inputs["subjectTokenType"]),
        "requested_token_type": normalize_token_type(inputs["requestedTokenType"]),
    }
    if inputs.get("scope"):
        params["scope"] = inputs["scope"]
    if inputs.get("audience"):
        params["audience"] = inputs["audience"]
    if inputs.get("actorToken"):
        params["actor_token"] = inputs["actorToken"]
        params["actor_token_type"] = normalize_token_type(inputs.get("actorTokenType") or "access_token")

    headers = dict(FORM_HEADERS)
    apply_client_auth(params, headers, inputs)

    curl = token_request_curl(
        inputs["tokenEndpoint"], params, headers,
        masked=("subject_token", "actor_token", "client_assertion"),
    )
    body = await post_token_request(
        inputs["tokenEndpoint"], params, headers,
        error_prefix="Token Exchange Error", fallback="Token exchange failed",
    )
    return {"outputs": pick_fields(body, _RESPONSE_FIELDS), "curl": curl}
