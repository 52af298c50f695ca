"""oidclab Quickstart: sign a client assertion, then decode it, with no network access.

Run:
    python examples/quickstart/main.py
"""

import asyncio
import json

from cryptography.hazmat.primitives.asymmetric import ec
from jwt.algorithms import ECAlgorithm

from oidclab import ChainExecutor, ExecutionContext, build_default_registry, parse_chain


async def main() -> None:
    private_jwk = json.loads(ECAlgorithm.to_jwk(ec.generate_private_key(ec.SECP256R1())))
    private_jwk["kid"] = "quickstart"

    steps = parse_chain([
        {
            "fn": "createJwtAssertion",
            "id": "clientAuth",
            "inputs": {
                "privateJwk": "{{config.privateJwk}}",
                "issuer": "{{config.clientId}}",
                "subject": "{{config.clientId}}",
                "audience": "{{config.tokenEndpoint}}",
                "expiresIn": "2m",
            },
        },
        {
            "fn": "decodeJwt",
            "inputs": {"token": "{{subFn.clientAuth.assertion}}"},
            "storeResults": [{"from": "payload", "to": "claims"}, {"from": "algorithm", "to": "alg"}],
        },
    ])
    context = ExecutionContext(config={
        "privateJwk": private_jwk,
        "clientId": "quickstart-client",
        "tokenEndpoint": "https://idp.example.com/oauth2/v1/token",
    })

    result = await ChainExecutor(build_default_registry()).execute_chain(steps, context)
    print(json.dumps(result.to_dict()["stateUpdates"], indent=2))


if __name__ == "__main__":
    asyncio.run(main())
