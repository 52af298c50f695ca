"""Application configuration. All env vars defined here with defaults."""

import logging

from pydantic_settings import BaseSettings


class OidcLabConfig(BaseSettings):
    # ── App ──
    app_name: str = "oidclab"
    debug: bool = False
    log_level: str = "INFO"

    # ── Server ──
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["http://localhost:3000"]
    api_prefix: str = ""                     # e.g. "/api" to mount under a sub-path

    # ── Outbound HTTP (token endpoints, httpRequest) ──
    http_timeout_seconds: float = 30.0

    # ── Chain engine ──
    strict_step_ids: bool = False            # reject chains that reuse a step id
    audit_log: bool = True                   # JSON lifecycle lines on the oidclab.audit logger

    model_config = {"env_prefix": "OIDCLAB_", "env_file": ".env", "extra": "ignore"}


config = OidcLabConfig()


def configure_logging(level: str = None) -> None:
    """Root logging setup for the API server and the CLI."""
    logging.basicConfig(
        level=(level or config.log_level).upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
