"""cURL renditions of outbound requests, shown to learners next to each result.

Secrets are masked: tokens keep a short prefix, credentials become ``***``.
"""

from typing import Optional

_JOINER = " \\\n  "


def mask_value(value: str, keep: int = 20, suffix: str = "...") -> str:
    """First ``keep`` characters of a token followed by ``suffix``."""
    return f"{value[:keep]}{suffix}"


def mask_authorization(value: str) -> str:
    """Mask an Authorization header value, keeping the scheme."""
    if value.startswith("Bearer "):
        return f"Bearer {mask_value(value[len('Bearer '):])}"
    if value.startswith("Basic "):
        return "Basic ***"
    return "***"


def escape_single_quotes(text: str) -> str:
    return text.replace("'", "'\\''")


def build_curl(
    method: str,
    url: str,
    headers: Optional[dict] = None,
    body: Optional[str] = None,
) -> str:
    """Multi-line ``curl`` command for a request.

    Args:
        method: HTTP method
        url: Target URL
        headers: Header mapping; Authorization is masked
        body: Already-encoded request body (form or JSON text)
    """
    parts = [f"curl -X {method.upper()}", f"'{url}'"]
    for key, value in (headers or {}).items():
        if key.lower() == "authorization":
            parts.append(f"-H 'Authorization: {mask_authorization(str(value))}'")
        else:
            parts.append(f"-H '{key}: {value}'")
    if body:
        parts.append(f"-d '{escape_single_quotes(body)}'")
    return _JOINER.join(parts)
