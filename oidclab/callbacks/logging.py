"""Structured JSON logging callback for chain lifecycle events."""

import json
import logging
from datetime import datetime, timezone

logger = logging.getLogger("oidclab.audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class LoggingCallback:
    """Emits one self-contained JSON line per lifecycle event.

    Each line has ``event`` and ``ts`` plus the event data. Failures are
    logged at WARNING, everything else at INFO.
    Logger name: oidclab.audit (configure in your logging setup)
    """

    _WARNING_EVENTS = frozenset({"step_failed", "chain_failed"})

    async def __call__(self, event: str, data: dict) -> None:
        line = json.dumps({"event": event, "ts": _now(), **{
            k: (str(v)[:200] if not isinstance(v, (int, float, bool, list)) else v)
            for k, v in data.items()
        }})
        if event in self._WARNING_EVENTS:
            logger.warning(line)
        else:
            logger.info(line)
