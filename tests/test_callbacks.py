"""Tests for the audit LoggingCallback and its wiring into chains."""

import json
import logging

import pytest

from oidclab.callbacks import ChainCallback, LoggingCallback
from oidclab.engine.chain import ChainExecutor, parse_chain


def _audit_lines(caplog) -> list[dict]:
    return [json.loads(r.getMessage()) for r in caplog.records if r.name == "oidclab.audit"]


class TestLoggingCallback:

    def test_is_a_chain_callback(self):
        assert isinstance(LoggingCallback(), ChainCallback)

    @pytest.mark.asyncio
    async def test_json_line_per_event(self, caplog):
        with caplog.at_level(logging.INFO, logger="oidclab.audit"):
            await LoggingCallback()("step_started", {"step_index": 0, "step_id": "s1", "fn": "echo"})
        (line,) = _audit_lines(caplog)
        assert line["event"] == "step_started"
        assert line["step_index"] == 0
        assert line["step_id"] == "s1"
        assert line["ts"].endswith("Z")

    @pytest.mark.asyncio
    async def test_long_values_truncated(self, caplog):
        with caplog.at_level(logging.INFO, logger="oidclab.audit"):
            await LoggingCallback()("step_failed", {"error": "x" * 500})
        (line,) = _audit_lines(caplog)
        assert len(line["error"]) == 200
        assert caplog.records[0].levelno == logging.WARNING

    @pytest.mark.asyncio
    async def test_chain_audit_trail(self, registry, caplog):
        steps = parse_chain([{"fn": "echo", "id": "s1", "inputs": {"v": "secret-value"}}])
        with caplog.at_level(logging.INFO, logger="oidclab.audit"):
            await ChainExecutor(registry, callbacks=[LoggingCallback()]).execute_chain(steps)
        events = [line["event"] for line in _audit_lines(caplog)]
        assert events == ["chain_started", "step_started", "step_completed", "chain_completed"]
        assert "secret-value" not in caplog.text
