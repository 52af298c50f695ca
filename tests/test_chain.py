"""Tests for ChainExecutor: threading, short-circuit, storeResults, validation, callbacks."""

import logging

import pytest

from oidclab.engine.chain import ChainExecutor, parse_chain
from oidclab.exceptions import ChainValidationError, FunctionError
from oidclab.functions.registry import FunctionRegistry
from oidclab.types import ExecutionContext, FunctionDescriptor, StepDefinition

from conftest import Recorder


def _steps(*raw) -> list[StepDefinition]:
    return parse_chain(list(raw))


# ── parse_chain ───────────────────────────────────────────────────────────────

class TestParseChain:

    def test_parses_wire_shape(self):
        steps = _steps({"fn": "echo", "id": "s1", "inputs": {"v": 1}, "storeResults": [{"from": "out", "to": "x"}]})
        assert steps[0].fn == "echo"
        assert steps[0].step_id == "s1"
        assert steps[0].store_results[0].from_ == "out"

    def test_step_id_defaults_to_fn(self):
        assert _steps({"fn": "echo"})[0].step_id == "echo"

    def test_null_inputs_and_store_results(self):
        step = _steps({"fn": "echo", "inputs": None, "storeResults": None})[0]
        assert step.inputs == {}
        assert step.store_results == []

    def test_not_a_list(self):
        with pytest.raises(ChainValidationError) as exc_info:
            parse_chain({"fn": "echo"})
        assert str(exc_info.value) == 'Request body must include "chain" array'

    def test_missing_fn(self):
        with pytest.raises(ChainValidationError) as exc_info:
            parse_chain([{"fn": "echo"}, {"id": "x"}])
        assert exc_info.value.step_index == 1
        assert str(exc_info.value) == 'Chain step 1 missing "fn" (function ID)'

    def test_invalid_shape(self):
        with pytest.raises(ChainValidationError) as exc_info:
            parse_chain([{"fn": "echo", "storeResults": [{"to": "x"}]}])
        assert exc_info.value.step_index == 0
        assert str(exc_info.value).startswith("Chain step 0 is invalid:")


# ── execute_chain ─────────────────────────────────────────────────────────────

class TestExecuteChain:

    @pytest.mark.asyncio
    async def test_echo_end_to_end(self, registry):
        steps = _steps(
            {"fn": "echo", "id": "s1", "inputs": {"v": "hello"}},
            {"fn": "echo", "id": "s2", "inputs": {"v": "{{subFn.s1.out}}-world"},
             "storeResults": [{"from": "out", "to": "final"}]},
        )
        result = await ChainExecutor(registry).execute_chain(steps, ExecutionContext())
        assert result.success is True
        assert result.state_updates == {"final": "hello-world"}
        assert [r.id for r in result.results] == ["s1", "s2"]
        assert result.results[1].outputs == {"out": "hello-world"}
        assert result.results[1].curl == "echo hello-world"

    @pytest.mark.asyncio
    async def test_sub_fn_addressing(self):
        registry = FunctionRegistry()
        first = Recorder(outputs={"token": "xyz"})
        second = Recorder()
        registry.register(FunctionDescriptor(id="issue", name="issue"), first)
        registry.register(FunctionDescriptor(id="use", name="use"), second)

        steps = _steps(
            {"fn": "issue", "id": "a"},
            {"fn": "use", "inputs": {"t": "{{subFn.a.token}}"}},
        )
        result = await ChainExecutor(registry).execute_chain(steps)
        assert result.success is True
        inputs, context = second.calls[0]
        assert inputs == {"t": "xyz"}
        assert context.sub_fn_results == {"a": {"token": "xyz"}}

    @pytest.mark.asyncio
    async def test_short_circuit(self):
        registry = FunctionRegistry()
        third = Recorder()

        async def failing(inputs, context):
            raise FunctionError("Token Exchange Error: invalid_grant")

        registry.register(FunctionDescriptor(id="ok", name="ok"), Recorder())
        registry.register(FunctionDescriptor(id="bad", name="bad"), failing)
        registry.register(FunctionDescriptor(id="never", name="never"), third)

        steps = _steps({"fn": "ok"}, {"fn": "bad", "id": "exchange"}, {"fn": "never"})
        result = await ChainExecutor(registry).execute_chain(steps)

        assert result.success is False
        assert len(result.results) == 2
        assert result.failed_at == 1
        assert result.failed_step == "exchange"
        assert result.error == "Token Exchange Error: invalid_grant"
        assert result.results[0].success is True
        assert result.results[1].success is False
        assert not third.called

    @pytest.mark.asyncio
    async def test_failure_wire_shape(self, registry):
        result = await ChainExecutor(registry).execute_chain(_steps({"fn": "fail"}))
        body = result.to_dict()
        assert body == {
            "success": False,
            "error": "Stub failure: boom",
            "failedAt": 0,
            "failedStep": "fail",
            "results": [{"id": "fail", "fn": "fail", "success": False, "error": "Stub failure: boom"}],
        }

    @pytest.mark.asyncio
    async def test_success_wire_shape(self, registry):
        result = await ChainExecutor(registry).execute_chain(_steps({"fn": "echo", "inputs": {"v": "x"}}))
        body = result.to_dict()
        assert set(body) == {"success", "results", "stateUpdates"}
        assert body["stateUpdates"] == {}

    @pytest.mark.asyncio
    async def test_store_results_mapping(self):
        registry = FunctionRegistry()
        registry.register(
            FunctionDescriptor(id="token", name="token"),
            Recorder(outputs={"access_token": "tok1", "other": "ignored"}),
        )
        steps = _steps({"fn": "token", "storeResults": [
            {"from": "access_token", "to": "sessionToken"},
            {"from": "refresh_token", "to": "refresh"},
        ]})
        result = await ChainExecutor(registry).execute_chain(steps)
        assert result.state_updates == {"sessionToken": "tok1"}

    @pytest.mark.asyncio
    async def test_store_results_keeps_falsy_values(self):
        registry = FunctionRegistry()
        registry.register(FunctionDescriptor(id="f", name="f"), Recorder(outputs={"n": 0, "none": None}))
        steps = _steps({"fn": "f", "storeResults": [{"from": "n", "to": "n"}, {"from": "none", "to": "none"}]})
        result = await ChainExecutor(registry).execute_chain(steps)
        assert result.state_updates == {"n": 0, "none": None}

    @pytest.mark.asyncio
    async def test_state_and_config_visible_to_steps(self, registry, context):
        steps = _steps({"fn": "echo", "inputs": {"v": "{{config.clientId}}/{{state.accessToken}}"}})
        result = await ChainExecutor(registry).execute_chain(steps, context)
        assert result.results[0].outputs == {"out": "client-123/at-abc"}

    @pytest.mark.asyncio
    async def test_unicode_digit_index_left_unresolved(self, registry):
        context = ExecutionContext(config={"items": ["a"]})
        steps = _steps({"fn": "echo", "inputs": {"v": "{{config.items.\u00b2}}"}})
        result = await ChainExecutor(registry).execute_chain(steps, context)
        assert result.success is True
        assert result.results[0].outputs == {"out": "{{config.items.\u00b2}}"}

    @pytest.mark.asyncio
    async def test_caller_sub_fn_results_ignored(self, registry):
        context = ExecutionContext(sub_fn_results={"s0": {"out": "stale"}})
        steps = _steps({"fn": "echo", "inputs": {"v": "{{subFn.s0.out}}"}})
        result = await ChainExecutor(registry).execute_chain(steps, context)
        assert result.results[0].outputs == {"out": "{{subFn.s0.out}}"}

    @pytest.mark.asyncio
    async def test_duplicate_ids_overwrite(self, registry):
        steps = _steps(
            {"fn": "echo", "inputs": {"v": "one"}},
            {"fn": "echo", "inputs": {"v": "{{subFn.echo.out}}-two"}},
            {"fn": "echo", "inputs": {"v": "{{subFn.echo.out}}"}},
        )
        result = await ChainExecutor(registry).execute_chain(steps)
        assert result.results[2].outputs == {"out": "one-two"}

    @pytest.mark.asyncio
    async def test_empty_chain(self, registry):
        result = await ChainExecutor(registry).execute_chain([])
        assert result.success is True
        assert result.results == []
        assert result.state_updates == {}


# ── validate_chain ────────────────────────────────────────────────────────────

class TestValidateChain:

    def test_unknown_function(self, registry):
        with pytest.raises(ChainValidationError) as exc_info:
            ChainExecutor(registry).validate_chain(_steps({"fn": "echo"}, {"fn": "missing"}))
        assert exc_info.value.step_index == 1
        assert str(exc_info.value) == 'Unknown function "missing" in chain step 1'
        assert exc_info.value.available == ["echo", "fail", "needsFoo"]

    def test_duplicate_ids_warn(self, registry, caplog):
        with caplog.at_level(logging.WARNING, logger="oidclab.engine.chain"):
            ChainExecutor(registry).validate_chain(_steps({"fn": "echo"}, {"fn": "echo"}))
        assert "Duplicate step ids" in caplog.text

    def test_duplicate_ids_strict(self, registry):
        executor = ChainExecutor(registry, strict_step_ids=True)
        with pytest.raises(ChainValidationError) as exc_info:
            executor.validate_chain(_steps({"fn": "echo", "id": "a"}, {"fn": "fail", "id": "a"}))
        assert exc_info.value.step_index == 1


# ── Callbacks ─────────────────────────────────────────────────────────────────

class TestCallbacks:

    @pytest.mark.asyncio
    async def test_lifecycle_events(self, registry):
        events = []

        async def cb(event, data):
            events.append(event)

        steps = _steps({"fn": "echo", "inputs": {"v": 1}}, {"fn": "fail"})
        await ChainExecutor(registry, callbacks=[cb]).execute_chain(steps)
        assert events == [
            "chain_started",
            "step_started", "step_completed",
            "step_started", "step_failed",
            "chain_failed",
        ]

    @pytest.mark.asyncio
    async def test_callback_errors_are_swallowed(self, registry):
        def broken(event, data):
            raise RuntimeError("callback down")

        result = await ChainExecutor(registry, callbacks=[broken]).execute_chain(
            _steps({"fn": "echo", "inputs": {"v": "x"}})
        )
        assert result.success is True
