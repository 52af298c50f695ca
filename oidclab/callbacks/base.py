"""Callback protocol for chain lifecycle hooks.

The ChainExecutor calls every registered callback as ``cb(event, data)`` and
awaits the result when it is awaitable. Events:

    chain_started    {chain_id, steps}
    step_started     {chain_id, step_index, step_id, fn}
    step_completed   {chain_id, step_index, step_id, fn, has_curl}
    step_failed      {chain_id, step_index, step_id, fn, error}
    chain_completed  {chain_id, steps, state_updates}
    chain_failed     {chain_id, failed_at, failed_step, completed}

``data`` never carries inputs or outputs, so callbacks cannot leak tokens or keys.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ChainCallback(Protocol):
    """Anything callable as ``async def cb(event: str, data: dict)``."""

    async def __call__(self, event: str, data: dict[str, Any]) -> None:
        ...
