"""oidclab lifecycle callbacks: observability hooks for the chain executor.

Usage:
    from oidclab.callbacks import LoggingCallback
    executor = ChainExecutor(registry, callbacks=[LoggingCallback()])
"""

from oidclab.callbacks.base import ChainCallback
from oidclab.callbacks.logging import LoggingCallback

__all__ = ["ChainCallback", "LoggingCallback"]
