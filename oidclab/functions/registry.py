"""Central registry of all available sub functions."""

from typing import Optional

from oidclab.exceptions import FunctionNotFound, OidcLabError
from oidclab.types import FunctionDescriptor, FunctionImplementation


class FunctionRegistry:
    """Maps function id to (descriptor, implementation).

    Built once at process start and handed to the executors; read-only after
    that, so concurrent chains can share it without locking.
    """

    def __init__(self):
        self._descriptors: dict[str, FunctionDescriptor] = {}
        self._implementations: dict[str, FunctionImplementation] = {}

    def register(self, descriptor: FunctionDescriptor, implementation: FunctionImplementation) -> None:
        """Register a function with its descriptor and implementation.

        Args:
            descriptor: Function metadata and input/output schema
            implementation: Callable ``(inputs, context)``; may be async

        Raises:
            OidcLabError: if the id is already registered
        """
        if descriptor.id in self._descriptors:
            raise OidcLabError(f"Sub function '{descriptor.id}' is already registered")
        self._descriptors[descriptor.id] = descriptor
        self._implementations[descriptor.id] = implementation

    def get(self, function_id: str) -> tuple[FunctionDescriptor, FunctionImplementation]:
        """Get descriptor and implementation.

        Raises:
            FunctionNotFound: if the id is not registered
        """
        if function_id not in self._descriptors:
            raise FunctionNotFound(
                f"Unknown sub function: {function_id}. Available: {', '.join(self.ids())}",
                function_id=function_id,
                available=self.ids(),
            )
        return self._descriptors[function_id], self._implementations[function_id]

    def has(self, function_id: str) -> bool:
        return function_id in self._descriptors

    def ids(self) -> list[str]:
        """Registered ids in registration order."""
        return list(self._descriptors)

    def list_functions(self, category: Optional[str] = None) -> list[FunctionDescriptor]:
        """List descriptors, optionally filtered by category."""
        return [d for d in self._descriptors.values() if not category or d.category == category]

    def get_categories(self) -> list[dict]:
        """Unique categories with their function counts, in first-seen order."""
        counts: dict[str, int] = {}
        for descriptor in self._descriptors.values():
            counts[descriptor.category] = counts.get(descriptor.category, 0) + 1
        return [{"name": name, "count": count} for name, count in counts.items()]

    def __len__(self) -> int:
        return len(self._descriptors)


def build_default_registry() -> FunctionRegistry:
    """Registry holding every built-in protocol function."""
    from oidclab.functions.builtin import register_builtin_functions

    registry = FunctionRegistry()
    register_builtin_functions(registry)
    return registry
