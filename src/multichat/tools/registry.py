"""Operation namespace: the per-backend collection of registered operations."""

import logging
from typing import Optional

from multichat.platforms.exceptions import DuplicateOperationError
from multichat.tools.base import Operation

logger = logging.getLogger(__name__)


class OperationNamespace:
    """Registry of the operations one backend exposes.

    Names are unique; a collision is a configuration error reported at
    registration time, never at dispatch time.
    """

    def __init__(self, owner: Optional[str] = None):
        """Initialize the namespace.

        Args:
            owner: Name of the backend filling this namespace (for logging)
        """
        self._owner = owner
        self._operations: dict[str, Operation] = {}

    @property
    def owner(self) -> Optional[str]:
        """Backend that owns this namespace."""
        return self._owner

    def register(self, operation: Operation) -> None:
        """Register an operation.

        Args:
            operation: Operation to register

        Raises:
            DuplicateOperationError: If the name is already registered
        """
        if operation.name in self._operations:
            raise DuplicateOperationError(
                f"Operation '{operation.name}' is already registered"
                + (f" for {self._owner}" if self._owner else "")
            )

        self._operations[operation.name] = operation
        logger.debug(f"Registered operation: {operation.name}")

    def get(self, name: str) -> Optional[Operation]:
        """Get an operation by exact name.

        Returns:
            Operation or None if not found
        """
        return self._operations.get(name)

    def list_operations(self) -> list[Operation]:
        """Get all registered operations in registration order."""
        return list(self._operations.values())

    def list_operation_names(self) -> list[str]:
        """Get all registered operation names."""
        return list(self._operations.keys())

    def get_tool_definitions(self) -> list[dict]:
        """Get MCP tool definitions for all registered operations."""
        return [operation.get_tool_definition() for operation in self._operations.values()]

    def __len__(self) -> int:
        """Get number of registered operations."""
        return len(self._operations)

    def __contains__(self, name: str) -> bool:
        """Check if an operation is registered."""
        return name in self._operations

    def __str__(self) -> str:
        """String representation."""
        return f"OperationNamespace({len(self._operations)} operations)"

    def __repr__(self) -> str:
        """Representation."""
        names = ", ".join(self._operations.keys())
        return f"<OperationNamespace owner={self._owner} operations=[{names}]>"
