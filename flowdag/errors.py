"""Errors raised when running a graph."""

from __future__ import annotations

from collections.abc import Iterable


class GraphError(Exception):
    """Base class of all graph execution errors."""


class GraphLoopDetected(GraphError):
    """The graph contains a cycle."""

    def __init__(self) -> None:
        super().__init__("GraphLoopDetected")


class GraphNotActive(GraphError):
    """The graph has already run and cannot be started again."""

    def __init__(self) -> None:
        super().__init__("GraphNotActive")


class ExecutionFailed(GraphError):
    """A node returned an error output."""

    def __init__(self, node_name: str, node_id: int, error: str) -> None:
        self.node_name = node_name
        self.node_id = node_id
        self.error = error
        super().__init__(
            f"ExecutionFailed(node_name={node_name!r}, node_id={node_id}, error={error!r})"
        )


class PanicOccurred(GraphError):
    """A node raised an exception while running."""

    def __init__(self, node_name: str, node_id: int) -> None:
        self.node_name = node_name
        self.node_id = node_id
        super().__init__(f"PanicOccurred(node_name={node_name!r}, node_id={node_id})")


class MultipleErrors(GraphError):
    """Several nodes failed during one run."""

    def __init__(self, errors: Iterable[GraphError]) -> None:
        self.errors = list(errors)
        inner = ", ".join(str(error) for error in self.errors)
        super().__init__(f"MultipleErrors([{inner}])")

    def __len__(self) -> int:
        return len(self.errors)