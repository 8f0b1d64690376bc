"""Global variables shared by all nodes of one graph."""

from __future__ import annotations

from typing import Any, TypeVar

from .content import Content
from .ids import NodeId, NodeTable

T = TypeVar("T")

NODE_TABLE_KEY = "node_table"


class EnvVar:
    """Named variables visible to every node, always including the node table."""

    def __init__(self, node_table: NodeTable) -> None:
        self._variables: dict[str, Content] = {}
        self.set(NODE_TABLE_KEY, node_table)

    def set(self, name: str, value: Any) -> None:
        """Set the variable *name* to *value*."""
        self._variables[name] = Content(value)

    def get(self, name: str, kind: type[T] = object) -> T | None:  # type: ignore[assignment]
        """The variable *name* if it exists and is an instance of *kind*, else ``None``."""
        content = self._variables.get(name)
        if content is None:
            return None
        return content.get(kind)

    def get_node_id(self, node_name: str) -> NodeId | None:
        """Look up a node's id by its name in the node table."""
        table = self.get(NODE_TABLE_KEY, NodeTable)
        if table is None:
            raise KeyError(f"environment has no node table under {NODE_TABLE_KEY!r}")
        return table.get(node_name)

    def __contains__(self, name: object) -> bool:
        return name in self._variables

    def __copy__(self) -> EnvVar:
        clone = EnvVar.__new__(EnvVar)
        clone._variables = dict(self._variables)
        return clone