"""A node that folds a group of looping nodes into one."""

from __future__ import annotations

from .env import EnvVar
from .ids import NodeTable
from .node import Node
from .output import Output


class LoopSubgraph(Node):
    """A set of nodes that may form a cycle, placed in a graph as a single node.

    The parent graph connects and runs the inner nodes; the subgraph itself is
    never run.
    """

    def __init__(self, name: str, node_table: NodeTable) -> None:
        super().__init__(name, node_table)
        self._inner_nodes: list[Node] = []

    def add_node(self, node: Node) -> None:
        """Add *node* to the subgraph."""
        self._inner_nodes.append(node)

    def loop_structure(self) -> list[Node]:
        return list(self._inner_nodes)

    async def run(self, env: EnvVar) -> Output:
        raise RuntimeError(
            "Loop subgraph is not executed directly, it will be executed by the parent graph."
        )