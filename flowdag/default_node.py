"""A general-purpose node that runs an :class:`Action`."""

from __future__ import annotations

from .action import Action, EmptyAction
from .env import EnvVar
from .ids import NodeTable
from .node import Node
from .output import Output


class DefaultNode(Node):
    """A node whose behaviour is given by an :class:`Action`.

    Without an action it runs :class:`EmptyAction`.
    """

    def __init__(self, name: str, node_table: NodeTable, action: Action | None = None) -> None:
        super().__init__(name, node_table)
        self.action: Action = action if action is not None else EmptyAction()

    @classmethod
    def with_action(cls, name: str, action: Action, node_table: NodeTable) -> DefaultNode:
        """Create a node running *action*."""
        return cls(name, node_table, action)

    def set_action(self, action: Action) -> None:
        """Replace the node's action."""
        self.action = action

    async def run(self, env: EnvVar) -> Output:
        return await self.action.run(self.input_channels, self.output_channels, env)