"""Nodes whose result decides whether the graph goes on."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .env import EnvVar
from .ids import NodeTable
from .in_channel import InChannels
from .node import Node
from .out_channel import OutChannels
from .output import Output


class Condition(ABC):
    """Condition logic evaluated by a :class:`ConditionalNode`."""

    @abstractmethod
    async def run(
        self, in_channels: InChannels, out_channels: OutChannels, env: EnvVar
    ) -> bool:
        """Return True if execution should go on past this node."""


class ConditionalNode(Node):
    """A node that evaluates a :class:`Condition`.

    When the condition does not hold, the graph stops after this node's block.
    """

    def __init__(self, name: str, condition: Condition, node_table: NodeTable) -> None:
        super().__init__(name, node_table)
        self.condition = condition

    async def run(self, env: EnvVar) -> Output:
        result = await self.condition.run(self.input_channels, self.output_channels, env)
        return Output.condition(result)

    def is_condition(self) -> bool:
        return True