"""The basic scheduling unit of a graph."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .env import EnvVar
from .ids import NodeId, NodeTable
from .in_channel import InChannels
from .out_channel import OutChannels
from .output import Output


class Node(ABC):
    """A named unit of work with input and output channels.

    The id is allocated from *node_table* when the node is created, so the
    node can later be found by name through the table.
    """

    def __init__(self, name: str, node_table: NodeTable) -> None:
        self.id: NodeId = node_table.alloc_id_for(name)
        self.name = name
        self.input_channels = InChannels()
        self.output_channels = OutChannels()

    @abstractmethod
    async def run(self, env: EnvVar) -> Output:
        """Execute one run of this node."""

    def is_condition(self) -> bool:
        """True if this node is a conditional node."""
        return False

    def loop_structure(self) -> list[Node] | None:
        """The nodes forming this node's loop structure, or ``None`` if it has none."""
        return None

    def has_typed_input(self) -> bool:
        """True if this node receives typed content."""
        return False

    def has_typed_output(self) -> bool:
        """True if this node sends typed content."""
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, id={self.id!r})"