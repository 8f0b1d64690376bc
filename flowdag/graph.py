"""The graph that connects nodes and runs them concurrently."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TypeVar

from .abstract_graph import AbstractGraph
from .env import EnvVar
from .errors import (
    ExecutionFailed,
    GraphError,
    GraphLoopDetected,
    GraphNotActive,
    MultipleErrors,
    PanicOccurred,
)
from .execstate import ExecState
from .ids import NodeId, NodeTable
from .node import Node
from .out_channel import channel
from .output import Output

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass
class _RunState:
    condition_met: bool = True
    errors: list[GraphError] = field(default_factory=list)


class Graph:
    """A flow-based network of nodes with dependencies, run asynchronously.

    Nodes are connected by channels created by :meth:`add_edge`. The graph is
    split into blocks at conditional nodes and loop subgraphs; a condition that
    does not hold cancels every later block. After a run the graph is inactive
    until :meth:`reset` is called.
    """

    def __init__(self) -> None:
        self.nodes: dict[NodeId, Node] = {}
        self.execute_states: dict[NodeId, ExecState] = {}
        self.node_count = 0
        self.env = EnvVar(NodeTable())
        self.is_active = True
        self.in_degree: dict[NodeId, int] = {}
        self.blocks: list[set[NodeId]] = []
        self.abstract_graph = AbstractGraph()

    def reset(self) -> None:
        """Reset the run state of the graph but keep its nodes and edges."""
        self.execute_states = {}
        self.env = EnvVar(NodeTable())
        self.is_active = True
        self.blocks.clear()

    def add_node(self, node: Node) -> None:
        """Add *node*; a loop subgraph is unfolded into its inner nodes."""
        inner_nodes = node.loop_structure()
        if inner_nodes is not None:
            logger.debug("Add node %r to abstract graph", node.id)
            self.abstract_graph.add_folded_node(node.id, [inner.id for inner in inner_nodes])
            for inner in inner_nodes:
                logger.debug("Add node %r to concrete graph", inner.id)
                self.nodes[inner.id] = inner
        else:
            self.node_count += 1
            self.nodes[node.id] = node
            self.in_degree[node.id] = 0
            self.abstract_graph.add_node(node.id)
            logger.debug("Add node %r to concrete & abstract graph", node.id)

    def add_edge(self, from_id: NodeId, to_ids: Iterable[NodeId]) -> None:
        """Connect *from_id* to each of *to_ids*; existing edges are left as they are."""
        targets = list(dict.fromkeys(to_ids))
        from_node = self.nodes[from_id]
        receivers = {}

        for to_id in targets:
            if to_id in from_node.output_channels:
                continue
            sender, receiver = channel()
            from_node.output_channels.insert(to_id, sender)
            receivers[to_id] = receiver
            if to_id in self.in_degree:
                self.in_degree[to_id] += 1
            else:
                self.in_degree[to_id] = 0
            self.abstract_graph.add_edge(from_id, to_id)

        for to_id, receiver in receivers.items():
            to_node = self.nodes.get(to_id)
            if to_node is not None:
                to_node.input_channels.insert(from_id, receiver)

    def _init(self) -> None:
        for node_id in self.nodes:
            self.execute_states[node_id] = ExecState()

    def start(self) -> None:
        """Run the graph to completion in a new event loop.

        Raises :class:`GraphError` if the graph has a cycle, has already run,
        or if any node fails.
        """
        asyncio.run(self.start_async())

    async def start_async(self) -> None:
        """Run the graph inside the current event loop."""
        self._init()
        if self.check_loop_and_partition():
            raise GraphLoopDetected()
        if not self.is_active:
            raise GraphNotActive()
        await self._run()

    async def _run_node(self, node: Node, state: ExecState, run_state: _RunState) -> None:
        node_name = node.name
        node_id = node.id.value
        try:
            out = await node.run(self.env)
        except Exception:
            node.input_channels.close_all()
            node.output_channels.close_all()
            logger.exception("Execution failed [name: %s, id: %s]", node_name, node_id)
            run_state.errors.append(PanicOccurred(node_name, node_id))
            return

        if out.is_err():
            error = out.get_err() or ""
            logger.error(
                "Execution failed [name: %s, id: %s] - %s", node_name, node_id, error
            )
            state.set_output(out)
            state.exe_fail()
            run_state.errors.append(ExecutionFailed(node_name, node_id, error))
            return

        if out.conditional_result() is False:
            run_state.condition_met = False
            logger.info(
                "Condition failed on [name: %s, id: %s]. The rest nodes will abort.",
                node_name,
                node_id,
            )
        state.set_output(out)
        state.exe_success()
        logger.debug("Execution succeed [name: %s, id: %s]", node_name, node_id)

    async def _run(self) -> None:
        run_state = _RunState()
        chunks = [
            [
                asyncio.create_task(
                    self._run_node(self.nodes[node_id], self.execute_states[node_id], run_state)
                )
                for node_id in block
            ]
            for block in self.blocks
        ]

        for tasks in chunks:
            if not run_state.condition_met:
                for task in tasks:
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        self.is_active = False

        if len(run_state.errors) == 1:
            raise run_state.errors[0]
        if run_state.errors:
            raise MultipleErrors(run_state.errors)

    def check_loop_and_partition(self) -> bool:
        """Split the graph into blocks and return True if it contains a cycle.

        A new block starts after every conditional node, and every loop
        subgraph forms a block of its own.
        """
        has_cycle = self.abstract_graph.check_loop()
        current: set[NodeId] = set()

        for node_id in self.abstract_graph.in_degree:
            unfolded = self.abstract_graph.unfold_node(node_id)
            if unfolded is not None:
                if current:
                    self.blocks.append(current)
                self.blocks.append(set(unfolded))
                current = set()
            else:
                current.add(node_id)
                if self.nodes[node_id].is_condition():
                    self.blocks.append(current)
                    current = set()

        if current:
            self.blocks.append(current)

        logger.debug("Split the graph into blocks: %r", self.blocks)
        return has_cycle

    def get_results(self, kind: type[T]) -> dict[NodeId, T | None]:
        """The output value of every node if it is an instance of *kind*, else ``None``."""
        results: dict[NodeId, T | None] = {}
        for node_id, state in self.execute_states.items():
            content = state.get_output()
            results[node_id] = None if content is None else content.get(kind)
        return results

    def get_outputs(self) -> dict[NodeId, Output]:
        """The full output of every node."""
        return {node_id: state.get_full_output() for node_id, state in self.execute_states.items()}

    def set_env(self, env: EnvVar) -> None:
        """Set the environment shared by all nodes; call before starting."""
        self.env = env