"""A simplified view of a graph used for cycle detection."""

from __future__ import annotations

import logging
from collections import deque

from .ids import NodeId

logger = logging.getLogger(__name__)


class AbstractGraph:
    """Nodes, edges and in-degrees, with loop subgraphs folded into single nodes."""

    def __init__(self) -> None:
        self.in_degree: dict[NodeId, int] = {}
        self.edges: dict[NodeId, set[NodeId]] = {}
        self.folded_nodes: dict[NodeId, NodeId] = {}
        self.unfold_abstract_nodes: dict[NodeId, list[NodeId]] = {}

    def add_node(self, node_id: NodeId) -> None:
        """Add *node_id* unless it is already present."""
        if node_id not in self.in_degree:
            self.in_degree[node_id] = 0
            self.edges[node_id] = set()

    def add_edge(self, from_id: NodeId, to_id: NodeId) -> None:
        """Add an edge, redirecting folded nodes to their abstract node.

        An edge between two nodes folded into the same abstract node is skipped.
        """
        from_abstract = self.get_abstract_node_id(from_id)
        to_abstract = self.get_abstract_node_id(to_id)
        source = from_abstract if from_abstract is not None else from_id
        target = to_abstract if to_abstract is not None else to_id

        if from_abstract is not None and to_abstract is not None and source == target:
            return

        logger.debug("Adding edge from %r to %r", source, target)
        self.edges[source].add(target)
        self.in_degree[target] += 1

    def add_folded_node(self, abstract_id: NodeId, concrete_ids: list[NodeId]) -> None:
        """Add an abstract node standing for *concrete_ids*."""
        self.add_node(abstract_id)
        concrete = list(concrete_ids)
        for concrete_id in concrete:
            self.folded_nodes[concrete_id] = abstract_id
        self.unfold_abstract_nodes[abstract_id] = concrete

    def unfold_node(self, abstract_id: NodeId) -> list[NodeId] | None:
        """The concrete nodes folded into *abstract_id*, or ``None``."""
        return self.unfold_abstract_nodes.get(abstract_id)

    def get_abstract_node_id(self, node_id: NodeId) -> NodeId | None:
        """The abstract node *node_id* is folded into, or ``None``."""
        return self.folded_nodes.get(node_id)

    def size(self) -> int:
        """Number of nodes in the abstract graph."""
        return len(self.in_degree)

    def check_loop(self) -> bool:
        """True if the graph contains a cycle, found by topological sorting."""
        in_degree = dict(self.in_degree)
        queue = deque(node for node, degree in in_degree.items() if degree == 0)
        visited = 0

        while queue:
            node = queue.popleft()
            logger.debug("Visiting node: %r", node)
            visited += 1
            for target in self.edges.get(node, ()):
                in_degree[target] -= 1
                if in_degree[target] == 0:
                    queue.append(target)

        logger.debug("Visited count: %d, Size: %d", visited, self.size())
        return visited != self.size()