"""Node identifiers and the table mapping node names to them."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Iterator

logger = logging.getLogger(__name__)

_counter = itertools.count(1)
_counter_lock = threading.Lock()


@dataclass(frozen=True, order=True)
class NodeId:
    """Globally unique identifier of a node."""

    value: int

    def __repr__(self) -> str:
        return f"NodeId({self.value})"


def alloc_id() -> NodeId:
    """Allocate a fresh, process-wide unique :class:`NodeId`."""
    with _counter_lock:
        return NodeId(next(_counter))


class NodeTable:
    """Mapping from node names to their identifiers."""

    def __init__(self) -> None:
        self._ids: dict[str, NodeId] = {}

    def alloc_id_for(self, name: str) -> NodeId:
        """Allocate a new id for *name*; an earlier entry of the same name is replaced."""
        node_id = alloc_id()
        logger.debug("alloc id %r for %r", node_id, name)
        previous = self._ids.get(name)
        if previous is not None:
            logger.warning("Node %s is already allocated with id %r.", name, previous)
        self._ids[name] = node_id
        return node_id

    def get(self, name: str) -> NodeId | None:
        """The id registered for *name*, or ``None``."""
        return self._ids.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)