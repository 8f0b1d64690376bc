"""Per-node execution state recorded while a graph runs."""

from __future__ import annotations

import threading

from .content import Content
from .output import Output


class ExecState:
    """Thread-safe record of a node's success flag and output."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._success = False
        self._output = Output.empty()

    @property
    def success(self) -> bool:
        """Whether the node finished successfully."""
        with self._lock:
            return self._success

    def set_output(self, output: Output) -> None:
        """Store the node's output and mark it as succeeded."""
        with self._lock:
            self._success = True
            self._output = output

    def get_output(self) -> Content | None:
        """The content of a normal output, otherwise ``None``."""
        with self._lock:
            return self._output.get_out()

    def get_full_output(self) -> Output:
        """The stored output as is."""
        with self._lock:
            return self._output

    def exe_success(self) -> None:
        """Mark the node as succeeded."""
        with self._lock:
            self._success = True

    def exe_fail(self) -> None:
        """Mark the node as failed."""
        with self._lock:
            self._success = False