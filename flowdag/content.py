"""Information packets exchanged between nodes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Content:
    """An immutable container that carries an arbitrary value between nodes."""

    value: Any

    def get(self, kind: type[T]) -> T | None:
        """Return the carried value if it is an instance of *kind*, else ``None``."""
        if isinstance(self.value, kind):
            return self.value
        return None