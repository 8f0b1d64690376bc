"""The interface of task configuration parsers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping

from .action import Action
from .env import EnvVar
from .graph import Graph


class ParseError(Exception):
    """A task configuration could not be parsed."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def load_file(path: str) -> str:
    """Read the configuration file at *path* as text."""
    with open(path, encoding="utf-8") as handle:
        return handle.read()


class Parser(ABC):
    """Turns a configuration into a graph of tasks and its environment.

    *specific_actions* maps task identifiers of the configuration to actions
    that replace whatever the configuration says those tasks do.
    """

    def parse_tasks(
        self, file: str, specific_actions: Mapping[str, Action] | None = None
    ) -> tuple[Graph, EnvVar]:
        """Parse the configuration file at *file*."""
        try:
            content = load_file(file)
        except (OSError, UnicodeDecodeError) as error:
            raise ParseError(str(error)) from error
        return self.parse_tasks_from_str(content, specific_actions or {})

    @abstractmethod
    def parse_tasks_from_str(
        self, content: str, specific_actions: Mapping[str, Action] | None = None
    ) -> tuple[Graph, EnvVar]:
        """Parse a configuration given as text."""