"""Parser for task graphs described in YAML.

The configuration starts with ``dagrs:`` and maps task identifiers to
entries with a ``name``, an optional ``after`` list of predecessor
identifiers, and a ``cmd`` to run::

    dagrs:
      a:
        name: "Task 1"
        after: [b]
        cmd: echo a
      b:
        name: "Task 2"
        cmd: echo b
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from typing import Any

import yaml

from .action import Action
from .command_action import CommandAction
from .env import EnvVar
from .graph import Graph
from .ids import NodeId, NodeTable
from .node import Node
from .output import Output
from .parser import ParseError, Parser, load_file


class YamlTaskError(ParseError):
    """A task entry of the configuration is invalid."""


class StartWordError(YamlTaskError):
    """The configuration does not start with ``dagrs``."""

    def __init__(self) -> None:
        super().__init__("File content is not start with 'dagrs'.")


class NoNameAttr(YamlTaskError):
    """A task has no name."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task has no name field. [{task_id}]")


class NotFoundPrecursor(YamlTaskError):
    """A task names a predecessor that does not exist."""

    def __init__(self, task_name: str) -> None:
        self.task_name = task_name
        super().__init__(f"Task cannot find the specified predecessor. [{task_name}]")


class NoScriptAttr(YamlTaskError):
    """A task has neither a command nor a specific action."""

    def __init__(self, task_name: str) -> None:
        self.task_name = task_name
        super().__init__(f"The 'script' attribute is not defined. [{task_name}]")


class FileContentError(ParseError):
    """The configuration file content is unusable."""


class IllegalYamlContent(FileContentError):
    """The content is not valid YAML."""

    def __init__(self, error: Exception) -> None:
        self.error = error
        super().__init__(f"Illegal yaml content: {error}")


class EmptyFile(FileContentError):
    """The configuration file is empty."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"File is empty! [{path}]")


class FileNotFound(ParseError):
    """The configuration file could not be read."""

    def __init__(self, error: OSError) -> None:
        self.error = error
        super().__init__(f"File not found. [{error}]")


class YamlTask(Node):
    """A node built from one task entry of a YAML configuration."""

    def __init__(
        self,
        yaml_id: str,
        precursors: Sequence[str],
        name: str,
        action: Action,
        node_table: NodeTable,
    ) -> None:
        super().__init__(name, node_table)
        self.yaml_id = yaml_id
        self.precursors = list(precursors)
        self.precursor_ids: list[NodeId] = []
        self.action = action

    def init_precursors(self, precursor_ids: Sequence[NodeId]) -> None:
        """Record the node ids of this task's predecessors."""
        self.precursor_ids = list(precursor_ids)

    async def run(self, env: EnvVar) -> Output:
        return await self.action.run(self.input_channels, self.output_channels, env)


class YamlParser(Parser):
    """The default parser of YAML task configurations."""

    def parse_tasks(
        self, file: str, specific_actions: Mapping[str, Action] | None = None
    ) -> tuple[Graph, EnvVar]:
        try:
            content = load_file(file)
        except OSError as error:
            raise FileNotFound(error) from error
        except UnicodeDecodeError as error:
            raise ParseError(str(error)) from error
        return self.parse_tasks_from_str(content, specific_actions)

    def parse_tasks_from_str(
        self, content: str, specific_actions: Mapping[str, Action] | None = None
    ) -> tuple[Graph, EnvVar]:
        actions = dict(specific_actions or {})
        node_table = NodeTable()

        try:
            documents = list(yaml.safe_load_all(content))
        except yaml.YAMLError as error:
            raise IllegalYamlContent(error) from error
        if not documents:
            raise ParseError("No Tasks found")

        root = documents[0]
        entries = root.get("dagrs") if isinstance(root, dict) else None
        if not isinstance(entries, dict):
            raise StartWordError()

        tasks: list[YamlTask] = []
        ids: dict[str, NodeId] = {}
        for task_id, entry in entries.items():
            if not isinstance(task_id, str):
                raise ParseError("Invalid YAML Node Type")
            task = self._parse_one(task_id, entry, actions.pop(task_id, None), node_table)
            ids[task_id] = task.id
            tasks.append(task)

        edges: dict[NodeId, list[NodeId]] = {}
        for task in tasks:
            precursor_ids = []
            for precursor in task.precursors:
                if precursor not in ids:
                    raise NotFoundPrecursor(task.name)
                precursor_ids.append(ids[precursor])
            for precursor_id in precursor_ids:
                edges.setdefault(precursor_id, []).append(task.id)
            task.init_precursors(precursor_ids)

        graph = Graph()
        for task in tasks:
            graph.add_node(task)
        for source, targets in edges.items():
            graph.add_edge(source, targets)

        env = EnvVar(node_table)
        graph.set_env(copy.copy(env))
        return graph, env

    def _parse_one(
        self,
        task_id: str,
        entry: Any,
        action: Action | None,
        node_table: NodeTable,
    ) -> YamlTask:
        fields = entry if isinstance(entry, dict) else {}

        name = fields.get("name")
        if not isinstance(name, str):
            raise NoNameAttr(task_id)

        precursors: list[str] = []
        after = fields.get("after")
        if isinstance(after, list):
            for precursor in after:
                if not isinstance(precursor, str):
                    raise ParseError(f"Invalid precursor of task [{task_id}]")
                precursors.append(precursor)

        if action is None:
            cmd = fields.get("cmd")
            if not isinstance(cmd, str):
                raise NoScriptAttr(name)
            program, *args = cmd.split(" ")
            action = CommandAction(program, args)

        return YamlTask(task_id, precursors, name, action, node_table)