"""Execution logic that a node runs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from .env import EnvVar
from .in_channel import InChannels, TypedInChannels
from .out_channel import OutChannels, TypedOutChannels
from .output import Output


class Action(ABC):
    """The specific behaviour of a node."""

    @abstractmethod
    async def run(
        self, in_channels: InChannels, out_channels: OutChannels, env: EnvVar
    ) -> Output:
        """Run the action with the node's channels and the graph's environment."""


class EmptyAction(Action):
    """An action that does nothing and produces an empty output."""

    async def run(
        self, in_channels: InChannels, out_channels: OutChannels, env: EnvVar
    ) -> Output:
        return Output.empty()


class TypedAction(Action):
    """An action that works on typed channel views.

    Subclasses set ``input_kind`` and ``output_kind`` and implement
    :meth:`run_typed`.
    """

    input_kind: ClassVar[type[Any]] = object
    output_kind: ClassVar[type[Any]] = object

    def make_typed_in_channels(self, in_channels: InChannels) -> TypedInChannels[Any]:
        """A typed view of *in_channels* expecting ``input_kind``."""
        return TypedInChannels(in_channels, self.input_kind)

    def make_typed_out_channels(self, out_channels: OutChannels) -> TypedOutChannels[Any]:
        """A typed view of *out_channels* sending ``output_kind``."""
        return TypedOutChannels(out_channels, self.output_kind)

    async def run(
        self, in_channels: InChannels, out_channels: OutChannels, env: EnvVar
    ) -> Output:
        return await self.run_typed(
            self.make_typed_in_channels(in_channels),
            self.make_typed_out_channels(out_channels),
            env,
        )

    @abstractmethod
    async def run_typed(
        self,
        in_channels: TypedInChannels[Any],
        out_channels: TypedOutChannels[Any],
        env: EnvVar,
    ) -> Output:
        """Run the action with typed channel views."""