"""Sending ends of the channels that connect nodes."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator, Mapping
from typing import Any, Generic, TypeVar

from .content import Content
from .ids import NodeId
from .in_channel import DEFAULT_CAPACITY, InChannel, Pipe

T = TypeVar("T")


class SendError(Exception):
    """Base class of errors raised when sending on a channel."""


class UnknownReceiver(SendError):
    """There is no channel to the requested node."""

    def __init__(self, node_id: NodeId) -> None:
        self.node_id = node_id
        super().__init__(f"no output channel to {node_id!r}")


class ReceiverClosed(SendError):
    """The channel is closed; the undelivered content is kept on the error."""

    def __init__(self, content: Content) -> None:
        self.content = content
        super().__init__("channel is closed")


def channel(capacity: int = DEFAULT_CAPACITY) -> tuple[OutChannel, InChannel]:
    """Create a connected sender and receiver pair."""
    pipe = Pipe(capacity)
    return OutChannel(pipe), InChannel(pipe)


class OutChannel:
    """The sending end of a :class:`Pipe`."""

    def __init__(self, pipe: Pipe) -> None:
        self._pipe = pipe

    async def send(self, content: Content) -> None:
        """Send *content*, waiting while the channel is full."""
        try:
            await self._pipe._put(content)
        except BrokenPipeError:
            raise ReceiverClosed(content) from None

    def _close(self) -> None:
        self._pipe._close_sender()


def _as_content(value: Any) -> Content:
    return value if isinstance(value, Content) else Content(value)


async def _send_or_error(out: OutChannel, content: Content) -> SendError | None:
    try:
        await out.send(content)
    except SendError as error:
        return error
    return None


async def _broadcast(channels: Mapping[NodeId, OutChannel], content: Content) -> list[SendError]:
    results = await asyncio.gather(*(_send_or_error(out, content) for out in channels.values()))
    return [error for error in results if error is not None]


class OutChannels(Mapping[NodeId, OutChannel]):
    """Output channels of a node, keyed by the id of the receiving node."""

    def __init__(self, channels: Mapping[NodeId, OutChannel] | None = None) -> None:
        self._channels: dict[NodeId, OutChannel] = dict(channels or {})

    def __getitem__(self, node_id: NodeId) -> OutChannel:
        return self._channels[node_id]

    def __iter__(self) -> Iterator[NodeId]:
        return iter(self._channels)

    def __len__(self) -> int:
        return len(self._channels)

    def insert(self, node_id: NodeId, channel: OutChannel) -> None:
        """Register *channel* as the output going to *node_id*."""
        self._channels[node_id] = channel

    async def send_to(self, node_id: NodeId, content: Any) -> None:
        """Send *content* to *node_id*; a plain value is wrapped in :class:`Content`."""
        out = self._channels.get(node_id)
        if out is None:
            raise UnknownReceiver(node_id)
        await out.send(_as_content(content))

    async def broadcast(self, content: Any) -> list[SendError]:
        """Send *content* to every receiver concurrently; return the failed sends."""
        return await _broadcast(self._channels, _as_content(content))

    def close(self, node_id: NodeId) -> None:
        """Close the channel to *node_id* and forget it."""
        out = self._channels.pop(node_id, None)
        if out is not None:
            out._close()

    def close_all(self) -> None:
        """Close and forget every channel."""
        for out in self._channels.values():
            out._close()
        self._channels.clear()

    def receiver_ids(self) -> list[NodeId]:
        """Ids of all receiving nodes."""
        return list(self._channels)


class TypedOutChannels(Generic[T]):
    """A view of output channels that only sends values of *kind*."""

    def __init__(self, channels: Mapping[NodeId, OutChannel], kind: type[T]) -> None:
        self._channels: dict[NodeId, OutChannel] = dict(channels)
        self.kind = kind

    def __len__(self) -> int:
        return len(self._channels)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._channels

    def _check(self, value: Any) -> Content:
        if not isinstance(value, self.kind):
            raise TypeError(
                f"expected a value of type {self.kind.__name__}, got {type(value).__name__}"
            )
        return Content(value)

    async def send_to(self, node_id: NodeId, value: T) -> None:
        """Send *value* to *node_id*."""
        content = self._check(value)
        out = self._channels.get(node_id)
        if out is None:
            raise UnknownReceiver(node_id)
        await out.send(content)

    async def broadcast(self, value: T) -> list[SendError]:
        """Send *value* to every receiver concurrently; return the failed sends."""
        return await _broadcast(self._channels, self._check(value))

    def close(self, node_id: NodeId) -> None:
        """Stop sending to *node_id* through this view; the channel itself stays open."""
        self._channels.pop(node_id, None)

    def receiver_ids(self) -> list[NodeId]:
        """Ids of all receiving nodes."""
        return list(self._channels)