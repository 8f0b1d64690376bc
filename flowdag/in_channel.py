"""Receiving ends of the channels that connect nodes."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable, Iterator, Mapping
from typing import Generic, TypeVar, Union

from .content import Content
from .ids import NodeId

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_CAPACITY = 32


class RecvError(Exception):
    """Base class of errors raised when receiving from a channel."""


class NoSuchChannel(RecvError):
    """There is no channel for the requested node, or no channel at all."""

    def __init__(self, node_id: NodeId | None = None) -> None:
        self.node_id = node_id
        if node_id is None:
            super().__init__("no input channel available")
        else:
            super().__init__(f"no input channel from {node_id!r}")


class ChannelClosed(RecvError):
    """The channel is closed and holds no more packets."""

    def __init__(self) -> None:
        super().__init__("channel is closed and empty")


class Lagged(RecvError):
    """The receiver fell behind and *skipped* packets were dropped."""

    def __init__(self, skipped: int) -> None:
        self.skipped = skipped
        super().__init__(f"receiver lagged, {skipped} packets dropped")


_Waiters = list["asyncio.Future[None]"]


def _wake(waiters: _Waiters) -> None:
    for fut in waiters:
        if not fut.done():
            fut.set_result(None)
    waiters.clear()


async def _wait(*waiter_lists: _Waiters) -> None:
    fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
    for waiters in waiter_lists:
        waiters.append(fut)
    try:
        await fut
    finally:
        for waiters in waiter_lists:
            if fut in waiters:
                waiters.remove(fut)


class Pipe:
    """A bounded single-producer, single-consumer queue of :class:`Content`."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._items: deque[Content] = deque()
        self._sender_open = True
        self._receiver_open = True
        self._readers: _Waiters = []
        self._writers: _Waiters = []

    @property
    def closed(self) -> bool:
        """True once either end has been closed."""
        return not (self._sender_open and self._receiver_open)

    def __len__(self) -> int:
        return len(self._items)

    def _try_get(self) -> Content | None:
        if self._items:
            item = self._items.popleft()
            _wake(self._writers)
            return item
        if self.closed:
            raise ChannelClosed()
        return None

    async def _get(self) -> Content:
        while True:
            item = self._try_get()
            if item is not None:
                return item
            await _wait(self._readers)

    async def _put(self, content: Content) -> None:
        while True:
            if not self._receiver_open:
                raise BrokenPipeError("receiver is closed")
            if not self._sender_open:
                raise BrokenPipeError("sender is closed")
            if len(self._items) < self.capacity:
                self._items.append(content)
                _wake(self._readers)
                return
            await _wait(self._writers)

    def _close_sender(self) -> None:
        self._sender_open = False
        _wake(self._readers)
        _wake(self._writers)

    def _close_receiver(self) -> None:
        self._receiver_open = False
        self._items.clear()
        _wake(self._readers)
        _wake(self._writers)


class InChannel:
    """The receiving end of a :class:`Pipe`."""

    def __init__(self, pipe: Pipe) -> None:
        self._pipe = pipe

    async def recv(self) -> Content:
        """Wait for the next packet; raise :class:`ChannelClosed` when none will come."""
        return await self._pipe._get()

    def close(self) -> None:
        """Close the channel and drop the packets still inside."""
        self._pipe._close_receiver()

    def _try_recv(self) -> Content | None:
        return self._pipe._try_get()


async def _recv_or_error(channel: InChannel) -> Content | RecvError:
    try:
        return await channel.recv()
    except RecvError as error:
        return error


async def _recv_any(channels: Mapping[NodeId, InChannel]) -> tuple[NodeId, Content]:
    if not channels:
        raise NoSuchChannel()
    while True:
        pending: list[InChannel] = []
        for node_id, channel in list(channels.items()):
            try:
                item = channel._try_recv()
            except ChannelClosed:
                continue
            if item is not None:
                return node_id, item
            pending.append(channel)
        if not pending:
            raise ChannelClosed()
        await _wait(*(channel._pipe._readers for channel in pending))


class InChannels(Mapping[NodeId, InChannel]):
    """Input channels of a node, keyed by the id of the sending node."""

    def __init__(self, channels: Mapping[NodeId, InChannel] | None = None) -> None:
        self._channels: dict[NodeId, InChannel] = dict(channels or {})

    def __getitem__(self, node_id: NodeId) -> InChannel:
        return self._channels[node_id]

    def __iter__(self) -> Iterator[NodeId]:
        return iter(self._channels)

    def __len__(self) -> int:
        return len(self._channels)

    def insert(self, node_id: NodeId, channel: InChannel) -> None:
        """Register *channel* as the input coming from *node_id*."""
        self._channels[node_id] = channel

    def keys(self) -> list[NodeId]:  # type: ignore[override]
        """Ids of all sending nodes."""
        return list(self._channels)

    async def recv_from(self, node_id: NodeId) -> Content:
        """Receive the next packet sent by *node_id*."""
        channel = self._channels.get(node_id)
        if channel is None:
            raise NoSuchChannel(node_id)
        return await channel.recv()

    async def recv_any(self) -> tuple[NodeId, Content]:
        """Wait for a packet on any channel and return it with its sender's id."""
        return await _recv_any(self._channels)

    async def map(self, func: Callable[[Content | RecvError], R]) -> list[R]:
        """Receive once from every channel concurrently and apply *func* to each result.

        *func* gets the received :class:`Content` or the :class:`RecvError` raised.
        """
        results = await asyncio.gather(
            *(_recv_or_error(channel) for channel in self._channels.values())
        )
        return [func(result) for result in results]

    def close(self, node_id: NodeId) -> None:
        """Close the channel from *node_id* and forget it."""
        channel = self._channels.pop(node_id, None)
        if channel is not None:
            channel.close()

    def close_all(self) -> None:
        """Close every channel."""
        for channel in self._channels.values():
            channel.close()


TypedResult = Union[T, None]


class TypedInChannels(Generic[T]):
    """A view of input channels whose packets are expected to hold values of *kind*.

    A packet holding a value of another type is received as ``None``.
    """

    def __init__(self, channels: Mapping[NodeId, InChannel], kind: type[T]) -> None:
        self._channels: dict[NodeId, InChannel] = dict(channels)
        self.kind = kind

    def __len__(self) -> int:
        return len(self._channels)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._channels

    def __iter__(self) -> Iterator[NodeId]:
        return iter(self._channels)

    async def recv_from(self, node_id: NodeId) -> T | None:
        """Receive the next value sent by *node_id*."""
        channel = self._channels.get(node_id)
        if channel is None:
            raise NoSuchChannel(node_id)
        content = await channel.recv()
        return content.get(self.kind)

    async def recv_any(self) -> tuple[NodeId, T | None]:
        """Wait for a value on any channel and return it with its sender's id."""
        node_id, content = await _recv_any(self._channels)
        return node_id, content.get(self.kind)

    async def map(self, func: Callable[[T | None | RecvError], R]) -> list[R]:
        """Receive once from every channel concurrently and apply *func* to each result.

        *func* gets the received value (or ``None``) or the :class:`RecvError` raised.
        """
        results = await asyncio.gather(
            *(_recv_or_error(channel) for channel in self._channels.values())
        )
        return [
            func(result if isinstance(result, RecvError) else result.get(self.kind))
            for result in results
        ]

    def close(self, node_id: NodeId) -> None:
        """Close the channel from *node_id* and forget it."""
        channel = self._channels.pop(node_id, None)
        if channel is not None:
            channel.close()