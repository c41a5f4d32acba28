"""Client side of JSON-RPC: typed and raw clients talking over a message channel.

The clients do no I/O themselves. They put ``CallMessage`` and
``SubscribeMessage`` objects on an ``RpcChannel``. A transport takes the
messages off the channel and answers them. It settles the future of a call
with the result value, or with an ``RpcError`` set as its exception. It feeds
subscription values into the subscription's queue, where an exception
instance is raised to the reader and ``StopAsyncIteration()`` ends the stream.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Union

from .errors import Error
from .params import Params

_log = logging.getLogger(__name__)

_PARAMS_SHAPE = "RPC params should serialize to a JSON array, or null"


class RpcError(Exception):
    """An error returned by the client; used directly for errors not specific to RPC."""


class ServerRpcError(RpcError):
    """The server answered with a JSON-RPC error object."""

    def __init__(self, error: Error) -> None:
        self.error = error
        super().__init__(f"Server returned rpc error {error}")


class ResponseParseError(RpcError):
    """The server response could not be read as the expected type."""

    def __init__(self, expected: str, cause: Any) -> None:
        self.expected = expected
        self.cause = cause
        super().__init__(f"Failed to parse server response as {expected}: {cause}")


class RpcTimeout(RpcError):
    """The request timed out."""

    def __init__(self) -> None:
        super().__init__("Request timed out")


@dataclass
class CallMessage:
    """A method call for the transport; ``sender`` receives the outcome."""

    method: str
    params: Params
    sender: asyncio.Future


@dataclass
class SubscriptionRequest:
    """What to call to subscribe, which notification to listen to, and how to stop."""

    subscribe: str
    subscribe_params: Params
    notification: str
    unsubscribe: str


@dataclass
class SubscribeMessage:
    """A subscription for the transport; notifications go into ``sender``."""

    subscription: SubscriptionRequest
    sender: asyncio.Queue


RpcMessage = Union[CallMessage, SubscribeMessage]


class RpcChannel:
    """The channel between clients and a transport."""

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue = asyncio.Queue(maxsize)

    async def send(self, message: RpcMessage) -> None:
        """Hand a message to the transport, waiting while the channel is full."""
        await self._queue.put(message)

    async def receive(self) -> RpcMessage:
        """Take the next message; used by the transport."""
        return await self._queue.get()


class SubscriptionStream:
    """Notification values of a subscription, as an async iterator."""

    def __init__(self, queue: asyncio.Queue) -> None:
        self._queue = queue

    def __aiter__(self) -> SubscriptionStream:
        return self

    async def __anext__(self) -> Any:
        item = await self._queue.get()
        if isinstance(item, BaseException):
            raise item
        return item


class TypedSubscriptionStream:
    """A subscription stream whose values pass through ``convert``.

    A value that ``convert`` rejects raises ``ResponseParseError`` naming
    ``returns``, the expected type.
    """

    def __init__(
        self,
        stream: SubscriptionStream,
        returns: str,
        convert: Callable[[Any], Any] | None = None,
    ) -> None:
        self._stream = stream
        self.returns = returns
        self._convert = convert

    def __aiter__(self) -> TypedSubscriptionStream:
        return self

    async def __anext__(self) -> Any:
        value = await self._stream.__anext__()
        return _convert_value(value, self.returns, self._convert)


def _convert_value(value: Any, returns: str, convert: Callable[[Any], Any] | None) -> Any:
    if convert is None:
        return value
    try:
        return convert(value)
    except (Error, ValueError, TypeError, KeyError) as exc:
        raise ResponseParseError(returns, exc) from exc


def _as_params(params: Any) -> Params:
    return params if isinstance(params, Params) else Params(params)


def _args_to_params(args: Any) -> Params:
    if args is None:
        return Params(None)
    if isinstance(args, (list, tuple)):
        return Params(list(args))
    raise RpcError(_PARAMS_SHAPE)


class RawClient:
    """Client for calls and subscriptions with plain JSON values."""

    def __init__(self, channel: RpcChannel) -> None:
        self.channel = channel

    async def call_method(self, method: str, params: Any = None) -> Any:
        """Call ``method`` and return its result; raises ``RpcError`` on failure."""
        sender = asyncio.get_running_loop().create_future()
        await self.channel.send(CallMessage(method, _as_params(params), sender))
        return await sender

    async def subscribe(
        self,
        subscribe: str,
        subscribe_params: Any,
        notification: str,
        unsubscribe: str,
    ) -> SubscriptionStream:
        """Subscribe to ``notification`` and return the stream of its values."""
        queue: asyncio.Queue = asyncio.Queue(1)
        request = SubscriptionRequest(
            subscribe, _as_params(subscribe_params), notification, unsubscribe
        )
        await self.channel.send(SubscribeMessage(request, queue))
        return SubscriptionStream(queue)


class TypedClient:
    """Client that builds params from argument sequences and converts results."""

    def __init__(self, raw_client: RawClient | RpcChannel) -> None:
        if isinstance(raw_client, RpcChannel):
            raw_client = RawClient(raw_client)
        self.raw_client = raw_client

    async def call_method(
        self,
        method: str,
        returns: str,
        args: Any,
        convert: Callable[[Any], Any] | None = None,
    ) -> Any:
        """Call ``method`` with ``args`` (a sequence or ``None``) and convert the result."""
        params = _args_to_params(args)
        value = await self.raw_client.call_method(method, params)
        _log.debug("response: %r", value)
        return _convert_value(value, returns, convert)

    async def subscribe(
        self,
        subscribe: str,
        subscribe_params: Any,
        topic: str,
        unsubscribe: str,
        returns: str,
        convert: Callable[[Any], Any] | None = None,
    ) -> TypedSubscriptionStream:
        """Subscribe to ``topic``; each notification value passes through ``convert``."""
        params = _args_to_params(subscribe_params)
        stream = await self.raw_client.subscribe(subscribe, params, topic, unsubscribe)
        return TypedSubscriptionStream(stream, returns, convert)