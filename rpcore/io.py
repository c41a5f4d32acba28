"""Request handlers that dispatch JSON-RPC calls to registered procedures."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Any, Callable, Coroutine, Iterable

from .errors import Error
from .middleware import Middleware, Noop
from .params import Params, Version
from .procedures import Alias, Method, NotificationProcedure, RemoteProcedure
from .request import InvalidCall, MethodCall, Notification, parse_request
from .response import (
    dumps_response,
    invalid_request_output,
    make_output,
    response_from_error,
)

_log = logging.getLogger("rpc")


class Compatibility(Enum):
    """Which JSON-RPC protocol versions a handler accepts."""

    V1 = "1.0"
    V2 = "2.0"
    BOTH = "both"

    def is_version_valid(self, version: Version | None) -> bool:
        if self is Compatibility.BOTH:
            return True
        if self is Compatibility.V1:
            return version is None
        return version is Version.V2

    def default_version(self) -> Version | None:
        """The version written into responses that have no request to follow."""
        return None if self is Compatibility.V1 else Version.V2


def _run_sync(coro: Coroutine[Any, Any, Any]) -> Any:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    # Already inside an event loop: drive the coroutine on a fresh loop elsewhere.
    with ThreadPoolExecutor(max_workers=1) as executor:
        return executor.submit(asyncio.run, coro).result()


def _ignore_meta(func: Callable[[Params], Any]) -> Callable[[Params, Any], Any]:
    def wrapped(params: Params, meta: Any) -> Any:
        return func(params)

    return wrapped


class MetaIoHandler:
    """Holds procedures and answers requests, passing metadata to each call.

    By default only JSON-RPC 2.0 requests are accepted.
    """

    def __init__(
        self,
        compatibility: Compatibility = Compatibility.V2,
        middleware: Middleware | None = None,
    ) -> None:
        self.compatibility = compatibility
        self.middleware = middleware if middleware is not None else Noop()
        self.methods: dict[str, RemoteProcedure] = {}

    def add_alias(self, alias: str, other: str) -> None:
        """Make ``alias`` another name for ``other``; aliases do not chain."""
        self.methods[alias] = Alias(other)

    def add_method(self, name: str, method: Callable[[Params], Any]) -> None:
        """Add ``method(params)`` returning a value or an awaitable of one."""
        self.add_method_with_meta(name, _ignore_meta(method))

    def add_notification(self, name: str, notification: Callable[[Params], None]) -> None:
        """Add ``notification(params)``."""
        self.add_notification_with_meta(name, _ignore_meta(notification))

    def add_method_with_meta(self, name: str, method: Callable[[Params, Any], Any]) -> None:
        """Add ``method(params, meta)`` returning a value or an awaitable of one."""
        self.methods[name] = Method(method)

    def add_notification_with_meta(
        self, name: str, notification: Callable[[Params, Any], None]
    ) -> None:
        """Add ``notification(params, meta)``."""
        self.methods[name] = NotificationProcedure(notification)

    def extend_with(
        self, methods: Mapping[str, RemoteProcedure] | Iterable[tuple[str, RemoteProcedure]]
    ) -> None:
        """Register procedures from a mapping or from ``(name, procedure)`` pairs."""
        if isinstance(methods, Mapping):
            methods = methods.items()
        self.methods.update(methods)

    def augment(self, handler: MetaIoHandler) -> None:
        """Register every procedure of this handler with ``handler``."""
        handler.extend_with(self.methods)

    async def handle_request(self, request: str, meta: Any = None) -> str | None:
        """Answer request text; ``None`` when nothing is to be sent back."""
        _log.debug("Request: %s.", request)
        try:
            parsed = parse_request(request)
        except Error as error:
            response = response_from_error(error, self.compatibility.default_version())
        else:
            response = await self.handle_rpc_request(parsed, meta)
        text = None if response is None else dumps_response(response)
        _log.debug("Response: %s.", "None" if text is None else text)
        return text

    def handle_request_sync(self, request: str, meta: Any = None) -> str | None:
        """Answer request text, blocking until the response is ready."""
        return _run_sync(self.handle_request(request, meta))

    async def handle_rpc_request(self, request: Any, meta: Any = None) -> Any:
        """Answer a decoded request: a single call or a list of calls."""

        async def process(request: Any, meta: Any) -> Any:
            if isinstance(request, list):
                outputs = await asyncio.gather(
                    *(self.handle_call(call, meta) for call in request)
                )
                answered = [output for output in outputs if output is not None]
                return answered or None
            return await self.handle_call(request, meta)

        return await self.middleware.on_request(request, meta, process)

    async def handle_call(self, call: Any, meta: Any = None) -> Any:
        """Answer one call; notifications give ``None``."""
        return await self.middleware.on_call(call, meta, self._process_call)

    def _resolve(self, name: str) -> RemoteProcedure | None:
        procedure = self.methods.get(name)
        if isinstance(procedure, Alias):
            procedure = self.methods.get(procedure.target)
        return procedure

    async def _process_call(self, call: Any, meta: Any) -> Any:
        if isinstance(call, MethodCall):
            if not self.compatibility.is_version_valid(call.jsonrpc):
                return make_output(Error.invalid_version(), call.id, call.jsonrpc)
            procedure = self._resolve(call.method)
            if not isinstance(procedure, Method):
                return make_output(Error.method_not_found(), call.id, call.jsonrpc)
            try:
                result = await procedure.call(call.params, meta)
            except Error as error:
                result = error
            return make_output(result, call.id, call.jsonrpc)
        if isinstance(call, Notification):
            if not self.compatibility.is_version_valid(call.jsonrpc):
                return None
            procedure = self._resolve(call.method)
            if isinstance(procedure, NotificationProcedure):
                procedure.execute(call.params, meta)
            return None
        if isinstance(call, InvalidCall):
            return invalid_request_output(call.id, self.compatibility.default_version())
        raise TypeError(f"not a call: {call!r}")

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(compatibility={self.compatibility}, "
            f"middleware={self.middleware!r}, methods={self.methods!r})"
        )


class IoHandler(MetaIoHandler):
    """A handler whose calls receive no metadata."""

    def __init__(self, compatibility: Compatibility = Compatibility.V2) -> None:
        super().__init__(compatibility)


def augment(handler: MetaIoHandler, *args: Any) -> None:
    """Register the procedures of every extension in ``args`` with ``handler``.

    An extension is anything with an ``augment(handler)`` method (a delegate
    or another handler), a mapping of procedures, or ``(name, procedure)`` pairs.
    """
    for extension in args:
        hook = getattr(extension, "augment", None)
        if callable(hook):
            hook(handler)
        else:
            handler.extend_with(extension)