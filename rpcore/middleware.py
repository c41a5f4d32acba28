"""Hooks that wrap the handling of requests and calls."""

from __future__ import annotations

from typing import Any, Awaitable, Callable

Next = Callable[[Any, Any], Awaitable[Any]]


class Middleware:
    """Base middleware; both hooks pass straight through to ``next``.

    Override a hook to answer directly (without calling ``next``) or to do
    work before and after the rest of the processing.
    """

    async def on_request(self, request: Any, meta: Any, next: Next) -> Any:
        """Called for each request; returns the response or ``None``."""
        return await next(request, meta)

    async def on_call(self, call: Any, meta: Any, next: Next) -> Any:
        """Called for each call inside a request; returns an output or ``None``."""
        return await next(call, meta)


class Noop(Middleware):
    """Middleware that does nothing."""


class Chain(Middleware):
    """Several middlewares run in order, the first one outermost."""

    def __init__(self, *args: Middleware) -> None:
        self.middlewares = tuple(args)

    async def on_request(self, request: Any, meta: Any, next: Next) -> Any:
        return await self._run("on_request", 0, request, meta, next)

    async def on_call(self, call: Any, meta: Any, next: Next) -> Any:
        return await self._run("on_call", 0, call, meta, next)

    async def _run(self, hook: str, index: int, item: Any, meta: Any, last: Next) -> Any:
        if index == len(self.middlewares):
            return await last(item, meta)

        async def proceed(item: Any, meta: Any) -> Any:
            return await self._run(hook, index + 1, item, meta, last)

        return await getattr(self.middlewares[index], hook)(item, meta, proceed)

    def __repr__(self) -> str:
        return f"Chain{self.middlewares!r}"