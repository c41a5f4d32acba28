"""The kinds of remote procedure a handler can hold."""

from __future__ import annotations

import inspect
import json
from dataclasses import dataclass
from typing import Any, Callable, Union

from .params import Params


@dataclass(frozen=True, repr=False)
class Method:
    """A method; ``func(params, meta)`` returns a value or an awaitable of one.

    Raising ``Error`` from ``func`` reports that error to the caller.
    """

    func: Callable[[Params, Any], Any]

    async def call(self, params: Params, meta: Any) -> Any:
        result = self.func(params, meta)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return "<method>"


@dataclass(frozen=True, repr=False)
class NotificationProcedure:
    """A notification handler; ``func(params, meta)`` runs synchronously."""

    func: Callable[[Params, Any], None]

    def execute(self, params: Params, meta: Any) -> None:
        self.func(params, meta)

    def __repr__(self) -> str:
        return "<notification>"


@dataclass(frozen=True, repr=False)
class Alias:
    """Another name for a registered method or notification."""

    target: str

    def __repr__(self) -> str:
        return f"alias => {json.dumps(self.target, ensure_ascii=False)}"


RemoteProcedure = Union[Method, NotificationProcedure, Alias]