"""A set of methods and notifications bound to one shared object."""

from __future__ import annotations

from functools import partial
from typing import Any, Callable, Iterator

from .params import Params
from .procedures import Alias, Method, NotificationProcedure, RemoteProcedure


def _without_meta(func: Callable[..., Any], delegate: Any, params: Params, meta: Any) -> Any:
    return func(delegate, params)


class IoDelegate:
    """Procedures whose functions receive ``delegate`` as their first argument."""

    def __init__(self, delegate: Any) -> None:
        self.delegate = delegate
        self.methods: dict[str, RemoteProcedure] = {}

    def add_alias(self, name: str, target: str) -> None:
        """Add ``name`` as another name for ``target``; aliases do not chain."""
        self.methods[name] = Alias(target)

    def add_method(self, name: str, method: Callable[[Any, Params], Any]) -> None:
        """Add ``method(delegate, params)``, returning a value or an awaitable."""
        self.methods[name] = Method(partial(_without_meta, method, self.delegate))

    def add_method_with_meta(
        self, name: str, method: Callable[[Any, Params, Any], Any]
    ) -> None:
        """Add ``method(delegate, params, meta)``."""
        self.methods[name] = Method(partial(method, self.delegate))

    def add_notification(
        self, name: str, notification: Callable[[Any, Params], None]
    ) -> None:
        """Add ``notification(delegate, params)``."""
        self.methods[name] = NotificationProcedure(
            partial(_without_meta, notification, self.delegate)
        )

    def augment(self, handler: Any) -> None:
        """Register every procedure of this delegate with ``handler``."""
        handler.extend_with(list(self))

    def __iter__(self) -> Iterator[tuple[str, RemoteProcedure]]:
        return iter(self.methods.items())

    def __len__(self) -> int:
        return len(self.methods)