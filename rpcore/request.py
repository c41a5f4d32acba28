"""JSON-RPC requests: method calls, notifications and batches."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Union

from .errors import Error
from .params import Params, Version, parse_id, parse_version

_METHOD_CALL_FIELDS = frozenset({"jsonrpc", "method", "params", "id"})
_NOTIFICATION_FIELDS = frozenset({"jsonrpc", "method", "params"})


@dataclass(kw_only=True)
class MethodCall:
    """A call that expects a response."""

    jsonrpc: Version | None = Version.V2
    method: str
    params: Params = field(default_factory=Params)
    id: int | str | None

    def to_json(self) -> dict[str, Any]:
        return {
            "jsonrpc": self.jsonrpc.value if self.jsonrpc is not None else None,
            "method": self.method,
            "params": self.params.to_json(),
            "id": self.id,
        }


@dataclass(kw_only=True)
class Notification:
    """A call without an id; no response is sent."""

    jsonrpc: Version | None = Version.V2
    method: str
    params: Params = field(default_factory=Params)

    def to_json(self) -> dict[str, Any]:
        return {
            "jsonrpc": self.jsonrpc.value if self.jsonrpc is not None else None,
            "method": self.method,
            "params": self.params.to_json(),
        }


@dataclass
class InvalidCall:
    """A call that could not be understood; ``id`` is kept when present."""

    id: int | str | None = None

    def to_json(self) -> dict[str, Any]:
        return {"id": self.id}


Call = Union[MethodCall, Notification, InvalidCall]


def _version_field(obj: dict) -> Version | None:
    value = obj.get("jsonrpc")
    return None if value is None else parse_version(value)


def _method_field(obj: dict) -> str:
    if "method" not in obj:
        raise ValueError("missing field `method`")
    method = obj["method"]
    if not isinstance(method, str):
        raise ValueError("invalid type for `method`, expected a string")
    return method


def _params_field(obj: dict) -> Params:
    return Params.from_json(obj["params"]) if "params" in obj else Params()


def _check_fields(obj: dict, allowed: frozenset) -> None:
    unknown = sorted(set(obj) - allowed)
    if unknown:
        raise ValueError(f"unknown field `{unknown[0]}`")


def _method_call_from_map(obj: dict) -> MethodCall:
    _check_fields(obj, _METHOD_CALL_FIELDS)
    jsonrpc = _version_field(obj)
    method = _method_field(obj)
    params = _params_field(obj)
    if "id" not in obj:
        raise ValueError("missing field `id`")
    return MethodCall(jsonrpc=jsonrpc, method=method, params=params, id=parse_id(obj["id"]))


def _notification_from_map(obj: dict) -> Notification:
    _check_fields(obj, _NOTIFICATION_FIELDS)
    return Notification(
        jsonrpc=_version_field(obj),
        method=_method_field(obj),
        params=_params_field(obj),
    )


def _invalid_from_map(obj: dict) -> InvalidCall:
    return InvalidCall(parse_id(obj["id"]) if "id" in obj else None)


def _invalid_from_sequence(items: list) -> InvalidCall:
    # An invalid call also accepts the id given positionally, or nothing at all.
    if not items:
        return InvalidCall(None)
    if len(items) == 1:
        return InvalidCall(parse_id(items[0]))
    raise ValueError(f"invalid length {len(items)}, expected struct variant Call::Invalid")


def call_from_json(value: Any) -> Call:
    """Decode a single call from a JSON value."""
    if isinstance(value, dict):
        for decode in (_method_call_from_map, _notification_from_map, _invalid_from_map):
            try:
                return decode(value)
            except ValueError:
                continue
    elif isinstance(value, list):
        try:
            return _invalid_from_sequence(value)
        except ValueError:
            pass
    raise ValueError("data did not match any variant of untagged enum Call")


def call_to_json(call: Call) -> dict[str, Any]:
    return call.to_json()


def request_from_json(value: Any) -> Call | list[Call]:
    """Decode a request: a single call, or a list of calls for a batch."""
    try:
        return call_from_json(value)
    except ValueError:
        if isinstance(value, list):
            try:
                return [call_from_json(item) for item in value]
            except ValueError:
                pass
    raise ValueError("data did not match any variant of untagged enum Request")


def request_to_json(request: Call | list[Call]) -> Any:
    if isinstance(request, list):
        return [call_to_json(call) for call in request]
    return call_to_json(request)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid number {name}")


def parse_request(text: str | bytes) -> Call | list[Call]:
    """Parse request text; raises a parse-error ``Error`` on malformed input."""
    try:
        value = json.loads(text, parse_constant=_reject_constant)
        return request_from_json(value)
    except (ValueError, RecursionError) as exc:
        raise Error.parse_error() from exc


def dumps_request(request: Call | list[Call]) -> str:
    """Serialise a request to compact JSON text."""
    return json.dumps(request_to_json(request), separators=(",", ":"), ensure_ascii=False)