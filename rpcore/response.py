"""JSON-RPC responses: successes, failures, notifications and batches."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union

from .errors import Error
from .params import Version, parse_id, parse_version
from .request import Notification, call_from_json

_SUCCESS_FIELDS = frozenset({"jsonrpc", "result", "id"})
_FAILURE_FIELDS = frozenset({"jsonrpc", "error", "id"})


@dataclass(kw_only=True)
class Success:
    """A successful method call result."""

    jsonrpc: Version | None = Version.V2
    result: Any
    id: int | str | None

    def to_json(self) -> dict[str, Any]:
        value: dict[str, Any] = {}
        if self.jsonrpc is not None:
            value["jsonrpc"] = self.jsonrpc.value
        value["result"] = self.result
        value["id"] = self.id
        return value


@dataclass(kw_only=True)
class Failure:
    """A method call that ended in an error."""

    jsonrpc: Version | None = Version.V2
    error: Error
    id: int | str | None

    def to_json(self) -> dict[str, Any]:
        value: dict[str, Any] = {}
        if self.jsonrpc is not None:
            value["jsonrpc"] = self.jsonrpc.value
        value["error"] = self.error.to_json()
        value["id"] = self.id
        return value


Output = Union[Notification, Success, Failure]
Response = Union[Output, "list[Output]"]


def make_output(result: Any, id: int | str | None, jsonrpc: Version | None) -> Output:
    """Wrap a result value, or an ``Error``, into an output."""
    if isinstance(result, Error):
        return Failure(jsonrpc=jsonrpc, error=result, id=id)
    return Success(jsonrpc=jsonrpc, result=result, id=id)


def invalid_request_output(id: int | str | None, jsonrpc: Version | None) -> Failure:
    """A failure output for a malformed call."""
    return Failure(jsonrpc=jsonrpc, error=Error.invalid_request(), id=id)


def output_version(output: Output) -> Version | None:
    return output.jsonrpc


def output_id(output: Output) -> int | str | None:
    """The correlation id; notifications have none."""
    if isinstance(output, Notification):
        return None
    return output.id


def output_method(output: Output) -> str | None:
    """The method name when the output is a notification."""
    if isinstance(output, Notification):
        return output.method
    return None


def output_result(output: Output) -> Any:
    """The carried value; raises the carried ``Error`` for failures.

    A subscription notification yields its ``result`` member, or raises the
    error in its ``error`` member; other notifications yield their params.
    """
    if isinstance(output, Success):
        return output.result
    if isinstance(output, Failure):
        raise output.error
    params = output.params.to_json()
    if isinstance(params, dict) and "subscription" in params:
        if "result" in params:
            return params["result"]
        if "error" in params:
            try:
                error = Error.from_json(params["error"])
            except (ValueError, TypeError):
                error = Error.parse_error()
            raise error
    return params


def _check_fields(obj: dict, allowed: frozenset) -> None:
    unknown = sorted(set(obj) - allowed)
    if unknown:
        raise ValueError(f"unknown field `{unknown[0]}`")


def _version_field(obj: dict) -> Version | None:
    value = obj.get("jsonrpc")
    return None if value is None else parse_version(value)


def _required(obj: dict, name: str) -> Any:
    if name not in obj:
        raise ValueError(f"missing field `{name}`")
    return obj[name]


def _success_from_map(obj: dict) -> Success:
    _check_fields(obj, _SUCCESS_FIELDS)
    return Success(
        jsonrpc=_version_field(obj),
        result=_required(obj, "result"),
        id=parse_id(_required(obj, "id")),
    )


def _failure_from_map(obj: dict) -> Failure:
    _check_fields(obj, _FAILURE_FIELDS)
    return Failure(
        jsonrpc=_version_field(obj),
        error=Error.from_json(_required(obj, "error")),
        id=parse_id(_required(obj, "id")),
    )


def output_from_json(value: Any) -> Output:
    """Decode a single output from a JSON value."""
    if isinstance(value, dict):
        try:
            call = call_from_json(value)
        except ValueError:
            call = None
        if isinstance(call, Notification):
            return call
        for decode in (_success_from_map, _failure_from_map):
            try:
                return decode(value)
            except ValueError:
                continue
    raise ValueError("data did not match any variant of untagged enum Output")


def output_to_json(output: Output) -> dict[str, Any]:
    return output.to_json()


def response_from_error(error: Error, jsonrpc: Version | None) -> Failure:
    """A failure response with a null id."""
    return Failure(jsonrpc=jsonrpc, error=error, id=None)


def response_from_json(value: Any) -> Response:
    """Decode a response: one output, or a list of outputs for a batch."""
    try:
        return output_from_json(value)
    except ValueError:
        if isinstance(value, list):
            try:
                return [output_from_json(item) for item in value]
            except ValueError:
                pass
    raise ValueError("data did not match any variant of untagged enum Response")


def response_to_json(response: Response) -> Any:
    if isinstance(response, list):
        return [output_to_json(output) for output in response]
    return output_to_json(response)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid number {name}")


def parse_response(text: str | bytes) -> Response:
    """Parse response text; raises ``ValueError`` on malformed input."""
    try:
        value = json.loads(text, parse_constant=_reject_constant)
    except RecursionError as exc:
        raise ValueError("recursion limit exceeded") from exc
    return response_from_json(value)


def dumps_response(response: Response) -> str:
    """Serialise a response to compact JSON text."""
    return json.dumps(response_to_json(response), separators=(",", ":"), ensure_ascii=False)