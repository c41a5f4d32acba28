"""Request parameters, request ids and the protocol version."""

from __future__ import annotations

import dataclasses
import types
import typing
from enum import Enum
from typing import Any, Optional, Union

from .errors import Error

_U64_MAX = 2**64 - 1


class Version(Enum):
    """Supported JSON-RPC protocol version."""

    V2 = "2.0"


class _ParseFailure(Exception):
    """Raised while converting a JSON value into the requested shape."""


def _unexpected(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return f"boolean `{'true' if value else 'false'}`"
    if isinstance(value, int):
        return f"integer `{value}`"
    if isinstance(value, float):
        return f"floating point `{value}`"
    if isinstance(value, str):
        return f'string "{value}"'
    if isinstance(value, list):
        return "sequence"
    if isinstance(value, dict):
        return "map"
    return type(value).__name__


def _invalid_type(value: Any, expected: str) -> _ParseFailure:
    return _ParseFailure(f"invalid type: {_unexpected(value)}, expected {expected}")


def parse_version(value: Any) -> Version:
    """Decode the ``jsonrpc`` member; only ``"2.0"`` is accepted."""
    if not isinstance(value, str):
        raise ValueError(f"invalid type: {_unexpected(value)}, expected a string")
    if value != Version.V2.value:
        raise ValueError("invalid version")
    return Version.V2


def parse_id(value: Any) -> int | str | None:
    """Decode a request id: null, an unsigned 64-bit integer or a string."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= _U64_MAX:
        return value
    raise ValueError("data did not match any variant of untagged enum Id")


_SIMPLE_NAMES: dict[str, Any] = {
    "int": int,
    "str": str,
    "float": float,
    "bool": bool,
    "Any": Any,
    "typing.Any": Any,
    "object": object,
    "list": list,
    "List": list,
    "dict": dict,
    "Dict": dict,
    "tuple": tuple,
    "Tuple": tuple,
    "None": type(None),
    "NoneType": type(None),
    "...": Ellipsis,
}


def _split_top(text: str, sep: str) -> list[str]:
    """Split ``text`` on ``sep`` outside of square brackets."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
        if char == sep and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    parts.append("".join(current).strip())
    return parts


def _resolve_annotation(annotation: Any) -> Any:
    """Turn a string annotation of a common form into a type spec."""
    if not isinstance(annotation, str):
        return annotation
    text = annotation.strip()
    alternatives = _split_top(text, "|")
    if len(alternatives) > 1:
        return Union[tuple(_resolve_annotation(part) for part in alternatives)]
    if text in _SIMPLE_NAMES:
        return _SIMPLE_NAMES[text]
    if text.endswith("]") and "[" in text:
        name, _, inner = text[:-1].partition("[")
        name = name.strip().removeprefix("typing.")
        args = [_resolve_annotation(part) for part in _split_top(inner, ",") if part]
        if name == "Optional" and len(args) == 1:
            return Optional[args[0]]
        if name == "Union" and args:
            return Union[tuple(args)]
        if name in ("list", "List") and len(args) == 1:
            return list[args[0]]
        if name in ("dict", "Dict") and len(args) == 2:
            return dict[args[0], args[1]]
        if name in ("tuple", "Tuple") and args:
            return tuple[tuple(args)]
    return Any


def _is_union(spec: Any) -> bool:
    return typing.get_origin(spec) in (Union, types.UnionType)


def _is_optional(spec: Any) -> bool:
    if spec is Any or spec is object:
        return True
    return _is_union(spec) and type(None) in typing.get_args(spec)


def _convert_tuple(value: Any, specs: tuple) -> tuple:
    size = len(specs)
    expected = f"a tuple of size {size}"
    if not isinstance(value, list):
        raise _invalid_type(value, expected)
    items = []
    for index, spec in enumerate(specs):
        if index >= len(value):
            raise _ParseFailure(f"invalid length {index}, expected {expected}")
        items.append(_convert(value[index], spec))
    if len(value) > size:
        raise _ParseFailure(f"invalid length {len(value)}, expected fewer elements in array")
    return tuple(items)


def _has_default(field: dataclasses.Field) -> bool:
    return (
        field.default is not dataclasses.MISSING
        or field.default_factory is not dataclasses.MISSING
    )


def _convert_struct(value: Any, spec: type) -> Any:
    fields = [field for field in dataclasses.fields(spec) if field.init]
    hints = {field.name: _resolve_annotation(field.type) for field in fields}
    kwargs: dict[str, Any] = {}
    if isinstance(value, dict):
        for field in fields:
            field_type = hints.get(field.name, Any)
            if field.name in value:
                kwargs[field.name] = _convert(value[field.name], field_type)
            elif _has_default(field):
                continue
            elif _is_optional(field_type):
                kwargs[field.name] = None
            else:
                raise _ParseFailure(f"missing field `{field.name}`")
        return spec(**kwargs)
    if isinstance(value, list):
        for index, field in enumerate(fields):
            field_type = hints.get(field.name, Any)
            if index < len(value):
                kwargs[field.name] = _convert(value[index], field_type)
            elif _has_default(field):
                continue
            elif _is_optional(field_type):
                kwargs[field.name] = None
            else:
                raise _ParseFailure(
                    f"invalid length {index}, expected struct {spec.__name__} "
                    f"with {len(fields)} elements"
                )
        if len(value) > len(fields):
            raise _ParseFailure(
                f"invalid length {len(value)}, expected fewer elements in array"
            )
        return spec(**kwargs)
    raise _invalid_type(value, f"struct {spec.__name__}")


def _convert(value: Any, spec: Any) -> Any:
    spec = _resolve_annotation(spec)
    if spec is Any or spec is object:
        return value
    if spec is None or spec is type(None):
        if value is None:
            return None
        raise _invalid_type(value, "unit")
    if _is_union(spec):
        args = typing.get_args(spec)
        if value is None and type(None) in args:
            return None
        choices = [arg for arg in args if arg is not type(None)]
        if len(choices) == 1:
            return _convert(value, choices[0])
        for choice in choices:
            try:
                return _convert(value, choice)
            except _ParseFailure:
                continue
        raise _ParseFailure("data did not match any variant of untagged enum")
    if isinstance(spec, tuple):
        return _convert_tuple(value, spec)

    origin = typing.get_origin(spec)
    args = typing.get_args(spec)
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            if not isinstance(value, list):
                raise _invalid_type(value, "a sequence")
            return tuple(_convert(item, args[0]) for item in value)
        return _convert_tuple(value, args)
    if origin is list or spec is list:
        item_spec = args[0] if args else Any
        if not isinstance(value, list):
            raise _invalid_type(value, "a sequence")
        return [_convert(item, item_spec) for item in value]
    if origin is dict or spec is dict:
        value_spec = args[1] if len(args) == 2 else Any
        if not isinstance(value, dict):
            raise _invalid_type(value, "a map")
        return {key: _convert(item, value_spec) for key, item in value.items()}
    if isinstance(spec, type) and dataclasses.is_dataclass(spec):
        return _convert_struct(value, spec)
    if spec is bool:
        if isinstance(value, bool):
            return value
        raise _invalid_type(value, "a boolean")
    if spec is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        raise _invalid_type(value, "an integer")
    if spec is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        raise _invalid_type(value, "a number")
    if spec is str:
        if isinstance(value, str):
            return value
        raise _invalid_type(value, "a string")
    raise TypeError(f"unsupported parameter spec: {spec!r}")


class Params:
    """Request parameters: nothing, a positional list or a named mapping."""

    __slots__ = ("value",)

    def __init__(self, value: list | tuple | dict | None = None) -> None:
        if isinstance(value, tuple):
            value = list(value)
        if value is not None and not isinstance(value, (list, dict)):
            raise TypeError(f"params must be a list, a dict or None, not {type(value).__name__}")
        if isinstance(value, dict) and not all(isinstance(key, str) for key in value):
            raise TypeError("params mapping keys must be strings")
        self.value = value

    @classmethod
    def from_json(cls, value: Any) -> Params:
        """Build params from a decoded JSON value (null, array or object)."""
        if value is None or isinstance(value, (list, dict)):
            return cls(value)
        raise ValueError("data did not match any variant of untagged enum Params")

    def to_json(self) -> list | dict | None:
        return self.value

    def parse(self, spec: Any) -> Any:
        """Convert the params into the shape given by ``spec``.

        ``spec`` is a type (``int``, ``str``, a dataclass, ``list[int]``,
        ``int | None`` ...) or a tuple of specs for a fixed-size array.
        Raises an invalid-params ``Error`` when the params do not fit.
        """
        try:
            return _convert(self.value, spec)
        except _ParseFailure as exc:
            raise Error.invalid_params(f"Invalid params: {exc}.") from None

    def expect_no_params(self) -> None:
        """Raise an invalid-params ``Error`` unless the params are empty."""
        if self.value is None or self.value == []:
            return
        raise Error.invalid_params_with_details("No parameters were expected", self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Params):
            return NotImplemented
        return self.value == other.value

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Params({self.value!r})"