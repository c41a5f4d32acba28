"""JSON-RPC error codes and the error object."""

from __future__ import annotations

from enum import IntEnum
from typing import Any

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1
_FIELDS = frozenset({"code", "message", "data"})


class ErrorCode(IntEnum):
    """Error codes reserved by the JSON-RPC specification."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


_DESCRIPTIONS = {
    ErrorCode.PARSE_ERROR: "Parse error",
    ErrorCode.INVALID_REQUEST: "Invalid request",
    ErrorCode.METHOD_NOT_FOUND: "Method not found",
    ErrorCode.INVALID_PARAMS: "Invalid params",
    ErrorCode.INTERNAL_ERROR: "Internal error",
}
_SERVER_ERROR = "Server error"


def _coerce_code(code: Any) -> int:
    """Return a reserved ``ErrorCode`` member where one matches, else the plain int."""
    if isinstance(code, bool) or not isinstance(code, int):
        raise TypeError(f"error code must be an integer, not {type(code).__name__}")
    if not _I64_MIN <= code <= _I64_MAX:
        raise ValueError(f"error code {code} is out of range")
    try:
        return ErrorCode(code)
    except ValueError:
        return int(code)


def error_description(code: int) -> str:
    """Human-readable description of an error code."""
    code = _coerce_code(code)
    if isinstance(code, ErrorCode):
        return _DESCRIPTIONS[code]
    return _SERVER_ERROR


class Error(Exception):
    """A JSON-RPC error object; raise it from a method to send it back."""

    def __init__(self, code: int, message: str | None = None, data: Any = None) -> None:
        self.code = _coerce_code(code)
        self.message = error_description(self.code) if message is None else message
        self.data = data
        super().__init__(self.message)

    @classmethod
    def from_code(cls, code: int) -> Error:
        """Wrap a code with its standard description as the message."""
        return cls(code, error_description(code))

    @classmethod
    def parse_error(cls) -> Error:
        return cls.from_code(ErrorCode.PARSE_ERROR)

    @classmethod
    def invalid_request(cls) -> Error:
        return cls.from_code(ErrorCode.INVALID_REQUEST)

    @classmethod
    def method_not_found(cls) -> Error:
        return cls.from_code(ErrorCode.METHOD_NOT_FOUND)

    @classmethod
    def invalid_params(cls, message: str) -> Error:
        return cls(ErrorCode.INVALID_PARAMS, str(message))

    @classmethod
    def invalid_params_with_details(cls, message: str, details: Any) -> Error:
        """Invalid params error carrying the offending value's repr as data."""
        return cls(
            ErrorCode.INVALID_PARAMS,
            f"Invalid parameters: {message}",
            repr(details),
        )

    @classmethod
    def internal_error(cls) -> Error:
        return cls.from_code(ErrorCode.INTERNAL_ERROR)

    @classmethod
    def invalid_version(cls) -> Error:
        return cls(ErrorCode.INVALID_REQUEST, "Unsupported JSON-RPC protocol version")

    def to_json(self) -> dict[str, Any]:
        """The error as a JSON-ready dict; ``data`` is left out when unset."""
        value: dict[str, Any] = {"code": int(self.code), "message": self.message}
        if self.data is not None:
            value["data"] = self.data
        return value

    @classmethod
    def from_json(cls, value: Any) -> Error:
        """Build an error from a decoded JSON object, rejecting unknown fields."""
        if not isinstance(value, dict):
            raise ValueError("invalid type: expected struct Error")
        unknown = sorted(set(value) - _FIELDS)
        if unknown:
            raise ValueError(f"unknown field `{unknown[0]}`")
        for name in ("code", "message"):
            if name not in value:
                raise ValueError(f"missing field `{name}`")
        code = value["code"]
        if isinstance(code, bool) or not isinstance(code, int):
            raise ValueError("invalid type for `code`, expected i64")
        if not _I64_MIN <= code <= _I64_MAX:
            raise ValueError("invalid value for `code`, expected i64")
        message = value["message"]
        if not isinstance(message, str):
            raise ValueError("invalid type for `message`, expected a string")
        return cls(code, message, value.get("data"))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Error):
            return NotImplemented
        return (
            int(self.code) == int(other.code)
            and self.message == other.message
            and self.data == other.data
        )

    def __hash__(self) -> int:
        return hash((int(self.code), self.message))

    def __str__(self) -> str:
        return f"{error_description(self.code)}: {self.message}"

    def __repr__(self) -> str:
        return f"Error(code={self.code!r}, message={self.message!r}, data={self.data!r})"