"""Transport-agnostic JSON-RPC request handling, middleware and client primitives."""

__version__ = "0.1.0"

__all__ = [
    "client",
    "delegates",
    "errors",
    "io",
    "middleware",
    "params",
    "procedures",
    "request",
    "response",
]