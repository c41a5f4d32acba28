# rpcore

A transport-agnostic JSON-RPC library. It parses request text, dispatches
calls to registered methods and notifications, runs them through optional
middleware and serialises the responses. It also has client-side primitives
that put calls and subscriptions on a channel for a transport to answer.

JSON-RPC 2.0 is the default; `rpcore.io.Compatibility` selects `V1`, `V2`
or `BOTH`.

## Install

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Handling requests

```python
from rpcore.io import IoHandler

io = IoHandler()
io.add_method("say_hello", lambda params: "hello")

request = '{"jsonrpc": "2.0", "method": "say_hello", "params": [42, 23], "id": 1}'
assert io.handle_request_sync(request) == '{"jsonrpc":"2.0","result":"hello","id":1}'
```

- Methods may be plain functions or coroutine functions. `handle_request`
  is a coroutine; `handle_request_sync` blocks until the answer is ready.
- `add_notification` registers a handler for calls without an id; these
  never produce a response, and `handle_request_sync` returns `None`.
- `add_alias(alias, other)` makes one name refer to another method or
  notification. Aliases do not chain.
- Unknown methods give a "Method not found" failure (`-32601`), malformed
  JSON a "Parse error" (`-32700`) with a null id, and a request whose
  version the handler does not accept an "Unsupported JSON-RPC protocol
  version" failure.
- A batch (a JSON array of calls) is answered with an array of the
  outputs that are not `None`, or nothing at all when every call was a
  notification.
- `handle_rpc_request` and `handle_call` take already decoded requests
  (see `rpcore.request.parse_request`).

### Parameters and errors

Methods receive an `rpcore.params.Params`. `Params.parse(spec)` converts it
to the shape given by `spec` — `int`, `str`, `float`, `bool`, `list[int]`,
`int | None`, a dataclass, or a tuple of specs for a fixed-size array — and
raises an `rpcore.errors.Error` with the "Invalid params" code when it does
not fit. `Params.expect_no_params()` raises the same kind of error unless the
params are empty.

```python
from rpcore.errors import Error
from rpcore.io import IoHandler

io = IoHandler()

def add(params):
    a, b = params.parse((int, int))
    return a + b

io.add_method("add", add)
io.add_method("fail", lambda params: (_ for _ in ()).throw(Error.internal_error()))

print(io.handle_request_sync('{"jsonrpc":"2.0","method":"add","params":[3,4],"id":1}'))
# {"jsonrpc":"2.0","result":7,"id":1}
```

Raising an `Error` from a method turns into a failure response carrying its
`code`, `message` and, when set, `data`. `Error` has constructors for the
reserved codes (`parse_error`, `invalid_request`, `method_not_found`,
`invalid_params`, `internal_error`, `invalid_version`); any other integer
code is a server error.

The request and response types live in `rpcore.request` (`MethodCall`,
`Notification`, `InvalidCall`, `parse_request`, `dumps_request`) and
`rpcore.response` (`Success`, `Failure`, `parse_response`,
`dumps_response`, `output_result`).

## Metadata

`MetaIoHandler` passes a metadata object, given with each request, to the
procedures registered with `add_method_with_meta` and
`add_notification_with_meta`:

```python
from rpcore.io import MetaIoHandler

io = MetaIoHandler()
io.add_method_with_meta("say_hello", lambda params, meta: f"Hello World: {meta}")

request = '{"jsonrpc": "2.0", "method": "say_hello", "params": [42, 23], "id": 1}'
assert io.handle_request_sync(request, 5) == '{"jsonrpc":"2.0","result":"Hello World: 5","id":1}'
```

## Middleware

Subclass `rpcore.middleware.Middleware` and override the coroutines
`on_request(request, meta, next)` and/or `on_call(call, meta, next)`. Await
`next` to continue processing, or return an answer without calling it.
`Chain(first, second, ...)` runs several middlewares with the first one
outermost.

```python
from rpcore.io import Compatibility, MetaIoHandler
from rpcore.middleware import Middleware

class Counting(Middleware):
    def __init__(self):
        self.count = 0

    async def on_request(self, request, meta, next):
        self.count += 1
        return await next(request, meta)

io = MetaIoHandler(Compatibility.V2, Counting())
```

## Delegates and extending handlers

`rpcore.delegates.IoDelegate` groups procedures whose functions receive one
shared object as their first argument:

```python
from rpcore.delegates import IoDelegate
from rpcore.io import IoHandler, augment

class Service:
    def five(self, params):
        return 5

first = IoDelegate(Service())
first.add_method("rpc_test", Service.five)

io = IoHandler()
augment(io, first)
```

`augment(handler, *extensions)` accepts delegates, other handlers, mappings
of procedures and lists of `(name, procedure)` pairs.
`MetaIoHandler.extend_with` takes a mapping or pairs directly.

## Client side

`rpcore.client` has `RawClient` (plain JSON values) and `TypedClient`
(params built from a sequence or `None`, results passed through an optional
`convert` function). Both put `CallMessage` and `SubscribeMessage` objects on
an `RpcChannel`. Whatever takes messages off the channel settles each call's
`sender` future and feeds subscription values into the subscription's queue:

```python
import asyncio
from rpcore.client import RpcChannel, TypedClient

async def main():
    channel = RpcChannel()
    client = TypedClient(channel)

    async def answer_one():
        message = await channel.receive()
        a, b = message.params.parse((int, int))
        message.sender.set_result(a + b)

    task = asyncio.create_task(answer_one())
    total = await client.call_method("add", "int", (3, 4), convert=int)
    await task
    return total

assert asyncio.run(main()) == 7
```

Client failures are `RpcError` instances. `TypedClient` raises `RpcError`
itself when the arguments are not a sequence or `None`, and
`ResponseParseError` when `convert` rejects a value. `ServerRpcError` (which
wraps an `Error`) and `RpcTimeout` are there for a transport to set on a
call's future. Subscriptions come back as `SubscriptionStream` or
`TypedSubscriptionStream`, both async iterators.

## What the package does not do

There is no transport: no HTTP or WebSocket client, no in-process
connection between a client and a handler, and no server. Nothing takes
messages off an `RpcChannel` unless you write that loop, and no request times
out on its own. Handlers only turn request text into response text; moving
that text over a network is left to the application.