from __future__ import annotations

import json
from dataclasses import dataclass

import pytest

from rpcore.delegates import IoDelegate
from rpcore.errors import Error, ErrorCode
from rpcore.io import Compatibility, IoHandler, MetaIoHandler, augment
from rpcore.middleware import Chain, Middleware
from rpcore.procedures import Method
from rpcore.request import MethodCall, Notification
from rpcore.response import Failure, Success, parse_response

HELLO = '{"jsonrpc": "2.0", "method": "say_hello", "params": [42, 23], "id": 1}'
HELLO_RESPONSE = '{"jsonrpc":"2.0","result":"hello","id":1}'


@dataclass
class HelloParams:
    name: str


def _hello_handler(**kwargs) -> IoHandler:
    io = IoHandler(**kwargs)
    io.add_method("say_hello", lambda params: "hello")
    return io


def test_io_handler():
    assert _hello_handler().handle_request_sync(HELLO) == HELLO_RESPONSE


def test_io_handler_1dot0():
    io = _hello_handler(compatibility=Compatibility.BOTH)
    request = '{"method": "say_hello", "params": [42, 23], "id": 1}'
    assert io.handle_request_sync(request) == '{"result":"hello","id":1}'


def test_async_method_sync_handling():
    io = IoHandler()

    async def hello(params):
        return "hello"

    io.add_method("say_hello", hello)
    assert io.handle_request_sync(HELLO) == HELLO_RESPONSE


@pytest.mark.asyncio
async def test_async_io_handler():
    io = IoHandler()

    async def hello(params):
        return "hello"

    io.add_method("say_hello", hello)
    assert await io.handle_request(HELLO) == HELLO_RESPONSE


def test_notification():
    io = IoHandler()
    called = []
    io.add_notification("say_hello", lambda params: called.append(params.value))
    request = '{"jsonrpc": "2.0", "method": "say_hello", "params": [42, 23]}'
    assert io.handle_request_sync(request) is None
    assert called == [[42, 23]]


def test_method_not_found():
    io = IoHandler()
    response = '{"jsonrpc":"2.0","error":{"code":-32601,"message":"Method not found"},"id":1}'
    assert io.handle_request_sync(HELLO) == response


def test_method_alias():
    io = _hello_handler()
    io.add_alias("say_hello_alias", "say_hello")
    request = '{"jsonrpc": "2.0", "method": "say_hello_alias", "params": [42, 23], "id": 1}'
    assert io.handle_request_sync(request) == HELLO_RESPONSE


def test_notification_alias():
    io = IoHandler()
    called = []
    io.add_notification("say_hello", lambda params: called.append(True))
    io.add_alias("say_hello_alias", "say_hello")
    request = '{"jsonrpc": "2.0", "method": "say_hello_alias", "params": [42, 23]}'
    assert io.handle_request_sync(request) is None
    assert called == [True]


def test_alias_to_alias_is_not_followed():
    io = _hello_handler()
    io.add_alias("first", "say_hello")
    io.add_alias("second", "first")
    request = '{"jsonrpc": "2.0", "method": "second", "id": 1}'
    output = parse_response(io.handle_request_sync(request))
    assert output.error == Error.method_not_found()


def test_extending_by_multiple_delegates():
    class Test:
        def abc(self, params):
            return 5

    io = IoHandler()
    first = IoDelegate(Test())
    first.add_method("rpc_test", Test.abc)
    second = IoDelegate(Test())
    second.add_method("rpc_test", Test.abc)
    augment(io, first, second)
    assert isinstance(io.methods["rpc_test"], Method)
    request = '{"jsonrpc": "2.0", "method": "rpc_test", "id": 1}'
    assert parse_response(io.handle_request_sync(request)).result == 5


def test_augment_with_handler_mapping_and_pairs():
    source = _hello_handler()
    other = IoHandler()
    other.add_method("b", lambda params: "b")
    target = IoHandler()
    augment(target, source, dict(other.methods), [("c", Method(lambda p, m: "c"))])
    assert sorted(target.methods) == ["b", "c", "say_hello"]


def test_meta_example():
    io = MetaIoHandler()
    io.add_method_with_meta("say_hello", lambda params, meta: f"Hello World: {meta}")
    response = '{"jsonrpc":"2.0","result":"Hello World: 5","id":1}'
    assert io.handle_request_sync(HELLO, 5) == response


def test_params_example():
    io = IoHandler()
    io.add_method("say_hello", lambda params: f"hello, {params.parse(HelloParams).name}")
    request = '{"jsonrpc": "2.0", "method": "say_hello", "params": { "name": "world" }, "id": 1}'
    assert io.handle_request_sync(request) == '{"jsonrpc":"2.0","result":"hello, world","id":1}'


def test_middleware_example_counts_requests():
    class Counting(Middleware):
        def __init__(self):
            self.seen = []

        async def on_request(self, request, meta, next):
            self.seen.append(meta)
            return await next(request, meta)

    counting = Counting()
    io = MetaIoHandler(middleware=counting)
    io.add_method_with_meta("say_hello", lambda params, meta: f"Hello World: {meta}")
    response = '{"jsonrpc":"2.0","result":"Hello World: 5","id":1}'
    assert io.handle_request_sync(HELLO, 5) == response
    assert io.handle_request_sync(HELLO, 5) == response
    assert counting.seen == [5, 5]


def test_middleware_can_answer_call_directly():
    class Short(Middleware):
        async def on_call(self, call, meta, next):
            return Success(result="intercepted", id=call.id)

    io = MetaIoHandler(middleware=Short())
    io.add_method("say_hello", lambda params: "hello")
    assert parse_response(io.handle_request_sync(HELLO)).result == "intercepted"


def test_chained_middlewares_run_in_order():
    order = []

    class Tag(Middleware):
        def __init__(self, name):
            self.name = name

        async def on_call(self, call, meta, next):
            order.append(self.name)
            return await next(call, meta)

    io = MetaIoHandler(middleware=Chain(Tag("a"), Tag("b")))
    io.add_method("say_hello", lambda params: "hello")
    assert io.handle_request_sync(HELLO) == HELLO_RESPONSE
    assert order == ["a", "b"]


def test_parse_error():
    output = parse_response(IoHandler().handle_request_sync("{not json"))
    assert isinstance(output, Failure)
    assert output.error == Error.parse_error()
    assert output.id is None
    assert output.jsonrpc is not None


def test_parse_error_v1_has_no_version():
    text = IoHandler(Compatibility.V1).handle_request_sync("{not json")
    assert "jsonrpc" not in json.loads(text)


def test_invalid_version_for_v2_handler():
    io = _hello_handler()
    output = parse_response(io.handle_request_sync('{"method": "say_hello", "id": 1}'))
    assert output.error == Error.invalid_version()
    assert output.id == 1


def test_v1_handler_rejects_v2_request():
    io = _hello_handler(compatibility=Compatibility.V1)
    output = parse_response(io.handle_request_sync(HELLO))
    assert output.error.code == ErrorCode.INVALID_REQUEST


def test_notification_with_wrong_version_not_executed():
    io = IoHandler(Compatibility.V1)
    called = []
    io.add_notification("ping", lambda params: called.append(True))
    assert io.handle_request_sync('{"jsonrpc": "2.0", "method": "ping"}') is None
    assert called == []


def test_method_raising_error_gives_failure():
    io = IoHandler()

    def fail(params):
        raise Error(-34)

    io.add_method("fail", fail)
    output = parse_response(io.handle_request_sync('{"jsonrpc":"2.0","method":"fail","id":7}'))
    assert output.error == Error(-34, "Server error")
    assert output.id == 7


def test_batch_skips_notifications():
    io = _hello_handler()
    io.add_notification("note", lambda params: None)
    request = json.dumps(
        [
            {"jsonrpc": "2.0", "method": "say_hello", "id": 1},
            {"jsonrpc": "2.0", "method": "note"},
            {"jsonrpc": "2.0", "method": "say_hello", "id": 2},
        ]
    )
    outputs = parse_response(io.handle_request_sync(request))
    assert [output.id for output in outputs] == [1, 2]
    assert all(output.result == "hello" for output in outputs)


def test_batch_of_notifications_gives_nothing():
    io = IoHandler()
    io.add_notification("note", lambda params: None)
    request = json.dumps([{"jsonrpc": "2.0", "method": "note"}] * 2)
    assert io.handle_request_sync(request) is None


def test_invalid_call_in_batch():
    io = _hello_handler()
    request = '[{}, {"jsonrpc": "2.0", "method": "say_hello", "id": 1}]'
    outputs = parse_response(io.handle_request_sync(request))
    assert outputs[0].error == Error.invalid_request()
    assert outputs[0].id is None
    assert outputs[1].result == "hello"


@pytest.mark.asyncio
async def test_handle_call_directly():
    io = _hello_handler()
    output = await io.handle_call(MethodCall(method="say_hello", id="x"))
    assert output == Success(result="hello", id="x")
    assert await io.handle_call(Notification(method="say_hello")) is None


@pytest.mark.asyncio
async def test_sync_handling_inside_running_loop():
    assert _hello_handler().handle_request_sync(HELLO) == HELLO_RESPONSE