import pytest

from rpcore.errors import Error, ErrorCode
from rpcore.params import Params, Version
from rpcore.request import Notification
from rpcore.response import (
    Failure,
    Success,
    dumps_response,
    invalid_request_output,
    make_output,
    output_from_json,
    output_id,
    output_method,
    output_result,
    output_to_json,
    output_version,
    parse_response,
    response_from_error,
)


def test_success_output_serialize():
    so = Success(jsonrpc=Version.V2, result=1, id=1)
    assert dumps_response(so) == '{"jsonrpc":"2.0","result":1,"id":1}'


def test_success_output_deserialize():
    deserialized = parse_response('{"jsonrpc":"2.0","result":1,"id":1}')
    assert deserialized == Success(jsonrpc=Version.V2, result=1, id=1)


def test_failure_output_serialize():
    fo = Failure(jsonrpc=Version.V2, error=Error.parse_error(), id=1)
    assert (
        dumps_response(fo)
        == '{"jsonrpc":"2.0","error":{"code":-32700,"message":"Parse error"},"id":1}'
    )


def test_failure_output_serialize_jsonrpc_1():
    fo = Failure(jsonrpc=None, error=Error.parse_error(), id=1)
    assert dumps_response(fo) == '{"error":{"code":-32700,"message":"Parse error"},"id":1}'


def test_failure_output_deserialize():
    dfo = '{"jsonrpc":"2.0","error":{"code":-32700,"message":"Parse error"},"id":1}'
    assert parse_response(dfo) == Failure(
        jsonrpc=Version.V2, error=Error.parse_error(), id=1
    )


def test_batch_response_deserialize():
    dbr = (
        '[{"jsonrpc":"2.0","result":1,"id":1},'
        '{"jsonrpc":"2.0","error":{"code":-32700,"message":"Parse error"},"id":1}]'
    )
    assert parse_response(dbr) == [
        Success(jsonrpc=Version.V2, result=1, id=1),
        Failure(jsonrpc=Version.V2, error=Error.parse_error(), id=1),
    ]


def test_notification_deserialize():
    dsr = '{"jsonrpc":"2.0","method":"hello","params":[10]}'
    assert parse_response(dsr) == Notification(
        jsonrpc=Version.V2, method="hello", params=Params([10])
    )


def test_handle_incorrect_responses():
    dsr = """
{
    "id": 2,
    "jsonrpc": "2.0",
    "result": "0x62d3776be72cc7fa62cad6fe8ed873d9bc7ca2ee576e400d987419a3f21079d5",
    "error": {
        "message": "VM Exception while processing transaction: revert",
        "code": -32000,
        "data": {}
    }
}"""
    with pytest.raises(ValueError):
        parse_response(dsr)


def test_malformed_json_raises():
    with pytest.raises(ValueError):
        parse_response("{not json")


def test_batch_round_trip():
    batch = [
        Success(jsonrpc=Version.V2, result={"a": [1, None]}, id="x"),
        Failure(jsonrpc=None, error=Error.method_not_found(), id=7),
        Notification(jsonrpc=Version.V2, method="tick", params=Params({"n": 1})),
    ]
    assert parse_response(dumps_response(batch)) == batch


def test_make_output_success_and_failure():
    assert make_output("ok", 3, Version.V2) == Success(jsonrpc=Version.V2, result="ok", id=3)
    error = Error.internal_error()
    assert make_output(error, 3, None) == Failure(jsonrpc=None, error=error, id=3)


def test_invalid_request_output():
    output = invalid_request_output("abc", Version.V2)
    assert output.error == Error.invalid_request()
    assert output.error.code == ErrorCode.INVALID_REQUEST
    assert output_id(output) == "abc"


def test_accessors():
    notification = Notification(jsonrpc=None, method="hello", params=Params([1]))
    success = Success(jsonrpc=Version.V2, result=1, id=9)
    assert output_id(notification) is None
    assert output_method(notification) == "hello"
    assert output_method(success) is None
    assert output_version(success) is Version.V2
    assert output_version(notification) is None
    assert output_id(success) == 9


def test_output_result_success_and_failure():
    assert output_result(Success(jsonrpc=Version.V2, result=[1, 2], id=1)) == [1, 2]
    with pytest.raises(Error) as info:
        output_result(Failure(jsonrpc=Version.V2, error=Error.method_not_found(), id=1))
    assert info.value == Error.method_not_found()


def test_output_result_subscription_value():
    notification = Notification(
        method="hello", params=Params({"subscription": 5, "result": [0]})
    )
    assert output_result(notification) == [0]


def test_output_result_subscription_error():
    notification = Notification(
        method="hello",
        params=Params({"subscription": 5, "error": {"code": -32000, "message": "boom"}}),
    )
    with pytest.raises(Error) as info:
        output_result(notification)
    assert info.value.code == -32000
    assert info.value.message == "boom"


def test_output_result_subscription_bad_error_is_parse_error():
    notification = Notification(
        method="hello", params=Params({"subscription": 5, "error": "nope"})
    )
    with pytest.raises(Error) as info:
        output_result(notification)
    assert info.value == Error.parse_error()


def test_output_result_plain_notification_gives_params():
    notification = Notification(method="hello", params=Params([10]))
    assert output_result(notification) == [10]


def test_response_from_error_has_null_id():
    failure = response_from_error(Error.parse_error(), Version.V2)
    assert output_id(failure) is None
    assert output_to_json(failure)["error"] == {"code": -32700, "message": "Parse error"}
    assert output_to_json(failure)["id"] is None


def test_output_from_json_rejects_non_object():
    with pytest.raises(ValueError):
        output_from_json([1, 2])