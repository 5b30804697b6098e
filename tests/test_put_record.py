"""Record upload: gzip compression and the direct vs. signed-URL decision."""

import random

import httpx
import pytest

from act_client.exceptions import (
    InvalidParameterError,
    MalformedSignedUrlResponseError,
    RequestFailedError,
)
from act_client.key_value_stores import SIGNED_URL_UPLOAD_MIN_BYTESIZE
from act_client.transport import gunzip_bytes, gzip_bytes

RECORDS = "https://api.test/v2/key-value-stores/store1/records"
SIGNED_URL = "https://storage.test/bucket/big"


def _incompressible(size: int) -> bytes:
    return random.Random(1234).randbytes(size)


def test_threshold_is_256_kib():
    assert SIGNED_URL_UPLOAD_MIN_BYTESIZE == 262144


def test_small_record_is_put_through_the_api(client, fake_api):
    fake_api.route("PUT", f"{RECORDS}/foo")

    client.key_value_stores.put_record("foo", "bar")

    assert len(fake_api.requests) == 1
    request = fake_api.requests[0]
    assert request.method == "PUT"
    assert str(request.url) == f"{RECORDS}/foo"
    assert request.headers["Content-Encoding"] == "gzip"
    assert request.headers["Content-Type"] == "text/plain; charset=utf-8"
    assert request.content == gzip_bytes("bar")
    assert gunzip_bytes(request.content) == b"bar"


def test_large_record_goes_through_signed_url(client, fake_api):
    body = _incompressible(300_000)
    fake_api.route(
        "GET",
        f"{RECORDS}/big/direct-upload-url",
        json_body={"data": {"signedUrl": f"{SIGNED_URL}?signature=abc"}},
    )
    fake_api.route("PUT", SIGNED_URL)

    client.key_value_stores.put_record("big", body, content_type="application/octet-stream")

    assert [r.method for r in fake_api.requests] == ["GET", "PUT"]
    url_request, upload = fake_api.requests
    assert url_request.headers["Content-Type"] == "application/octet-stream"
    assert "Content-Encoding" not in url_request.headers
    assert str(upload.url) == f"{SIGNED_URL}?signature=abc"
    assert upload.headers["Content-Type"] == "application/octet-stream"
    assert upload.headers["Content-Encoding"] == "gzip"
    assert len(upload.content) >= SIGNED_URL_UPLOAD_MIN_BYTESIZE
    assert gunzip_bytes(upload.content) == body


def test_decision_uses_compressed_size(client, fake_api):
    fake_api.route("PUT", f"{RECORDS}/repetitive")
    body = b"a" * (1024 * 1024)

    client.key_value_stores.put_record("repetitive", body)

    assert len(fake_api.requests) == 1
    assert fake_api.requests[0].method == "PUT"
    assert gunzip_bytes(fake_api.requests[0].content) == body


@pytest.mark.parametrize(
    "compressed_size, expected_methods",
    [
        (SIGNED_URL_UPLOAD_MIN_BYTESIZE - 1, ["PUT"]),
        (SIGNED_URL_UPLOAD_MIN_BYTESIZE, ["GET", "PUT"]),
    ],
)
def test_threshold_boundary(client, fake_api, monkeypatch, compressed_size, expected_methods):
    monkeypatch.setattr(
        "act_client.key_value_stores.gzip_bytes",
        lambda body: b"x" * compressed_size,
    )
    fake_api.route("PUT", f"{RECORDS}/edge")
    fake_api.route("GET", f"{RECORDS}/edge/direct-upload-url", json_body={"data": {"signedUrl": SIGNED_URL}})
    fake_api.route("PUT", SIGNED_URL)

    client.key_value_stores.put_record("edge", "payload")

    assert [r.method for r in fake_api.requests] == expected_methods


@pytest.mark.parametrize(
    "kwargs, param",
    [
        ({"key": "", "body": "bar"}, "key"),
        ({"key": None, "body": "bar"}, "key"),
        ({"key": 42, "body": "bar"}, "key"),
        ({"key": "foo", "body": ""}, "body"),
        ({"key": "foo", "body": None}, "body"),
        ({"key": "foo", "body": b""}, "body"),
        ({"key": "foo", "body": {"a": 1}}, "body"),
        ({"key": "foo", "body": "bar", "store_id": ""}, "store_id"),
        ({"key": "foo", "body": "bar", "content_type": ""}, "content_type"),
        ({"key": "foo", "body": "bar", "content_type": 7}, "content_type"),
    ],
)
def test_invalid_parameters_fail_before_any_io(client, fake_api, monkeypatch, kwargs, param):
    def _no_compression(body):
        raise AssertionError("compression must not run for invalid input")

    monkeypatch.setattr("act_client.key_value_stores.gzip_bytes", _no_compression)

    with pytest.raises(InvalidParameterError) as excinfo:
        client.key_value_stores.put_record(**kwargs)

    assert excinfo.value.param == param
    assert excinfo.value.details["param"] == param
    assert fake_api.requests == []


def test_missing_store_id_fails_without_default(client, fake_api):
    client.set_options(store_id=None)

    with pytest.raises(InvalidParameterError) as excinfo:
        client.key_value_stores.put_record("foo", "bar")

    assert excinfo.value.param == "store_id"
    assert fake_api.requests == []


def test_explicit_store_id_overrides_default(client, fake_api):
    fake_api.route("PUT", "https://api.test/v2/key-value-stores/other/records/foo")

    client.key_value_stores.put_record("foo", b"\x00\x01", store_id="other")

    assert str(fake_api.requests[0].url).endswith("/other/records/foo")
    assert gunzip_bytes(fake_api.requests[0].content) == b"\x00\x01"


def test_missing_signed_url_stops_before_upload(client, fake_api):
    fake_api.route("GET", f"{RECORDS}/big/direct-upload-url", json_body={"data": {}})

    with pytest.raises(MalformedSignedUrlResponseError):
        client.key_value_stores.put_record("big", _incompressible(300_000))

    assert [r.method for r in fake_api.requests] == ["GET"]


@pytest.mark.parametrize(
    "payload",
    [
        {"data": {"signedUrl": "/bucket/big"}},
        {"data": {"signedUrl": "storage.test/bucket/big"}},
        {"data": {"signedUrl": "ftp://storage.test/bucket/big"}},
        {"data": "https://storage.test/bucket/big"},
        {"signedUrl": "https://storage.test/bucket/big"},
    ],
)
def test_unusable_signed_url_response_stops_before_upload(client, fake_api, payload):
    fake_api.route("GET", f"{RECORDS}/big/direct-upload-url", json_body=payload)

    with pytest.raises(MalformedSignedUrlResponseError):
        client.key_value_stores.put_record("big", _incompressible(300_000))

    assert [r.method for r in fake_api.requests] == ["GET"]


def test_redirect_on_direct_put_is_not_followed(client, fake_api):
    fake_api.route("PUT", f"{RECORDS}/foo", status=307, headers={"location": "https://elsewhere.test/x"})
    fake_api.route("PUT", "https://elsewhere.test/x")

    with pytest.raises(RequestFailedError) as excinfo:
        client.key_value_stores.put_record("foo", "bar")

    assert excinfo.value.status_code == 307
    assert len(fake_api.requests) == 1


def test_redirect_on_signed_upload_is_not_followed(client, fake_api):
    fake_api.route("GET", f"{RECORDS}/big/direct-upload-url", json_body={"data": {"signedUrl": SIGNED_URL}})
    fake_api.route("PUT", SIGNED_URL, status=302, headers={"location": "https://elsewhere.test/x"})
    fake_api.route("PUT", "https://elsewhere.test/x")

    with pytest.raises(RequestFailedError) as excinfo:
        client.key_value_stores.put_record("big", _incompressible(300_000))

    assert excinfo.value.status_code == 302
    assert [r.method for r in fake_api.requests] == ["GET", "PUT"]


def test_failed_signed_url_request_is_not_retried_or_downgraded(client, fake_api):
    fake_api.route("GET", f"{RECORDS}/big/direct-upload-url", status=500, content=b"boom")
    fake_api.route("PUT", f"{RECORDS}/big")

    with pytest.raises(RequestFailedError) as excinfo:
        client.key_value_stores.put_record("big", _incompressible(300_000))

    assert excinfo.value.status_code == 500
    assert [r.method for r in fake_api.requests] == ["GET"]


def test_not_found_on_put_is_an_error(client, fake_api):
    # no route registered: the fake API answers 404
    with pytest.raises(RequestFailedError) as excinfo:
        client.key_value_stores.put_record("foo", "bar")

    assert excinfo.value.is_not_found
    assert len(fake_api.requests) == 1


def test_network_error_on_signed_upload_propagates(client, fake_api):
    fake_api.route("GET", f"{RECORDS}/big/direct-upload-url", json_body={"data": {"signedUrl": SIGNED_URL}})
    fake_api.route("PUT", SIGNED_URL, error=httpx.ConnectError("connection refused"))

    with pytest.raises(RequestFailedError) as excinfo:
        client.key_value_stores.put_record("big", _incompressible(300_000))

    assert excinfo.value.status_code is None
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)
    assert len(fake_api.requests) == 2


def test_returns_body_of_final_put(client, fake_api):
    fake_api.route("PUT", f"{RECORDS}/foo", content=b"")

    assert client.key_value_stores.put_record("foo", "bar") == b""
