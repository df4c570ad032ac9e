import array

import httpx
import pytest

from s3file.errors import UnsupportedPayloadError
from s3file.payload import (
    Blob,
    BlobPayload,
    BytesPayload,
    RequestPayload,
    ResponsePayload,
    TextPayload,
    classify,
    normalize,
)


def test_classify_each_kind() -> None:
    assert isinstance(classify("hi"), TextPayload)
    assert isinstance(classify(b"hi"), BytesPayload)
    assert isinstance(classify(bytearray(b"hi")), BytesPayload)
    assert isinstance(classify(memoryview(b"hi")), BytesPayload)
    assert isinstance(classify(array.array("B", [1, 2])), BytesPayload)
    assert isinstance(classify(httpx.Request("PUT", "https://example.com", content=b"x")), RequestPayload)
    assert isinstance(classify(httpx.Response(200, content=b"x")), ResponsePayload)
    assert isinstance(classify(Blob(b"x", "text/plain")), BlobPayload)


@pytest.mark.parametrize("data", [123, 1.5, None, {"a": 1}, [b"x"], object()])
def test_classify_rejects_unknown_shapes(data: object) -> None:
    with pytest.raises(UnsupportedPayloadError):
        classify(data)


@pytest.mark.anyio
async def test_text_is_utf8_encoded() -> None:
    payload = await normalize("héllo")
    assert payload.body == "héllo".encode("utf-8")
    assert payload.content_type is None


@pytest.mark.anyio
async def test_memoryview_slice_is_copied() -> None:
    buffer = bytearray(b"0123456789")
    payload = await normalize(memoryview(buffer)[2:5], "application/octet-stream")
    buffer[2:5] = b"xxx"
    assert payload.body == b"234"
    assert payload.content_type == "application/octet-stream"


@pytest.mark.anyio
async def test_response_content_type_is_used_as_fallback() -> None:
    response = httpx.Response(200, content=b'{"a": 1}', headers={"content-type": "application/json"})
    payload = await normalize(response)
    assert payload.body == b'{"a": 1}'
    assert payload.content_type == "application/json"


@pytest.mark.anyio
async def test_explicit_content_type_wins_over_payload() -> None:
    response = httpx.Response(200, content=b"{}", headers={"content-type": "application/json"})
    payload = await normalize(response, "text/plain")
    assert payload.content_type == "text/plain"


@pytest.mark.anyio
async def test_request_body_and_type() -> None:
    request = httpx.Request("POST", "https://example.com", content=b"<p/>", headers={"content-type": "text/html"})
    payload = await normalize(request)
    assert payload.body == b"<p/>"
    assert payload.content_type == "text/html"


@pytest.mark.anyio
async def test_blob_type_and_empty_type() -> None:
    assert (await normalize(Blob(b"abc", "image/png"))).content_type == "image/png"
    assert (await normalize(Blob(b"abc"))).content_type is None
