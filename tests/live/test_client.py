"""Tests for the live recognition HTTP client."""
import httpx
import pytest

from app.live.client import RecognitionClient


def make_client(handler) -> RecognitionClient:
    transport = httpx.MockTransport(handler)
    return RecognitionClient(
        "http://testserver",
        client=httpx.AsyncClient(base_url="http://testserver", transport=transport),
    )


async def test_posts_frame_as_multipart():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = request.read()
        return httpx.Response(200, json={
            "message": "Face recognized successfully",
            "recognized": True,
            "person": {"id": 3, "name": "Alice", "confidence": 0.91, "similarity": 0.91,
                       "box": {"x": 1, "y": 2, "width": 80, "height": 90}},
            "confidence": 0.91,
            "source": "live",
        })

    async with make_client(handler) as client:
        result = await client.recognize(b"\xff\xd8\xff jpeg")

    assert seen["path"] == "/api/v1/face/recognize-live"
    assert b'name="image"' in seen["body"]
    assert result.recognized
    assert result.person.id == 3
    assert result.person.box.height == 90


@pytest.mark.parametrize("response", [
    httpx.Response(400, json={"detail": "No faces detected in the image"}),
    httpx.Response(503, json={"detail": "Face recognition model not loaded"}),
    httpx.Response(200, text="not json"),
    httpx.Response(200, json={"unexpected": True}),
])
async def test_failures_report_no_identity(response):
    async with make_client(lambda request: response) as client:
        assert await client.recognize(b"frame") is None


async def test_transport_error_reports_no_identity():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        assert await client.recognize(b"frame") is None
