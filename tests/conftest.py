from __future__ import annotations

import json
from typing import Any

import httpx
import pytest
from loguru import logger

from act_client.client import ActClient
from act_client.transport import HttpTransport

BASE_URL = "https://api.test"
TOKEN = "secret-token"


class FakeApi:
    """Routes requests by (method, url without query) and records every call."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], Any] = {}

    def route(
        self,
        method: str,
        url: str,
        *,
        status: int = 200,
        json_body: Any = None,
        content: bytes = b"",
        headers: dict[str, str] | None = None,
        error: Exception | None = None,
    ) -> None:
        self._routes[(method, url)] = {
            "status": status,
            "json_body": json_body,
            "content": content,
            "headers": headers or {},
            "error": error,
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, str(request.url).split("?")[0])
        route = self._routes.get(key)
        if route is None:
            return httpx.Response(404, json={"error": {"type": "record-not-found"}})
        if route["error"] is not None:
            raise route["error"]
        if route["json_body"] is not None:
            headers = {"content-type": "application/json", **route["headers"]}
            return httpx.Response(route["status"], content=json.dumps(route["json_body"]).encode(), headers=headers)
        return httpx.Response(route["status"], content=route["content"], headers=route["headers"])


@pytest.fixture()
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture()
def transport(fake_api: FakeApi):
    http_client = httpx.Client(transport=httpx.MockTransport(fake_api.handler))
    yield HttpTransport(client=http_client)
    http_client.close()


@pytest.fixture()
def client(transport: HttpTransport) -> ActClient:
    return ActClient(base_url=BASE_URL, token=TOKEN, store_id="store1", transport=transport)


@pytest.fixture(autouse=True)
def _reset_loguru():
    yield
    logger.remove()
    logger.disable("act_client")
