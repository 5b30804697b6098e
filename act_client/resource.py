"""Shared plumbing for endpoint groups (acts, key-value stores, logs)."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from act_client.transport import HttpRequest, HttpTransport
from act_client.validation import check_param


class ResourceClient:
    """Base for one endpoint group rooted at ``base_path`` below ``base_url``."""

    base_path = ""

    def __init__(self, transport: HttpTransport, base_url: str, token: str | None = None) -> None:
        self._transport = transport
        self.base_url = base_url
        self.token = token

    def configure(self, *, base_url: str, token: str | None) -> None:
        self.base_url = base_url
        self.token = token

    def _url(self, *segments: str) -> str:
        check_param(self.base_url, "base_url", str)
        root = self.base_url.rstrip("/") + self.base_path
        if not segments:
            return root
        path = "/".join(quote(str(segment), safe="") for segment in segments)
        return f"{root}/{path}"

    def _send(self, **kwargs: Any) -> Any:
        return self._transport.send(HttpRequest(**kwargs))


__all__ = ["ResourceClient"]
