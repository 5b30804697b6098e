"""
HTTP transport shared by every endpoint group.

Endpoint modules describe a call as an ``HttpRequest`` and hand it to
``HttpTransport.send``; everything HTTP-specific (query cleanup, status
handling, JSON decoding, error wrapping) lives here so the endpoint modules
stay declarative.
"""

from __future__ import annotations

import gzip
import json
from dataclasses import dataclass, replace
from typing import Any, Callable, TypeVar

import httpx

from act_client._version import __version__
from act_client.exceptions import REQUEST_FAILED_ERROR_MESSAGE, RequestFailedError
from act_client.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_USER_AGENT = f"act-client-python/{__version__}"

# Bodies quoted in error messages are cut to this many characters
_ERROR_BODY_PREVIEW = 500

_TEXT_MIME_TYPES = {
    "application/xml",
    "application/javascript",
    "application/x-www-form-urlencoded",
}

T = TypeVar("T")


@dataclass(frozen=True)
class HttpRequest:
    """Description of a single outbound HTTP call."""

    url: str
    method: str = "GET"
    params: dict[str, Any] | None = None
    headers: dict[str, str] | None = None
    body: bytes | str | None = None
    json_body: Any = None
    expect_json: bool = False
    raw_response: bool = False
    follow_redirects: bool = False

    def with_url(self, url: str) -> "HttpRequest":
        return replace(self, url=url)


def _clean_params(params: dict[str, Any] | None) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for name, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = 1 if value else 0
        cleaned[name] = value
    return cleaned


def _preview(text: str | None) -> str:
    if not text:
        return ""
    if len(text) <= _ERROR_BODY_PREVIEW:
        return text
    return text[:_ERROR_BODY_PREVIEW] + "..."


def redact_url(url: httpx.URL | str) -> str:
    """Return ``url`` with any ``token`` query parameter masked."""
    try:
        parsed = httpx.URL(str(url))
    except httpx.InvalidURL:
        return str(url)
    if "token" in parsed.params:
        parsed = parsed.copy_set_param("token", "***")
    return str(parsed)


class HttpTransport:
    """Thin wrapper over ``httpx.Client`` that raises ``RequestFailedError``.

    Redirects are followed only for requests that set ``follow_redirects``
    (record and log reads, which the API redirects to signed storage URLs);
    a 3xx anywhere else is a failure. Gzip-encoded responses are decoded by
    httpx.
    """

    def __init__(
        self,
        *,
        timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        client: httpx.Client | None = None,
    ) -> None:
        self._owns_client = client is None
        if client is None:
            client = httpx.Client(
                timeout=timeout,
                headers={"User-Agent": user_agent},
            )
        self._client = client

    @property
    def client(self) -> httpx.Client:
        return self._client

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def send(self, request: HttpRequest) -> Any:
        """Perform ``request`` and return its decoded result.

        Returns:
            Parsed JSON when ``expect_json`` is set, the ``httpx.Response``
            when ``raw_response`` is set, otherwise the body bytes.

        Raises:
            RequestFailedError: On network errors, non-2xx statuses and
                undecodable JSON bodies.
        """
        method = request.method.upper()
        params = _clean_params(request.params)
        logger.debug("HTTP {method} {url}", method=method, url=redact_url(request.url))
        try:
            response = self._client.request(
                method,
                request.url,
                params=params or None,
                headers=request.headers,
                content=request.body,
                json=request.json_body,
                follow_redirects=request.follow_redirects,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            safe_url = redact_url(request.url)
            raise RequestFailedError(
                f"{REQUEST_FAILED_ERROR_MESSAGE} {method} {safe_url}: {exc}",
                url=safe_url,
                method=method,
            ) from exc

        safe_url = redact_url(response.request.url)
        if not response.is_success:
            text = response.text
            logger.debug(
                "HTTP {method} {url} failed with {status}",
                method=method,
                url=safe_url,
                status=response.status_code,
            )
            raise RequestFailedError(
                f"{REQUEST_FAILED_ERROR_MESSAGE} {method} {safe_url} returned "
                f"{response.status_code}: {_preview(text)}",
                status_code=response.status_code,
                body=text,
                url=safe_url,
                method=method,
            )

        if request.raw_response:
            return response
        if request.expect_json:
            try:
                return response.json()
            except ValueError as exc:
                raise RequestFailedError(
                    f"{REQUEST_FAILED_ERROR_MESSAGE} {method} {safe_url} returned invalid JSON",
                    status_code=response.status_code,
                    body=_preview(response.text),
                    url=safe_url,
                    method=method,
                ) from exc
        return response.content


def pluck_data(payload: Any) -> Any:
    """Unwrap the ``{"data": ...}`` envelope every JSON endpoint responds with."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    raise RequestFailedError(
        "Response is missing the data envelope",
        body=_preview(json.dumps(payload, default=str)),
    )


def catch_not_found(call: Callable[[], T]) -> T | None:
    """Run ``call`` and translate a 404 failure into ``None``.

    Only read endpoints use this; write paths surface every non-2xx status.
    """
    try:
        return call()
    except RequestFailedError as exc:
        if exc.is_not_found:
            return None
        raise


def _as_bytes(body: bytes | bytearray | str) -> bytes:
    if isinstance(body, str):
        return body.encode("utf-8")
    return bytes(body)


def gzip_bytes(body: bytes | bytearray | str) -> bytes:
    """Gzip ``body`` with a fixed mtime so equal input gives equal output."""
    return gzip.compress(_as_bytes(body), mtime=0)


def gunzip_bytes(data: bytes) -> bytes:
    return gzip.decompress(data)


def _split_content_type(content_type: str) -> tuple[str, str]:
    mime, _, raw_params = content_type.partition(";")
    charset = "utf-8"
    for param in raw_params.split(";"):
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset" and value.strip():
            charset = value.strip().strip('"')
    return mime.strip().lower(), charset


def parse_body(body: bytes, content_type: str | None) -> Any:
    """Decode a record body according to its declared content type.

    JSON types become Python objects, textual types become ``str``, anything
    else is returned as bytes.
    """
    if not content_type:
        return body
    mime, charset = _split_content_type(content_type)
    try:
        if mime == "application/json" or mime.endswith("+json"):
            return json.loads(body.decode(charset))
        if mime.startswith("text/") or mime in _TEXT_MIME_TYPES or mime.endswith("+xml"):
            return body.decode(charset)
    except (LookupError, ValueError) as exc:
        raise RequestFailedError(
            f"Record body could not be decoded as {mime}: {exc}",
            body=_preview(body.decode("utf-8", errors="replace")),
        ) from exc
    return body


__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_USER_AGENT",
    "HttpRequest",
    "HttpTransport",
    "catch_not_found",
    "gunzip_bytes",
    "gzip_bytes",
    "parse_body",
    "pluck_data",
    "redact_url",
]
