"""
Key-value store endpoints.

Records are always uploaded gzip-compressed. Small payloads go through the
API server with a single PUT; payloads whose compressed size reaches
``SIGNED_URL_UPLOAD_MIN_BYTESIZE`` are uploaded straight to object storage
through a signed URL requested from the API first.
"""

from __future__ import annotations

from typing import Any

from act_client.logging_config import get_logger
from act_client.models import (
    DEFAULT_CONTENT_TYPE,
    KeyValueStoreRecord,
    PutRecordOptions,
    SignedUrlResponse,
)
from act_client.resource import ResourceClient
from act_client.transport import (
    HttpRequest,
    HttpTransport,
    catch_not_found,
    gzip_bytes,
    parse_body,
    pluck_data,
)
from act_client.validation import check_param

logger = get_logger(__name__)

BASE_PATH = "/v2/key-value-stores"

# Must match the server-side threshold exactly
SIGNED_URL_UPLOAD_MIN_BYTESIZE = 1024 * 256


class KeyValueStores(ResourceClient):
    """Client for ``/v2/key-value-stores``.

    ``store_id`` is the default store used when a record method is called
    without an explicit ``store_id``.
    """

    base_path = BASE_PATH

    def __init__(
        self,
        transport: HttpTransport,
        base_url: str,
        token: str | None = None,
        store_id: str | None = None,
    ) -> None:
        super().__init__(transport, base_url, token)
        self.store_id = store_id

    def _resolve_store_id(self, store_id: str | None) -> Any:
        return store_id if store_id is not None else self.store_id

    # --- Stores -------------------------------------------------------------------

    def get_or_create_store(self, store_name: str) -> dict[str, Any]:
        """Return the store named ``store_name``, creating it when missing."""
        check_param(self.token, "token", str)
        check_param(store_name, "store_name", str)
        payload = self._send(
            url=self._url(),
            method="POST",
            params={"name": store_name, "token": self.token},
            expect_json=True,
        )
        return pluck_data(payload)

    def list_stores(
        self,
        offset: int | None = None,
        limit: int | None = None,
        desc: bool | None = None,
        unnamed: bool | None = None,
    ) -> dict[str, Any]:
        """Return a pagination list of the caller's stores (oldest first unless ``desc``)."""
        check_param(self.token, "token", str)
        check_param(limit, "limit", int, optional=True)
        check_param(offset, "offset", int, optional=True)
        check_param(desc, "desc", bool, optional=True)
        check_param(unnamed, "unnamed", bool, optional=True)
        payload = self._send(
            url=self._url(),
            params={
                "token": self.token,
                "limit": limit or None,
                "offset": offset or None,
                "desc": 1 if desc else None,
                "unnamed": 1 if unnamed else None,
            },
            expect_json=True,
        )
        return pluck_data(payload)

    def get_store(self, store_id: str | None = None) -> dict[str, Any] | None:
        store_id = check_param(self._resolve_store_id(store_id), "store_id", str)
        url = self._url(store_id)
        return catch_not_found(lambda: pluck_data(self._send(url=url, expect_json=True)))

    def delete_store(self, store_id: str | None = None) -> None:
        store_id = check_param(self._resolve_store_id(store_id), "store_id", str)
        self._send(url=self._url(store_id), method="DELETE")

    # --- Records ------------------------------------------------------------------

    def get_record(
        self,
        key: str,
        store_id: str | None = None,
        disable_body_parser: bool = False,
        disable_redirect: bool = False,
    ) -> KeyValueStoreRecord | None:
        """Fetch a record, or ``None`` when the store or key does not exist.

        The body is decoded according to the record's content type unless
        ``disable_body_parser`` is set, in which case raw bytes are returned.
        """
        store_id = check_param(self._resolve_store_id(store_id), "store_id", str)
        check_param(key, "key", str)
        check_param(disable_body_parser, "disable_body_parser", bool, optional=True)
        check_param(disable_redirect, "disable_redirect", bool, optional=True)

        request = HttpRequest(
            url=self._url(store_id, "records", key),
            params={"disableRedirect": 1 if disable_redirect else None},
            raw_response=True,
            follow_redirects=True,
        )
        response = catch_not_found(lambda: self._transport.send(request))
        if response is None:
            return None
        content_type = response.headers.get("content-type")
        body = response.content if disable_body_parser else parse_body(response.content, content_type)
        return KeyValueStoreRecord(content_type=content_type, body=body)

    def put_record(
        self,
        key: str,
        body: bytes | bytearray | str,
        content_type: str | None = None,
        store_id: str | None = None,
    ) -> bytes:
        """Store ``body`` under ``key``.

        The body is gzip-compressed. When the compressed size is below
        ``SIGNED_URL_UPLOAD_MIN_BYTESIZE`` it is PUT to the record endpoint;
        otherwise a signed upload URL is requested and the same PUT is sent
        there instead. Failures are never retried and the two paths never
        fall back to each other.

        Args:
            key: Record key.
            body: Record value; ``str`` is encoded as UTF-8.
            content_type: Defaults to ``text/plain; charset=utf-8``.
            store_id: Overrides the client's default store.

        Returns:
            Body of the final PUT response (usually empty).

        Raises:
            InvalidParameterError: Before any I/O, for malformed arguments.
            MalformedSignedUrlResponseError: If no signed URL was returned.
            RequestFailedError: If any HTTP call fails.
        """
        options = PutRecordOptions.build(
            store_id=self._resolve_store_id(store_id),
            key=key,
            body=body,
            content_type=content_type,
        )
        record_url = self._url(options.store_id, "records", options.key)

        gzipped = gzip_bytes(options.body)
        upload = HttpRequest(
            url=record_url,
            method="PUT",
            body=gzipped,
            headers={
                "Content-Type": options.content_type,
                "Content-Encoding": "gzip",
            },
        )

        if len(gzipped) < SIGNED_URL_UPLOAD_MIN_BYTESIZE:
            logger.debug(
                "Uploading record {key} ({size} B gzipped) through the API",
                key=options.key,
                size=len(gzipped),
            )
            return self._transport.send(upload)

        logger.debug(
            "Uploading record {key} ({size} B gzipped) through a signed URL",
            key=options.key,
            size=len(gzipped),
        )
        payload = self._send(
            url=f"{record_url}/direct-upload-url",
            headers={"Content-Type": options.content_type},
            expect_json=True,
        )
        signed = SignedUrlResponse.from_payload(payload)
        return self._transport.send(upload.with_url(signed.signed_url))

    def delete_record(self, key: str, store_id: str | None = None) -> None:
        store_id = check_param(self._resolve_store_id(store_id), "store_id", str)
        check_param(key, "key", str)
        self._send(url=self._url(store_id, "records", key), method="DELETE")

    def list_keys(
        self,
        store_id: str | None = None,
        exclusive_start_key: str | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Return a page of keys; keys up to and including ``exclusive_start_key`` are skipped."""
        store_id = check_param(self._resolve_store_id(store_id), "store_id", str)
        check_param(exclusive_start_key, "exclusive_start_key", str, optional=True, allow_empty=True)
        check_param(limit, "limit", int, optional=True)
        payload = self._send(
            url=self._url(store_id, "keys"),
            params={
                "exclusiveStartKey": exclusive_start_key or None,
                "limit": limit or None,
            },
            expect_json=True,
        )
        return pluck_data(payload)


__all__ = [
    "BASE_PATH",
    "DEFAULT_CONTENT_TYPE",
    "SIGNED_URL_UPLOAD_MIN_BYTESIZE",
    "KeyValueStores",
]
