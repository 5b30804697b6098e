from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from act_client.exceptions import MalformedSignedUrlResponseError, RequestFailedError
from act_client.transport import DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT, pluck_data
from act_client.validation import check_param

DEFAULT_BASE_URL = "https://api.apify.com"
DEFAULT_CONTENT_TYPE = "text/plain; charset=utf-8"


class ActStatus(str, Enum):
    READY = "READY"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED-OUT"
    ABORTED = "ABORTED"


# Statuses of runs/builds that may still change
UNFINISHED_STATUSES = frozenset({ActStatus.READY.value, ActStatus.RUNNING.value})


class ClientOptions(BaseModel):
    """Validated connection options shared by every endpoint group."""

    model_config = ConfigDict(frozen=True)

    base_url: str = DEFAULT_BASE_URL
    token: str | None = None
    store_id: str | None = None
    timeout_seconds: float = Field(DEFAULT_TIMEOUT_SECONDS, gt=0)
    user_agent: str = DEFAULT_USER_AGENT

    @field_validator("base_url")
    @classmethod
    def _normalise_base_url(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError("base_url must be an absolute http(s) URL")
        return value

    @field_validator("token", "store_id", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SignedUrlResponse(BaseModel):
    """Payload of the direct-upload-url endpoint (inside the data envelope)."""

    model_config = ConfigDict(populate_by_name=True)

    signed_url: str = Field(alias="signedUrl", min_length=1)

    @field_validator("signed_url")
    @classmethod
    def _require_absolute_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError("signedUrl must be an absolute http(s) URL")
        return value

    @classmethod
    def from_payload(cls, payload: Any) -> "SignedUrlResponse":
        """Read ``data.signedUrl`` from a full JSON response.

        Raises:
            MalformedSignedUrlResponseError: If the envelope or the field is
                missing, or the URL is not absolute.
        """
        try:
            return cls.model_validate(pluck_data(payload))
        except RequestFailedError as exc:
            raise MalformedSignedUrlResponseError("Direct upload URL response has no data object") from exc
        except ValidationError as exc:
            raise MalformedSignedUrlResponseError(
                "Direct upload URL response has no usable data.signedUrl"
            ) from exc


class KeyValueStoreRecord(BaseModel):
    content_type: str | None = None
    body: Any = None


@dataclass(frozen=True)
class PutRecordOptions:
    """Validated arguments of a single record upload."""

    store_id: str
    key: str
    body: bytes | bytearray | str
    content_type: str = DEFAULT_CONTENT_TYPE

    @classmethod
    def build(
        cls,
        *,
        store_id: Any,
        key: Any,
        body: Any,
        content_type: Any = None,
    ) -> "PutRecordOptions":
        check_param(store_id, "store_id", str)
        check_param(key, "key", str)
        check_param(content_type, "content_type", str, optional=True)
        check_param(body, "body", (bytes, bytearray, str))
        return cls(
            store_id=store_id,
            key=key,
            body=body,
            content_type=content_type if content_type is not None else DEFAULT_CONTENT_TYPE,
        )


__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_CONTENT_TYPE",
    "ActStatus",
    "UNFINISHED_STATUSES",
    "ClientOptions",
    "SignedUrlResponse",
    "KeyValueStoreRecord",
    "PutRecordOptions",
]
