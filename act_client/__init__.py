"""Python client for the act platform REST API."""

from loguru import logger

from act_client._version import __version__
from act_client.client import ActClient
from act_client.exceptions import (
    ActClientError,
    ConfigurationError,
    InvalidParameterError,
    MalformedSignedUrlResponseError,
    RequestFailedError,
)
from act_client.key_value_stores import SIGNED_URL_UPLOAD_MIN_BYTESIZE
from act_client.models import ClientOptions, KeyValueStoreRecord

# Library logs stay silent until the application calls setup_logging()
logger.disable("act_client")

__all__ = [
    "__version__",
    "ActClient",
    "ActClientError",
    "ClientOptions",
    "ConfigurationError",
    "InvalidParameterError",
    "KeyValueStoreRecord",
    "MalformedSignedUrlResponseError",
    "RequestFailedError",
    "SIGNED_URL_UPLOAD_MIN_BYTESIZE",
]
