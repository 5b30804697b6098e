"""Top-level client tying the endpoint groups to one HTTP transport."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from act_client.acts import Acts
from act_client.exceptions import ConfigurationError
from act_client.key_value_stores import KeyValueStores
from act_client.logging_config import get_logger
from act_client.logs import Logs
from act_client.models import ClientOptions
from act_client.transport import HttpTransport

if TYPE_CHECKING:
    from act_client.settings import Settings

logger = get_logger(__name__)


def _build_options(base: ClientOptions | None, changes: dict[str, Any]) -> ClientOptions:
    payload = base.model_dump() if base is not None else {}
    payload.update(changes)
    try:
        return ClientOptions(**payload)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid client options: {exc}", {"fields": ", ".join(changes)}) from exc


class ActClient:
    """Entry point of the library.

    Example:
        with ActClient(token="...", store_id="my-store") as client:
            client.key_value_stores.put_record("OUTPUT", b"...", "application/json")
    """

    def __init__(
        self,
        options: ClientOptions | None = None,
        transport: HttpTransport | None = None,
        **overrides: Any,
    ) -> None:
        self.options = _build_options(options, overrides) if overrides or options is None else options
        self._transport = transport or HttpTransport(
            timeout=self.options.timeout_seconds,
            user_agent=self.options.user_agent,
        )
        self._owns_transport = transport is None
        self.acts = Acts(self._transport, self.options.base_url, self.options.token)
        self.key_value_stores = KeyValueStores(
            self._transport,
            self.options.base_url,
            self.options.token,
            self.options.store_id,
        )
        self.logs = Logs(self._transport, self.options.base_url, self.options.token)

    @classmethod
    def from_settings(cls, settings: "Settings", transport: HttpTransport | None = None) -> "ActClient":
        options = _build_options(
            None,
            {
                "base_url": settings.api.base_url,
                "token": settings.api.token,
                "store_id": settings.store.store_id,
                "timeout_seconds": settings.api.timeout_seconds,
                "user_agent": settings.api.user_agent,
            },
        )
        return cls(options, transport=transport)

    def set_options(self, **changes: Any) -> None:
        """Change base_url, token or store_id for every endpoint group.

        Timeout and user agent belong to the transport and are fixed once the
        client is built.
        """
        self.options = _build_options(self.options, changes)
        logger.debug("Client options updated: {fields}", fields=sorted(changes))
        for group in (self.acts, self.key_value_stores, self.logs):
            group.configure(base_url=self.options.base_url, token=self.options.token)
        self.key_value_stores.store_id = self.options.store_id

    def close(self) -> None:
        if self._owns_transport:
            self._transport.close()

    def __enter__(self) -> "ActClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


__all__ = ["ActClient"]
