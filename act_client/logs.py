"""Log endpoint; a log id is the id of either an act run or an act build."""

from __future__ import annotations

from act_client.resource import ResourceClient
from act_client.transport import catch_not_found
from act_client.validation import check_param

BASE_PATH = "/v2/logs"


class Logs(ResourceClient):
    base_path = BASE_PATH

    def get_log(self, log_id: str) -> str | None:
        check_param(log_id, "log_id", str)
        url = self._url(log_id)
        content = catch_not_found(lambda: self._send(url=url, follow_redirects=True))
        if content is None:
            return None
        return content.decode("utf-8", errors="replace")


__all__ = ["BASE_PATH", "Logs"]
