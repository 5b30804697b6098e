"""
Act endpoints: act CRUD, runs and builds.

Act ids may be given either as an opaque id or as ``username/act-name``;
the latter is sent as ``username~act-name``.
"""

from __future__ import annotations

import time
from typing import Any, Callable

from act_client.logging_config import get_logger
from act_client.models import UNFINISHED_STATUSES
from act_client.resource import ResourceClient
from act_client.transport import catch_not_found, pluck_data
from act_client.validation import check_param

logger = get_logger(__name__)

BASE_PATH = "/v2/acts"

# Longest waitForFinish the API honours in a single call
MAX_WAIT_FOR_FINISH_SECONDS = 120
DEFAULT_POLL_INTERVAL_SECONDS = 1.0


def safe_act_id(act_id: str) -> str:
    return act_id.replace("/", "~", 1)


class Acts(ResourceClient):
    """Client for ``/v2/acts``."""

    base_path = BASE_PATH

    def _pagination(self, offset: Any, limit: Any, desc: Any) -> dict[str, Any]:
        check_param(limit, "limit", int, optional=True)
        check_param(offset, "offset", int, optional=True)
        check_param(desc, "desc", bool, optional=True)
        return {
            "token": self.token,
            "limit": limit or None,
            "offset": offset or None,
            "desc": 1 if desc else None,
        }

    # --- Acts ---------------------------------------------------------------------

    def list_acts(
        self,
        offset: int | None = None,
        limit: int | None = None,
        desc: bool | None = None,
    ) -> dict[str, Any]:
        """Return a pagination list of the caller's acts."""
        check_param(self.token, "token", str)
        params = self._pagination(offset, limit, desc)
        return pluck_data(self._send(url=self._url(), params=params, expect_json=True))

    def create_act(self, act: dict[str, Any]) -> dict[str, Any]:
        check_param(self.token, "token", str)
        check_param(act, "act", dict)
        payload = self._send(
            url=self._url(),
            method="POST",
            params={"token": self.token},
            json_body=act,
            expect_json=True,
        )
        return pluck_data(payload)

    def update_act(self, act: dict[str, Any], act_id: str | None = None) -> dict[str, Any]:
        """Update an act; ``act_id`` defaults to ``act["id"]``, which is never sent in the body."""
        check_param(self.token, "token", str)
        check_param(act, "act", dict)
        if not act_id and act.get("id"):
            act_id = act["id"]
        check_param(act_id, "act_id", str)
        body = {name: value for name, value in act.items() if name != "id"}
        payload = self._send(
            url=self._url(safe_act_id(act_id)),
            method="PUT",
            params={"token": self.token},
            json_body=body,
            expect_json=True,
        )
        return pluck_data(payload)

    def delete_act(self, act_id: str) -> None:
        check_param(act_id, "act_id", str)
        check_param(self.token, "token", str)
        self._send(
            url=self._url(safe_act_id(act_id)),
            method="DELETE",
            params={"token": self.token},
        )

    def get_act(self, act_id: str) -> dict[str, Any] | None:
        check_param(act_id, "act_id", str)
        check_param(self.token, "token", str)
        url = self._url(safe_act_id(act_id))
        params = {"token": self.token}
        return catch_not_found(lambda: pluck_data(self._send(url=url, params=params, expect_json=True)))

    # --- Runs ---------------------------------------------------------------------

    def list_runs(
        self,
        act_id: str,
        offset: int | None = None,
        limit: int | None = None,
        desc: bool | None = None,
    ) -> dict[str, Any]:
        check_param(act_id, "act_id", str)
        check_param(self.token, "token", str)
        params = self._pagination(offset, limit, desc)
        url = self._url(safe_act_id(act_id), "runs")
        return pluck_data(self._send(url=url, params=params, expect_json=True))

    def run_act(
        self,
        act_id: str,
        body: bytes | str | None = None,
        content_type: str | None = None,
        wait_for_finish: int | None = None,
        timeout: int | None = None,
        memory: int | None = None,
        build: str | None = None,
    ) -> dict[str, Any]:
        """Start a run of ``act_id``, passing ``body`` as its input.

        Args:
            act_id: Act id or ``username/act-name``.
            body: Raw act input sent as the POST payload.
            content_type: Content type of ``body`` (e.g. ``application/json``).
            wait_for_finish: Seconds the API should wait for the run to finish
                (max 120). An unfinished run is returned in RUNNING state.
            timeout: Run timeout in seconds; zero means no timeout.
            memory: Memory for the run, in megabytes.
            build: Build tag or number to run, e.g. ``latest`` or ``1.2.34``.
        """
        check_param(act_id, "act_id", str)
        check_param(self.token, "token", str, optional=True)
        check_param(content_type, "content_type", str, optional=True)
        check_param(wait_for_finish, "wait_for_finish", int, optional=True)
        check_param(timeout, "timeout", int, optional=True)
        check_param(memory, "memory", int, optional=True)
        check_param(build, "build", str, optional=True)
        if body:
            check_param(body, "body", (bytes, bytearray, str))

        payload = self._send(
            url=self._url(safe_act_id(act_id), "runs"),
            method="POST",
            params={
                "waitForFinish": wait_for_finish or None,
                "timeout": timeout or None,
                "memory": memory or None,
                "build": build or None,
                "token": self.token or None,
            },
            headers={"Content-Type": content_type} if content_type else None,
            body=body or None,
            expect_json=True,
        )
        return pluck_data(payload)

    def get_run(
        self,
        act_id: str,
        run_id: str,
        wait_for_finish: int | None = None,
    ) -> dict[str, Any] | None:
        check_param(act_id, "act_id", str)
        check_param(run_id, "run_id", str)
        check_param(self.token, "token", str, optional=True)
        check_param(wait_for_finish, "wait_for_finish", int, optional=True)
        url = self._url(safe_act_id(act_id), "runs", run_id)
        params = {"token": self.token or None, "waitForFinish": wait_for_finish or None}
        return catch_not_found(lambda: pluck_data(self._send(url=url, params=params, expect_json=True)))

    def wait_for_run(
        self,
        act_id: str,
        run_id: str,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_wait: float | None = None,
    ) -> dict[str, Any] | None:
        """Block until the run leaves READY/RUNNING or ``max_wait`` seconds pass.

        Returns the last run object seen, or ``None`` if the run vanished.
        """
        return self._wait_until_finished(
            lambda wait: self.get_run(act_id, run_id, wait_for_finish=wait),
            poll_interval=poll_interval,
            max_wait=max_wait,
        )

    # --- Builds -------------------------------------------------------------------

    def list_builds(
        self,
        act_id: str,
        offset: int | None = None,
        limit: int | None = None,
        desc: bool | None = None,
    ) -> dict[str, Any]:
        check_param(act_id, "act_id", str)
        check_param(self.token, "token", str)
        params = self._pagination(offset, limit, desc)
        url = self._url(safe_act_id(act_id), "builds")
        return pluck_data(self._send(url=url, params=params, expect_json=True))

    def build_act(
        self,
        act_id: str,
        version: str,
        wait_for_finish: int | None = None,
        tag: str | None = None,
        beta_packages: bool | None = None,
        use_cache: bool | None = None,
    ) -> dict[str, Any]:
        """Build ``version`` of an act.

        ``use_cache`` rebuilds the image with the layer cache; ``beta_packages``
        installs beta versions of the platform packages; ``tag`` is applied to
        the build on success.
        """
        check_param(self.token, "token", str)
        check_param(act_id, "act_id", str)
        check_param(version, "version", str)
        check_param(wait_for_finish, "wait_for_finish", int, optional=True)
        check_param(tag, "tag", str, optional=True)
        check_param(beta_packages, "beta_packages", bool, optional=True)
        check_param(use_cache, "use_cache", bool, optional=True)
        payload = self._send(
            url=self._url(safe_act_id(act_id), "builds"),
            method="POST",
            params={
                "token": self.token,
                "version": version,
                "waitForFinish": wait_for_finish or None,
                "betaPackages": 1 if beta_packages else None,
                "useCache": 1 if use_cache else None,
                "tag": tag or None,
            },
            expect_json=True,
        )
        return pluck_data(payload)

    def get_build(
        self,
        act_id: str,
        build_id: str,
        wait_for_finish: int | None = None,
    ) -> dict[str, Any] | None:
        check_param(act_id, "act_id", str)
        check_param(self.token, "token", str)
        check_param(build_id, "build_id", str)
        check_param(wait_for_finish, "wait_for_finish", int, optional=True)
        url = self._url(safe_act_id(act_id), "builds", build_id)
        params = {"token": self.token, "waitForFinish": wait_for_finish or None}
        return catch_not_found(lambda: pluck_data(self._send(url=url, params=params, expect_json=True)))

    def wait_for_build(
        self,
        act_id: str,
        build_id: str,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_wait: float | None = None,
    ) -> dict[str, Any] | None:
        return self._wait_until_finished(
            lambda wait: self.get_build(act_id, build_id, wait_for_finish=wait),
            poll_interval=poll_interval,
            max_wait=max_wait,
        )

    # --- Polling ------------------------------------------------------------------

    def _wait_until_finished(
        self,
        fetch: Callable[[int | None], dict[str, Any] | None],
        *,
        poll_interval: float,
        max_wait: float | None,
    ) -> dict[str, Any] | None:
        check_param(poll_interval, "poll_interval", (int, float))
        check_param(max_wait, "max_wait", (int, float), optional=True)
        deadline = None if max_wait is None else time.monotonic() + max_wait
        while True:
            wait_secs = MAX_WAIT_FOR_FINISH_SECONDS
            if deadline is not None:
                wait_secs = max(0, min(wait_secs, int(deadline - time.monotonic())))
            current = fetch(wait_secs or None)
            if current is None or current.get("status") not in UNFINISHED_STATUSES:
                return current
            if deadline is not None and time.monotonic() >= deadline:
                return current
            logger.debug(
                "{id} still {status}, polling again",
                id=current.get("id"),
                status=current.get("status"),
            )
            time.sleep(poll_interval)


__all__ = [
    "BASE_PATH",
    "MAX_WAIT_FOR_FINISH_SECONDS",
    "Acts",
    "safe_act_id",
]
