import logging
from typing import Any

import aiohttp

from ..connector import ConnectorBase
from ..tx_status import TxStatus

logger = logging.getLogger(__name__)


class HttpConnector(ConnectorBase):
    """Submits JSON requests to an HTTP endpoint of the system under test.

    A request is a dict with optional ``method`` (default POST), ``path``,
    ``json`` and ``id`` keys. 2xx and 3xx responses count as committed; other
    statuses produce failed records. Transport errors are raised and turned
    into failed records by the base dispatch layer.
    """

    def __init__(
        self,
        worker_index: int,
        base_url: str,
        request_timeout_s: float = 30.0,
        health_path: str | None = None,
        install_path: str | None = None,
        default_headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(worker_index, "http")
        self.base_url = base_url.rstrip("/")
        self.request_timeout_s = request_timeout_s
        self.health_path = health_path
        self.install_path = install_path
        self.default_headers = default_headers or {}
        self._session: aiohttp.ClientSession | None = None
        self._tx_counter = 0

    def _url(self, path: str | None) -> str:
        if not path:
            return self.base_url
        return f"{self.base_url}/{path.lstrip('/')}"

    def _new_session(self) -> aiohttp.ClientSession:
        timeout = aiohttp.ClientTimeout(total=self.request_timeout_s)
        return aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(limit=0),
            timeout=timeout,
            headers=self.default_headers,
        )

    # ────────────────────────────────
    # Lifecycle
    # ────────────────────────────────

    async def init(self, worker_init: bool) -> None:
        if not self.health_path:
            return
        async with self._new_session() as session:
            async with session.get(self._url(self.health_path)) as resp:
                if resp.status >= 400:
                    raise aiohttp.ClientResponseError(
                        resp.request_info, resp.history, status=resp.status,
                        message=f"Health check failed for {self.base_url}",
                    )
        logger.info(f"[W{self.worker_index}] {self.base_url} is healthy")

    async def install_smart_contract(self) -> None:
        if not self.install_path:
            logger.info("No install endpoint configured, nothing to install")
            return
        async with self._new_session() as session:
            async with session.post(self._url(self.install_path)) as resp:
                resp.raise_for_status()
        logger.info(f"Installed contracts via {self._url(self.install_path)}")

    async def get_context(self, round_index: int, args: Any) -> dict[str, Any]:
        if self._session is None:
            self._session = self._new_session()
        return {"round_index": round_index, "args": args, "session": self._session}

    async def release_context(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    # ────────────────────────────────
    # Dispatch
    # ────────────────────────────────

    async def _send_single_request(self, request: dict[str, Any]) -> TxStatus:
        if self._session is None:
            raise RuntimeError("HTTP connector has no open context, call get_context first")

        self._tx_counter += 1
        tx = TxStatus(str(request.get("id") or f"{self.worker_index}-{self._tx_counter}"))
        method = request.get("method", "POST").upper()
        async with self._session.request(
            method, self._url(request.get("path")), json=request.get("json")
        ) as resp:
            body = await resp.text()
            tx.set_result(body)
            tx.set("http_status", resp.status)
            if 200 <= resp.status < 400:
                tx.set_status_success()
            else:
                tx.set_error_message(0, f"HTTP {resp.status}: {body[:200]}")
                tx.set_status_fail()
        logger.debug(f"[W{self.worker_index}] {method} {request.get('path')} -> {tx.get_status()}")
        return tx


def http_connector_factory(base_url: str, **kwargs):
    """Return a connector factory suitable for Engine and RoundOrchestrator."""

    def factory(worker_index: int) -> HttpConnector:
        return HttpConnector(worker_index, base_url, **kwargs)

    return factory
