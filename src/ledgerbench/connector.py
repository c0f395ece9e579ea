import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from .errors import ConnectorMethodNotImplementedError
from .tx_status import TxStatus

logger = logging.getLogger(__name__)

# Telemetry events
TXS_SUBMITTED = "submitted"
TXS_FINISHED = "finished"

EventCallback = Callable[[Any], None]


class ConnectorInterface:
    """Capabilities every target-system adapter has to provide.

    Nothing is implemented here: every method fails with a
    ConnectorMethodNotImplementedError naming itself. The coroutine methods
    fail when awaited, not when called.
    """

    def get_type(self) -> str:
        raise ConnectorMethodNotImplementedError("get_type")

    def get_worker_index(self) -> int:
        raise ConnectorMethodNotImplementedError("get_worker_index")

    async def init(self, worker_init: bool) -> None:
        raise ConnectorMethodNotImplementedError("init")

    async def install_smart_contract(self) -> None:
        raise ConnectorMethodNotImplementedError("install_smart_contract")

    async def prepare_worker_arguments(self, number: int) -> list[dict]:
        raise ConnectorMethodNotImplementedError("prepare_worker_arguments")

    async def get_context(self, round_index: int, args: Any) -> Any:
        raise ConnectorMethodNotImplementedError("get_context")

    async def release_context(self) -> None:
        raise ConnectorMethodNotImplementedError("release_context")

    async def send_requests(self, requests: Any) -> TxStatus | list[TxStatus]:
        raise ConnectorMethodNotImplementedError("send_requests")


class ConnectorBase(ConnectorInterface):
    """Batching and telemetry on top of a single-request hook.

    Subclasses implement ``_send_single_request`` plus the lifecycle methods
    their target needs.
    """

    def __init__(self, worker_index: int, connector_type: str) -> None:
        self.worker_index = worker_index
        self.connector_type = connector_type
        self._listeners: dict[str, list[EventCallback]] = defaultdict(list)

    def get_type(self) -> str:
        return self.connector_type

    def get_worker_index(self) -> int:
        return self.worker_index

    async def prepare_worker_arguments(self, number: int) -> list[dict]:
        return [{} for _ in range(number)]

    # ────────────────────────────────
    # Telemetry
    # ────────────────────────────────

    def on(self, event: str, callback: EventCallback) -> None:
        self._listeners[event].append(callback)

    def off(self, event: str, callback: EventCallback) -> None:
        if callback in self._listeners.get(event, []):
            self._listeners[event].remove(callback)

    def emit(self, event: str, payload: Any) -> None:
        for callback in list(self._listeners.get(event, [])):
            callback(payload)

    # ────────────────────────────────
    # Dispatch
    # ────────────────────────────────

    async def send_requests(self, requests: Any) -> TxStatus | list[TxStatus]:
        if not isinstance(requests, (list, tuple)):
            return await self._send_one(requests)

        tasks: list[asyncio.Task] = []
        try:
            for request in requests:
                self.emit(TXS_SUBMITTED, 1)
                tasks.append(asyncio.create_task(self._send_single_request(request)))
                # Start the hook before the next item is announced
                await asyncio.sleep(0)
        except BaseException:
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        results: list[TxStatus] = []
        first_error: BaseException | None = None
        for index, outcome in enumerate(outcomes):
            if isinstance(outcome, BaseException):
                logger.debug(
                    f"[W{self.worker_index}] Request {index} of batch failed: {outcome}"
                )
                if first_error is None:
                    first_error = outcome
                outcome = self._failed_result(outcome)
            results.append(outcome)

        self.emit(TXS_FINISHED, results)
        if first_error is not None:
            raise first_error
        return results

    async def _send_one(self, request: Any) -> TxStatus:
        self.emit(TXS_SUBMITTED, 1)
        try:
            result = await self._send_single_request(request)
        except Exception as err:
            logger.debug(f"[W{self.worker_index}] Request failed: {err}")
            self.emit(TXS_FINISHED, self._failed_result(err))
            raise
        self.emit(TXS_FINISHED, result)
        return result

    @staticmethod
    def _failed_result(error: BaseException) -> TxStatus:
        result = TxStatus()
        result.set_status_fail()
        result.set_error_message(0, str(error))
        result.set_result(error)
        return result

    async def _send_single_request(self, request: Any) -> TxStatus:
        raise ConnectorMethodNotImplementedError("_send_single_request")
