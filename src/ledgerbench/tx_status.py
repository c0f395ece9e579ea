import logging
from typing import Any

from .utils import now_ms

logger = logging.getLogger(__name__)

CREATED = "created"
SUCCESS = "success"
FAILED = "failed"


class TxStatus:
    """Outcome of one submitted request.

    Created in the ``created`` state with the creation time set to now. One
    of the terminal setters moves it to ``success`` or ``failed`` and stamps
    the final time; after that only the custom data map may change.
    """

    def __init__(self, tx_id: str | None = None) -> None:
        self.id = tx_id
        self.status = CREATED
        self.time_create = now_ms()
        self.time_final = 0
        self.committed = False
        self.verified = False
        self.flags: Any = 0
        self.result: Any = None
        self.error_messages: list[str | None] = []
        self.custom_data: dict[str, Any] = {}

    # ────────────────────────────────
    # Identity & timing
    # ────────────────────────────────

    def get_id(self) -> str | None:
        return self.id

    def set_id(self, tx_id: str) -> None:
        self.id = tx_id

    def get_time_create(self) -> int:
        return self.time_create

    def set_time_create(self, timestamp: int) -> None:
        self.time_create = timestamp

    def get_time_final(self) -> int:
        return self.time_final

    def get_latency_ms(self) -> int | None:
        if not self.is_terminal():
            return None
        return self.time_final - self.time_create

    # ────────────────────────────────
    # Status transitions
    # ────────────────────────────────

    def get_status(self) -> str:
        return self.status

    def is_terminal(self) -> bool:
        return self.status != CREATED

    def is_committed(self) -> bool:
        return self.committed

    def set_status_success(self, time: int | None = None) -> None:
        self._finish(SUCCESS, True, time)

    def set_status_fail(self, time: int | None = None) -> None:
        self._finish(FAILED, False, time)

    def _finish(self, status: str, committed: bool, time: int | None) -> None:
        if self.is_terminal():
            logger.debug(
                f"Ignoring transition of tx {self.id} to '{status}', already '{self.status}'"
            )
            return
        self.time_final = now_ms() if time is None else time
        self.status = status
        self.committed = committed

    # ────────────────────────────────
    # Payload
    # ────────────────────────────────

    def get_result(self) -> Any:
        return self.result

    def set_result(self, result: Any) -> None:
        self.result = result

    def get_flags(self) -> Any:
        return self.flags

    def set_flags(self, flags: Any) -> None:
        self.flags = flags

    def is_verified(self) -> bool:
        return self.verified

    def set_verification(self, verified: bool) -> None:
        self.verified = verified

    def set_error_message(self, index: int, message: str) -> None:
        if index < 0:
            raise IndexError(f"Error message index must be non-negative, got {index}")
        if index >= len(self.error_messages):
            self.error_messages.extend([None] * (index + 1 - len(self.error_messages)))
        self.error_messages[index] = message

    def get_error_messages(self) -> list[str | None]:
        return list(self.error_messages)

    # Custom data stays writable after the record is terminal
    def set(self, key: str, value: Any) -> None:
        self.custom_data[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.custom_data.get(key, default)

    def get_custom_data(self) -> dict[str, Any]:
        return self.custom_data

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status,
            "time_create": self.time_create,
            "time_final": self.time_final,
            "result": self.result,
            "verified": self.verified,
            "flags": self.flags,
            "error_messages": list(self.error_messages),
        }

    def __repr__(self) -> str:
        return f"TxStatus(id={self.id!r}, status={self.status!r})"
