import asyncio
import inspect
import logging
import os
import time
from typing import Any

from .errors import CommandExecutionError

logger = logging.getLogger(__name__)

# ────────────────────────────────
# Time Helpers
# ────────────────────────────────


def now() -> float:
    return time.perf_counter()


def now_ms() -> int:
    """Wall-clock time in milliseconds, the unit of result records and traces."""
    return int(time.time() * 1000)


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def sleep_ms(duration_ms: float) -> None:
    # Negative or zero durations mean the deadline already passed
    if duration_ms > 0:
        await asyncio.sleep(duration_ms / 1000.0)


# ────────────────────────────────
# Paths
# ────────────────────────────────


def resolve_path(path: str, workspace: str | None = None) -> str:
    expanded = os.path.expanduser(path)
    if os.path.isabs(expanded):
        return os.path.normpath(expanded)
    base = workspace or os.getcwd()
    return os.path.normpath(os.path.join(base, expanded))


# ────────────────────────────────
# Shell Commands
# ────────────────────────────────


async def exec_async(command: str) -> None:
    """Run ``command`` through the shell, raising if it exits non-zero."""
    logger.info(f"Executing command: {command}")
    proc = await asyncio.create_subprocess_shell(
        command,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await proc.communicate()
    out = stdout.decode(errors="replace").strip()
    if out:
        logger.debug(f"Command output: {out}")
    if proc.returncode != 0:
        raise CommandExecutionError(command, proc.returncode, stderr.decode(errors="replace"))
    logger.debug(f"Command finished: {command}")
