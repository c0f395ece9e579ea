import os
import time

import pytest

from ledgerbench.errors import CommandExecutionError
from ledgerbench.utils import exec_async, maybe_await, resolve_path, sleep_ms


def test_resolve_relative_path_against_workspace():
    assert resolve_path("traces/a.txt", "/srv/ws") == "/srv/ws/traces/a.txt"


def test_resolve_absolute_path_ignores_workspace():
    assert resolve_path("/tmp/x/../a.txt", "/srv/ws") == "/tmp/a.txt"


def test_resolve_without_workspace_uses_cwd():
    assert resolve_path("a.txt") == os.path.join(os.getcwd(), "a.txt")


def test_resolve_expands_home(monkeypatch):
    monkeypatch.setenv("HOME", "/home/bench")
    assert resolve_path("~/a.txt", "/srv/ws") == "/home/bench/a.txt"


@pytest.mark.asyncio
async def test_maybe_await_handles_plain_values_and_coroutines():
    async def value():
        return 3

    assert await maybe_await(2) == 2
    assert await maybe_await(value()) == 3


@pytest.mark.asyncio
async def test_sleep_ms_returns_immediately_for_past_deadlines():
    start = time.perf_counter()
    await sleep_ms(-5000)
    await sleep_ms(0)
    assert time.perf_counter() - start < 0.5


@pytest.mark.asyncio
async def test_exec_async_success():
    await exec_async("true")


@pytest.mark.asyncio
async def test_exec_async_failure_reports_exit_code():
    with pytest.raises(CommandExecutionError) as excinfo:
        await exec_async("echo broken >&2; exit 3")
    assert excinfo.value.returncode == 3
    assert "broken" in excinfo.value.stderr
