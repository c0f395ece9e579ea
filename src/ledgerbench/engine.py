import logging
from collections.abc import Awaitable, Callable
from enum import IntEnum
from typing import Any

from .config import Config, FlowOptions, Keys
from .orchestrator import RoundOrchestrator
from .utils import exec_async, maybe_await

logger = logging.getLogger(__name__)

CommandExecutor = Callable[[str], Awaitable[None]]


class ExitCode(IntEnum):
    NOT_RUN = -1
    SUCCESS = 0
    START_COMMAND_NOT_STRING = 1
    START_COMMAND_EMPTY = 2
    START_COMMAND_FAILED = 3
    INIT_FAILED = 4
    INSTALL_FAILED = 5
    TEST_FAILED = 6
    END_COMMAND_FAILED = 9


class Engine:
    """Drives the Start, Init, Install, Test and End phases of a benchmark.

    Each phase is enabled by the resolved FlowOptions. A failing phase sets
    the exit code but does not stop later phases, except that Install and
    Test need a connector. The first failure decides the code. End is
    attempted whenever it is enabled, whatever happened before.
    """

    def __init__(
        self,
        benchmark_config: dict[str, Any],
        network_config: dict[str, Any],
        connector_factory: Callable[[int], Any],
        config: Config | None = None,
        command_executor: CommandExecutor = exec_async,
        orchestrator_factory: Callable[..., Any] = RoundOrchestrator,
    ) -> None:
        self.benchmark_config = benchmark_config or {}
        self.network_config = network_config or {}
        self.connector_factory = connector_factory
        self.config = config or Config()
        self.command_executor = command_executor
        self.orchestrator_factory = orchestrator_factory

        self.workspace = self.config.get(Keys.WORKSPACE)
        self.return_code: int = ExitCode.NOT_RUN
        self.round_orchestrator = None

    # ────────────────────────────────
    # Result code bookkeeping
    # ────────────────────────────────

    def _fail(self, code: ExitCode, message: str, err: BaseException | None = None) -> None:
        if err is not None:
            logger.error(f"{message}: {err}", exc_info=err)
        else:
            logger.error(message)
        if self.return_code == ExitCode.NOT_RUN:
            self.return_code = code
        else:
            logger.debug(f"Keeping exit code {self.return_code}, ignoring {int(code)}")

    def _commands(self) -> dict[str, Any]:
        """Network lifecycle commands, from ``caliper.command`` or a top-level ``command``."""
        caliper = self.network_config.get("caliper") or {}
        if "command" in caliper:
            return caliper.get("command") or {}
        return self.network_config.get("command") or {}

    # ────────────────────────────────
    # Phases
    # ────────────────────────────────

    async def _start_phase(self) -> None:
        commands = self._commands()
        if "start" not in commands:
            logger.info("No start command configured, skipping the start phase")
            return

        command = commands["start"]
        if not isinstance(command, str):
            self._fail(
                ExitCode.START_COMMAND_NOT_STRING,
                f"Start command must be a string, got {type(command).__name__}",
            )
            return
        if not command.strip():
            self._fail(ExitCode.START_COMMAND_EMPTY, "Start command is empty")
            return

        logger.info(f"Running start command: {command}")
        try:
            await self.command_executor(command)
        except Exception as err:
            self._fail(ExitCode.START_COMMAND_FAILED, "Start command failed", err)

    async def _acquire_connector(self):
        try:
            connector = await maybe_await(self.connector_factory(-1))
        except Exception as err:
            self._fail(ExitCode.TEST_FAILED, "Could not create the connector", err)
            return None
        logger.debug(f"Acquired connector {connector!r}")
        return connector

    async def _init_phase(self, connector) -> None:
        logger.info("Initializing the system under test")
        try:
            await connector.init(False)
        except Exception as err:
            self._fail(ExitCode.INIT_FAILED, "Connector initialization failed", err)

    async def _install_phase(self, connector) -> None:
        logger.info("Installing smart contracts")
        try:
            await connector.install_smart_contract()
        except Exception as err:
            self._fail(ExitCode.INSTALL_FAILED, "Smart contract installation failed", err)

    async def _test_phase(self, connector) -> None:
        try:
            test = self.benchmark_config.get("test") or {}
            number_of_workers = int((test.get("workers") or {}).get("number", 1))
            worker_arguments = await connector.prepare_worker_arguments(number_of_workers)
            self.round_orchestrator = self.orchestrator_factory(
                self.benchmark_config,
                self.network_config,
                worker_arguments,
                self.connector_factory,
                self.config,
            )
            await maybe_await(self.round_orchestrator.run())
        except Exception as err:
            self._fail(ExitCode.TEST_FAILED, "Benchmark rounds failed", err)

    async def _end_phase(self) -> None:
        commands = self._commands()
        if "end" not in commands:
            logger.info("No end command configured, skipping the end phase")
            return

        command = commands["end"]
        if not isinstance(command, str) or not command.strip():
            self._fail(ExitCode.END_COMMAND_FAILED, f"End command is not usable: {command!r}")
            return

        full_command = f"cd {self.workspace}; {command}"
        logger.info(f"Running end command: {full_command}")
        try:
            await self.command_executor(full_command)
        except Exception as err:
            self._fail(ExitCode.END_COMMAND_FAILED, "End command failed", err)

    # ────────────────────────────────
    # Public API
    # ────────────────────────────────

    async def _run_phases(self, flow: FlowOptions) -> None:
        if flow.perform_start:
            await self._start_phase()

        connector = None
        if flow.needs_connector:
            connector = await self._acquire_connector()
        if connector is None:
            return

        if flow.perform_init:
            await self._init_phase(connector)
        if flow.perform_install:
            await self._install_phase(connector)
        if flow.perform_test:
            await self._test_phase(connector)

    async def run(self) -> int:
        """Run every enabled phase once and return the process exit code."""
        self.return_code = ExitCode.NOT_RUN
        flow = None
        try:
            flow = FlowOptions.from_config(self.config)
            logger.debug(f"Flow options: {flow}")
            await self._run_phases(flow)
        except Exception as err:
            self._fail(ExitCode.TEST_FAILED, "Unexpected error during the benchmark", err)
        finally:
            if flow is not None and flow.perform_end:
                try:
                    await self._end_phase()
                except Exception as err:
                    self._fail(ExitCode.END_COMMAND_FAILED, "End phase crashed", err)

        if self.return_code == ExitCode.NOT_RUN:
            self.return_code = ExitCode.SUCCESS
        logger.info(f"Benchmark finished with exit code {int(self.return_code)}")
        return int(self.return_code)

    async def stop(self) -> None:
        """Ask a running Test phase to wind down. Never raises."""
        if self.round_orchestrator is None:
            logger.debug("Stop requested but no benchmark round has started")
            return
        try:
            await maybe_await(self.round_orchestrator.stop())
        except Exception as err:
            logger.error(f"Failed to stop the round orchestrator: {err}")
