import pytest

from fakes import FakeConnector, OrchestratorFactory, RecordingExecutor, RecordingFactory
from ledgerbench.config import Config, Keys
from ledgerbench.engine import Engine, ExitCode


def flow_config(start=False, init=False, install=False, test=False, end=False, workspace="./"):
    return Config(
        {
            Keys.WORKSPACE: workspace,
            Keys.FLOW_SKIP_START: not start,
            Keys.FLOW_SKIP_INIT: not init,
            Keys.FLOW_SKIP_INSTALL: not install,
            Keys.FLOW_SKIP_TEST: not test,
            Keys.FLOW_SKIP_END: not end,
        }
    )


def network(commands):
    return {"caliper": {"command": commands}}


def make_engine(config, network_config=None, benchmark_config=None, factory=None,
                executor=None, orchestrators=None):
    return Engine(
        benchmark_config or {"test": {"workers": {"number": 1}}},
        network_config or {},
        factory or RecordingFactory(),
        config=config,
        command_executor=executor or RecordingExecutor(),
        orchestrator_factory=orchestrators or OrchestratorFactory(),
    )


def test_initial_state():
    factory = RecordingFactory()
    engine = Engine({"name": "bench"}, {"type": "fake"}, factory, config=Config({Keys.WORKSPACE: "/tmp/ws"}))
    assert engine.benchmark_config == {"name": "bench"}
    assert engine.network_config == {"type": "fake"}
    assert engine.connector_factory is factory
    assert engine.workspace == "/tmp/ws"
    assert engine.return_code == ExitCode.NOT_RUN == -1


# ────────────────────────────────
# Start phase
# ────────────────────────────────


@pytest.mark.asyncio
async def test_start_command_runs():
    executor = RecordingExecutor()
    engine = make_engine(
        flow_config(start=True, end=True),
        network_config=network({"start": 'echo "Starting network"'}),
        executor=executor,
    )
    assert await engine.run() == 0
    assert executor.commands == ['echo "Starting network"']


@pytest.mark.asyncio
async def test_start_command_failure():
    executor = RecordingExecutor(error=RuntimeError("Command failed"))
    engine = make_engine(
        flow_config(start=True), network_config=network({"start": "bad-command"}), executor=executor
    )
    assert await engine.run() == 3
    assert len(executor.commands) == 1


@pytest.mark.asyncio
async def test_start_command_not_a_string():
    executor = RecordingExecutor()
    engine = make_engine(flow_config(start=True), network_config=network({"start": 1234}), executor=executor)
    assert await engine.run() == 1
    assert executor.commands == []


@pytest.mark.asyncio
async def test_start_command_blank():
    executor = RecordingExecutor()
    engine = make_engine(flow_config(start=True), network_config=network({"start": "       "}), executor=executor)
    assert await engine.run() == 2
    assert executor.commands == []


@pytest.mark.asyncio
async def test_missing_start_command_is_skipped():
    executor = RecordingExecutor()
    engine = make_engine(flow_config(start=True), network_config={}, executor=executor)
    assert await engine.run() == 0
    assert executor.commands == []


@pytest.mark.asyncio
async def test_top_level_commands_are_accepted():
    executor = RecordingExecutor()
    engine = make_engine(
        flow_config(start=True, end=True),
        network_config={"command": {"start": "start.sh", "end": "end.sh"}},
        executor=executor,
    )
    assert await engine.run() == 0
    assert executor.commands == ["start.sh", "cd ./; end.sh"]


@pytest.mark.asyncio
async def test_caliper_commands_take_precedence():
    executor = RecordingExecutor()
    engine = make_engine(
        flow_config(start=True),
        network_config={"caliper": {"command": {"start": 1234}}, "command": {"start": "start.sh"}},
        executor=executor,
    )
    assert await engine.run() == 1
    assert executor.commands == []


@pytest.mark.asyncio
async def test_all_phases_disabled():
    executor = RecordingExecutor()
    factory = RecordingFactory()
    orchestrators = OrchestratorFactory()
    engine = make_engine(
        flow_config(),
        network_config=network({"start": "start.sh", "end": "end.sh"}),
        factory=factory,
        executor=executor,
        orchestrators=orchestrators,
    )
    assert await engine.run() == 0
    assert executor.commands == []
    assert factory.calls == []
    assert orchestrators.created == []


# ────────────────────────────────
# Connector phases
# ────────────────────────────────


@pytest.mark.asyncio
async def test_init_success():
    factory = RecordingFactory()
    engine = make_engine(flow_config(init=True), factory=factory)
    assert await engine.run() == 0
    assert factory.calls == [-1]
    assert factory.connectors[0].calls == [("init", False)]


@pytest.mark.asyncio
async def test_async_connector_factory():
    connector = FakeConnector()

    async def factory(worker_index):
        return connector

    engine = make_engine(flow_config(init=True), factory=factory)
    assert await engine.run() == 0
    assert connector.calls == [("init", False)]


@pytest.mark.asyncio
async def test_init_failure():
    factory = RecordingFactory(init_error=RuntimeError("Init failed"))
    engine = make_engine(flow_config(init=True), factory=factory)
    assert await engine.run() == 4


@pytest.mark.asyncio
async def test_install_without_init_still_acquires_connector():
    factory = RecordingFactory()
    engine = make_engine(flow_config(install=True), factory=factory)
    assert await engine.run() == 0
    assert factory.calls == [-1]
    assert factory.connectors[0].calls == [("install",)]


@pytest.mark.asyncio
async def test_install_failure():
    factory = RecordingFactory(install_error=RuntimeError("Install failed"))
    engine = make_engine(flow_config(install=True), factory=factory)
    assert await engine.run() == 5


@pytest.mark.asyncio
async def test_connector_acquisition_failure_skips_install_and_test_but_not_end():
    executor = RecordingExecutor()
    orchestrators = OrchestratorFactory()
    engine = make_engine(
        flow_config(init=True, install=True, test=True, end=True),
        network_config=network({"end": "cleanup.sh"}),
        factory=RecordingFactory(error=RuntimeError("Failed to create adapter")),
        executor=executor,
        orchestrators=orchestrators,
    )
    assert await engine.run() == 6
    assert orchestrators.created == []
    assert executor.commands == ["cd ./; cleanup.sh"]


@pytest.mark.asyncio
async def test_init_failure_does_not_skip_install():
    factory = RecordingFactory(init_error=RuntimeError("Init failed"))
    engine = make_engine(flow_config(init=True, install=True), factory=factory)
    assert await engine.run() == 4
    assert factory.connectors[0].calls == [("init", False), ("install",)]


# ────────────────────────────────
# Test phase
# ────────────────────────────────


@pytest.mark.asyncio
async def test_test_phase_runs_orchestrator():
    orchestrators = OrchestratorFactory()
    engine = make_engine(flow_config(test=True), orchestrators=orchestrators)
    assert await engine.run() == 0
    assert len(orchestrators.created) == 1
    orchestrator = orchestrators.created[0]
    assert orchestrator.run_calls == 1
    assert orchestrator.worker_arguments == [{}]
    assert engine.round_orchestrator is orchestrator


@pytest.mark.asyncio
async def test_test_phase_failure():
    orchestrators = OrchestratorFactory(run_error=RuntimeError("Orchestrator failed"))
    engine = make_engine(flow_config(test=True), orchestrators=orchestrators)
    assert await engine.run() == 6
    assert orchestrators.created[0].run_calls == 1


@pytest.mark.asyncio
async def test_test_phase_skipped():
    orchestrators = OrchestratorFactory()
    engine = make_engine(flow_config(init=True), orchestrators=orchestrators)
    await engine.run()
    assert orchestrators.created == []


# ────────────────────────────────
# End phase
# ────────────────────────────────


@pytest.mark.asyncio
async def test_end_command_runs_in_workspace():
    executor = RecordingExecutor()
    engine = make_engine(
        flow_config(end=True),
        network_config=network({"end": "docker-compose down"}),
        executor=executor,
    )
    assert await engine.run() == 0
    assert executor.commands == ["cd ./; docker-compose down"]


@pytest.mark.asyncio
async def test_end_command_failure():
    executor = RecordingExecutor(error=RuntimeError("End command failed"))
    engine = make_engine(
        flow_config(end=True), network_config=network({"end": "bad-end-command"}), executor=executor
    )
    assert await engine.run() == 9


@pytest.mark.asyncio
async def test_end_command_not_usable():
    executor = RecordingExecutor()
    engine = make_engine(flow_config(end=True), network_config=network({"end": "  "}), executor=executor)
    assert await engine.run() == 9
    assert executor.commands == []


@pytest.mark.asyncio
async def test_end_runs_after_earlier_failure_and_keeps_first_code():
    executor = RecordingExecutor()
    engine = make_engine(
        flow_config(init=True, end=True),
        network_config=network({"end": "cleanup.sh"}),
        factory=RecordingFactory(init_error=RuntimeError("Init failed")),
        executor=executor,
    )
    assert await engine.run() == 4
    assert executor.commands == ["cd ./; cleanup.sh"]


@pytest.mark.asyncio
async def test_first_failure_is_sticky():
    executor = RecordingExecutor(error=RuntimeError("boom"))
    engine = make_engine(
        flow_config(start=True, end=True),
        network_config=network({"start": 42, "end": "cleanup.sh"}),
        executor=executor,
    )
    assert await engine.run() == 1
    assert executor.commands == ["cd ./; cleanup.sh"]


@pytest.mark.asyncio
async def test_full_run_succeeds():
    executor = RecordingExecutor()
    orchestrators = OrchestratorFactory()
    factory = RecordingFactory()
    engine = make_engine(
        flow_config(start=True, init=True, install=True, test=True, end=True),
        network_config=network({"start": "start.sh", "end": "end.sh"}),
        factory=factory,
        executor=executor,
        orchestrators=orchestrators,
    )
    assert await engine.run() == ExitCode.SUCCESS
    assert executor.commands == ["start.sh", "cd ./; end.sh"]
    assert factory.connectors[0].calls == [("init", False), ("install",)]
    assert orchestrators.created[0].run_calls == 1


@pytest.mark.asyncio
async def test_unresolvable_flow_options_map_to_test_failure():
    config = Config({Keys.FLOW_SKIP_START: "perhaps"})
    engine = make_engine(config)
    assert await engine.run() == 6


# ────────────────────────────────
# Stop
# ────────────────────────────────


@pytest.mark.asyncio
async def test_stop_before_run_is_noop():
    orchestrators = OrchestratorFactory()
    engine = make_engine(flow_config(test=True), orchestrators=orchestrators)
    await engine.stop()
    assert orchestrators.created == []


@pytest.mark.asyncio
async def test_stop_after_run_delegates_once():
    orchestrators = OrchestratorFactory()
    engine = make_engine(flow_config(start=True, test=True, end=True), orchestrators=orchestrators)
    await engine.run()
    await engine.stop()
    assert orchestrators.created[0].stop_calls == 1


@pytest.mark.asyncio
async def test_stop_never_raises():
    orchestrators = OrchestratorFactory(stop_error=RuntimeError("cannot stop"))
    engine = make_engine(flow_config(test=True), orchestrators=orchestrators)
    await engine.run()
    await engine.stop()
    assert orchestrators.created[0].stop_calls == 1
