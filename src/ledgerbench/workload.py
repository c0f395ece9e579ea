import importlib
import inspect
import logging
from typing import Any

from .errors import WorkloadError

logger = logging.getLogger(__name__)


class WorkloadModuleBase:
    """Generates the transactions of a round.

    Subclasses implement ``submit_transaction``, usually by building a
    request and handing it to ``self.connector.send_requests``.
    """

    def __init__(self) -> None:
        self.worker_index = -1
        self.total_workers = 0
        self.round_index = -1
        self.round_arguments: dict[str, Any] = {}
        self.connector = None
        self.context: Any = None

    async def initialize_workload_module(
        self,
        worker_index: int,
        total_workers: int,
        round_index: int,
        round_arguments: dict[str, Any],
        connector,
        context: Any,
    ) -> None:
        self.worker_index = worker_index
        self.total_workers = total_workers
        self.round_index = round_index
        self.round_arguments = round_arguments
        self.connector = connector
        self.context = context

    async def submit_transaction(self) -> Any:
        raise NotImplementedError(
            f"{type(self).__name__} does not implement submit_transaction"
        )

    async def cleanup_workload_module(self) -> None:
        pass


def _instantiate(target: Any, origin: str) -> WorkloadModuleBase:
    # Classes and factory functions are called, ready instances used as they are
    instance = target() if inspect.isclass(target) or inspect.isfunction(target) else target
    if not hasattr(instance, "submit_transaction"):
        raise WorkloadError(f"Workload '{origin}' does not provide submit_transaction")
    return instance


def load_workload_module(module: Any) -> WorkloadModuleBase:
    """Create a fresh workload instance.

    ``module`` may be a class (or factory callable), ``"package.module:Attr"``,
    or a module path whose module defines ``create_workload_module()``.
    """
    if not isinstance(module, str):
        return _instantiate(module, repr(module))

    module_path, _, attr = module.partition(":")
    try:
        mod = importlib.import_module(module_path)
    except ImportError as e:
        raise WorkloadError(f"Cannot import workload module '{module_path}': {e}") from e

    attr = attr or "create_workload_module"
    target = getattr(mod, attr, None)
    if target is None:
        raise WorkloadError(f"Workload module '{module_path}' has no attribute '{attr}'")
    logger.debug(f"Loaded workload {module}")
    return _instantiate(target, module)
