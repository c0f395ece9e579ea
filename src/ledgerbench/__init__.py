__all__ = [
    "Config",
    "ConnectorBase",
    "ConnectorInterface",
    "Engine",
    "ExitCode",
    "RoundDescriptor",
    "RoundOrchestrator",
    "TransactionStatisticsCollector",
    "TxStatus",
    "WorkloadModuleBase",
    "create_rate_controller",
    "register_rate_controller",
]


from .config import Config
from .connector import ConnectorBase, ConnectorInterface
from .engine import Engine, ExitCode
from .models import RoundDescriptor
from .orchestrator import RoundOrchestrator
from .rate_control import create_rate_controller, register_rate_controller
from .statistics import TransactionStatisticsCollector
from .tx_status import TxStatus
from .workload import WorkloadModuleBase
