class BenchmarkError(Exception):
    """Base class for errors raised by ledgerbench."""


class ConnectorMethodNotImplementedError(BenchmarkError, NotImplementedError):
    def __init__(self, method_name: str):
        self.method_name = method_name
        super().__init__(f'Method "{method_name}" is not implemented for this connector')


class RateControlConfigError(BenchmarkError, ValueError):
    """Raised when a rate controller cannot be built from its options."""


class TraceFileNotFoundError(RateControlConfigError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Trace file does not exist: {path}")


class CommandExecutionError(BenchmarkError):
    def __init__(self, command: str, returncode: int | None, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"Command '{command}' exited with code {returncode}{detail}")


class WorkloadError(BenchmarkError):
    """Raised when a workload module cannot be loaded or driven."""
