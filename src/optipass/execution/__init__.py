"""Pass execution — worker contract and sequential executor."""

from optipass.execution.executor import PassExecutor
from optipass.execution.worker import (
    OptimizationWorker,
    SubprocessWorker,
    WorkerError,
    WorkerRequest,
    WorkerResponse,
    parse_response,
)

__all__ = [
    "OptimizationWorker",
    "PassExecutor",
    "SubprocessWorker",
    "WorkerError",
    "WorkerRequest",
    "WorkerResponse",
    "parse_response",
]
