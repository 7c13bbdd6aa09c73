"""
Async Task Waiter

Submits state-changing inventory operations and blocks until the vCenter
task reaches a terminal state. Failures are surfaced as structured faults so
callers can dispatch on the fault kind.

Author: uldyssian-sh
License: MIT
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import structlog
from pyVim.task import WaitForTask
from pyVmomi import vim, vmodl

from ..exceptions import RemoteOperationError, UnverifiedCertificateError
from ..metrics import metrics

logger = structlog.get_logger(__name__)


class FaultKind(Enum):
    """Platform fault kinds the reconcilers distinguish"""
    SSL_VERIFY = "ssl_verify"
    DUPLICATE_NAME = "duplicate_name"
    NOT_FOUND = "not_found"
    INVALID_LOGIN = "invalid_login"
    HOST_CONNECT = "host_connect"
    OTHER = "other"


# Most specific first: SSLVerifyFault is a HostConnectFault
_FAULT_KINDS = (
    (vim.fault.SSLVerifyFault, FaultKind.SSL_VERIFY),
    (vim.fault.DuplicateName, FaultKind.DUPLICATE_NAME),
    (vim.fault.NotFound, FaultKind.NOT_FOUND),
    (vmodl.fault.ManagedObjectNotFound, FaultKind.NOT_FOUND),
    (vim.fault.InvalidLogin, FaultKind.INVALID_LOGIN),
    (vim.fault.HostConnectFault, FaultKind.HOST_CONNECT),
)


def classify_fault(fault: Any) -> FaultKind:
    for fault_type, kind in _FAULT_KINDS:
        if isinstance(fault, fault_type):
            return kind
    return FaultKind.OTHER


@dataclass(frozen=True)
class TaskFault:
    """Terminal fault of a failed task or rejected request"""
    kind: FaultKind
    message: str
    thumbprint: Optional[str] = None
    raw: Any = None

    @classmethod
    def from_fault(cls, fault: Any) -> "TaskFault":
        if fault is None:
            return cls(kind=FaultKind.OTHER, message="task failed without a fault")
        kind = classify_fault(fault)
        message = getattr(fault, "msg", None) or str(fault)
        thumbprint = fault.thumbprint if kind == FaultKind.SSL_VERIFY else None
        return cls(kind=kind, message=message, thumbprint=thumbprint, raw=fault)


def remote_error(description: str, fault: Any) -> RemoteOperationError:
    """Typed error for a platform fault, keeping its message verbatim"""
    task_fault = TaskFault.from_fault(fault)
    error_class = (UnverifiedCertificateError if task_fault.kind == FaultKind.SSL_VERIFY
                   else RemoteOperationError)
    return error_class(f"{description} failed: {task_fault.message}", fault=task_fault)


def raise_for_fault(description: str, fault: Any) -> None:
    raise remote_error(description, fault)


class TaskWaiter:
    """Run remote operations and wait for their tasks.

    There is no timeout. A wait ends only when vCenter reports
    the task as succeeded or failed.
    """

    def call(self, description: str, operation: Callable[..., Any], *args, **kwargs) -> Any:
        """Invoke a synchronous remote method, converting method faults"""
        try:
            return operation(*args, **kwargs)
        except vmodl.MethodFault as fault:
            logger.error("Remote call rejected", operation=description,
                         fault=type(fault).__name__)
            metrics.increment("remote_calls_failed")
            raise_for_fault(description, fault)

    def submit(self, description: str, operation: Callable[..., Any], *args, **kwargs) -> Any:
        """Start an operation that returns a task handle"""
        logger.debug("Submitting task", operation=description)
        metrics.increment("tasks_submitted")
        return self.call(description, operation, *args, **kwargs)

    def wait(self, description: str, task: Any) -> Any:
        """Block until ``task`` is terminal and return its result"""
        started = time.time()
        try:
            WaitForTask(task)
        except vmodl.MethodFault as fault:
            metrics.increment("tasks_failed")
            logger.error("Task failed", operation=description, fault=type(fault).__name__)
            raise_for_fault(description, fault)

        metrics.record_histogram("task_duration_seconds", time.time() - started)
        logger.debug("Task completed", operation=description)
        return task.info.result

    def run(self, description: str, operation: Callable[..., Any], *args, **kwargs) -> Any:
        """Submit an operation and wait for its task"""
        task = self.submit(description, operation, *args, **kwargs)
        return self.wait(description, task)
