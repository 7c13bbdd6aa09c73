"""
vSphere Provider

Resource-type registry and the lifecycle callback contract used by a
declarative driver: each callback reports success or a typed failure that
only aborts the pass for that one object.

Author: uldyssian-sh
License: MIT
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import structlog
from pyVmomi import vmodl

from .core.schema import ResourceData
from .core.tasks import TaskWaiter, remote_error
from .exceptions import ConfigurationError, ReconcilerError, RemoteOperationError
from .resources import (
    ClusterReconciler, DatacenterReconciler, HostReconciler, ResourcePoolReconciler
)

logger = structlog.get_logger(__name__)


RESOURCE_TYPES = {
    cls.resource_type: cls
    for cls in (DatacenterReconciler, ClusterReconciler, HostReconciler, ResourcePoolReconciler)
}

OPERATIONS = ("create", "read", "update", "delete")


@dataclass
class LifecycleResult:
    """Outcome of one lifecycle callback"""
    resource_type: str
    operation: str
    success: bool
    state: Dict[str, Any] = field(default_factory=dict)
    error: Optional[ReconcilerError] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "resource_type": self.resource_type,
            "operation": self.operation,
            "success": self.success,
            "state": self.state,
        }
        if self.error is not None:
            result["error"] = str(self.error)
            result["error_type"] = type(self.error).__name__
        if isinstance(self.error, RemoteOperationError) and self.error.fault is not None:
            result["fault_kind"] = self.error.fault.kind.value
        return result


class Provider:
    """Dispatch lifecycle callbacks to the reconciler of each resource type"""

    def __init__(self, client, waiter: Optional[TaskWaiter] = None):
        self.client = client
        if waiter is None:
            waiter = TaskWaiter()
        self.waiter = waiter
        self._reconcilers = {}

    def reconciler(self, resource_type: str):
        if resource_type not in RESOURCE_TYPES:
            raise ConfigurationError(f"unknown resource type '{resource_type}'")
        if resource_type not in self._reconcilers:
            self._reconcilers[resource_type] = RESOURCE_TYPES[resource_type](self.client, self.waiter)
        return self._reconcilers[resource_type]

    def new_data(self, resource_type: str, attributes: Optional[Dict[str, Any]] = None,
                 id: str = "") -> ResourceData:
        return self.reconciler(resource_type).new_data(attributes, id=id)

    def create(self, resource_type: str, data: ResourceData) -> LifecycleResult:
        return self._invoke(resource_type, "create", data)

    def read(self, resource_type: str, data: ResourceData) -> LifecycleResult:
        return self._invoke(resource_type, "read", data)

    def update(self, resource_type: str, data: ResourceData) -> LifecycleResult:
        return self._invoke(resource_type, "update", data)

    def delete(self, resource_type: str, data: ResourceData) -> LifecycleResult:
        return self._invoke(resource_type, "delete", data)

    def _invoke(self, resource_type: str, operation: str, data: ResourceData) -> LifecycleResult:
        log = logger.bind(resource_type=resource_type, operation=operation)
        try:
            reconciler = self.reconciler(resource_type)
            try:
                getattr(reconciler, operation)(data)
            except vmodl.MethodFault as fault:
                # Property reads outside the task waiter can fault too
                raise remote_error(f"{operation} {resource_type}", fault)
        except ReconcilerError as e:
            log.error("Lifecycle operation failed", error=str(e), error_type=type(e).__name__)
            return LifecycleResult(resource_type, operation, False, data.state(redact=True), e)

        log.debug("Lifecycle operation completed", id=data.id)
        return LifecycleResult(resource_type, operation, True, data.state(redact=True))
