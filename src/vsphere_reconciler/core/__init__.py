"""
vSphere Reconciler - Core Engine

Inventory resolution, task waiting, host connect retry, configuration
translation and the attribute schema used by the reconcilers.

Author: uldyssian-sh
License: MIT
"""

from .connect import ConnectAttempt, HostConnector, HostConnectRequest
from .inventory import InventoryObject, InventoryResolver, ObjectKind
from .schema import Field, ResourceData, Section
from .tasks import FaultKind, TaskFault, TaskWaiter, classify_fault

__all__ = [
    "ConnectAttempt",
    "HostConnector",
    "HostConnectRequest",
    "InventoryObject",
    "InventoryResolver",
    "ObjectKind",
    "Field",
    "ResourceData",
    "Section",
    "FaultKind",
    "TaskFault",
    "TaskWaiter",
    "classify_fault",
]
