"""
Reconciler Base

Common lifecycle shared by every object kind: adopt-or-create, read-back
from the live inventory, convergence and retain-aware deletion.

Author: uldyssian-sh
License: MIT
"""

from typing import Any, Callable, Dict, Optional, Tuple

import structlog

from ..core.inventory import InventoryObject, InventoryResolver, ObjectKind
from ..core.schema import Field, ResourceData, Schema
from ..core.tasks import FaultKind, TaskWaiter
from ..exceptions import NotFoundError, RemoteOperationError
from ..metrics import metrics

logger = structlog.get_logger(__name__)


KEEP = Field(bool, default=False, description="Leave the object in vCenter on delete")
OBJECT_ID = Field(str, computed=True, description="Managed object id reported by vCenter")


def find_or_create(find: Callable[[], InventoryObject],
                   create: Callable[[], InventoryObject]) -> Tuple[InventoryObject, bool]:
    """Adopt the object ``find`` resolves, or ``create`` it when absent.

    Only a not-found result leads to creation; any other lookup error
    propagates. Returns the object and whether it was created.
    """
    try:
        return find(), False
    except NotFoundError as e:
        logger.debug("Object not found, creating it", reason=str(e))
    obj = create()
    metrics.increment("objects_created")
    return obj, True


class Reconciler:
    """Lifecycle callbacks for one resource type"""

    resource_type = ""
    kind: ObjectKind = None
    schema: Schema = {}

    def __init__(self, client, waiter: Optional[TaskWaiter] = None):
        self.client = client
        self.resolver = InventoryResolver(client)
        if waiter is None:
            waiter = TaskWaiter()
        self.waiter = waiter

    def new_data(self, attributes: Optional[Dict[str, Any]] = None, id: str = "") -> ResourceData:
        return ResourceData(self.schema, attributes, id=id)

    # Hooks

    def identity(self, data: ResourceData) -> str:
        return data.get("name")

    def find(self, data: ResourceData) -> InventoryObject:
        raise NotImplementedError

    def create_object(self, data: ResourceData) -> InventoryObject:
        raise NotImplementedError

    def validate(self, data: ResourceData) -> None:
        """Reject malformed configuration before anything is sent to vCenter"""

    def converge(self, obj: InventoryObject, data: ResourceData, created: bool) -> None:
        """Apply declared configuration after the object exists"""

    def observe(self, obj: InventoryObject, data: ResourceData) -> None:
        """Copy remote configuration into the declared model"""

    def destroy(self, obj: InventoryObject, data: ResourceData) -> None:
        logger.info(f"Deleting {self.kind.value}", name=self.identity(data), path=obj.path)
        self.waiter.run(f"destroy {self.kind.value} '{obj.name}'", obj.ref.Destroy_Task)
        metrics.increment("objects_destroyed")

    # Lifecycle

    def create(self, data: ResourceData) -> None:
        self.validate(data)
        obj, created = find_or_create(
            lambda: self.find(data),
            lambda: self.create_object(data),
        )
        if not created:
            logger.info(f"Adopting existing {self.kind.value}", path=obj.path)
        data.set_id(self.identity(data))
        self.converge(obj, data, created)
        self.read(data)

    def read(self, data: ResourceData) -> None:
        try:
            obj = self.find(data)
        except NotFoundError as e:
            logger.warning(f"{self.kind.value.capitalize()} no longer exists",
                           name=self.identity(data), reason=str(e))
            data.set_id("")
            data.set("object_id", None)
            return

        data.set_id(self.identity(data))
        data.set("object_id", obj.object_id)
        self.observe(obj, data)

    def update(self, data: ResourceData) -> None:
        self.read(data)

    def delete(self, data: ResourceData) -> None:
        if data.get("keep"):
            logger.info(f"Retaining {self.kind.value} on delete", name=self.identity(data))
            return
        try:
            obj = self.find(data)
        except NotFoundError:
            logger.info(f"{self.kind.value.capitalize()} already absent", name=self.identity(data))
            data.set_id("")
            return
        try:
            self.destroy(obj, data)
        except RemoteOperationError as e:
            # Removed by someone else between lookup and destroy
            if e.fault is None or e.fault.kind is not FaultKind.NOT_FOUND:
                raise
            logger.info(f"{self.kind.value.capitalize()} already absent", name=self.identity(data))
        data.set_id("")
