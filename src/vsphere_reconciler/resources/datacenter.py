"""
Datacenter Reconciler

Author: uldyssian-sh
License: MIT
"""

import structlog

from ..core.inventory import InventoryObject, ObjectKind
from ..core.schema import Field, ResourceData
from .base import KEEP, OBJECT_ID, Reconciler

logger = structlog.get_logger(__name__)


class DatacenterReconciler(Reconciler):
    """Datacenters directly under the root folder. Nothing about them is mutable."""

    resource_type = "vsphere_datacenter"
    kind = ObjectKind.DATACENTER
    schema = {
        "name": Field(str, required=True),
        "keep": KEEP,
        "object_id": OBJECT_ID,
    }

    def find(self, data: ResourceData) -> InventoryObject:
        return self.resolver.datacenter(data.get("name"))

    def create_object(self, data: ResourceData) -> InventoryObject:
        name = data.get("name")
        logger.info("Creating datacenter", datacenter=name)
        root = self.client.root_folder
        ref = self.waiter.call(f"create datacenter '{name}'", root.CreateDatacenter, name=name)
        return InventoryObject(kind=self.kind, ref=ref, path=self.client.inventory_path(ref))
