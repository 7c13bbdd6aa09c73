"""
Resource Pool Reconciler

Pools are addressed relative to the implicit ``Resources`` pool of their
parent cluster or standalone host.

Author: uldyssian-sh
License: MIT
"""

import structlog
from pyVmomi import vim

from ..core import translator
from ..core.inventory import InventoryObject, ObjectKind
from ..core.schema import Field, ResourceData, Section
from .base import KEEP, OBJECT_ID, Reconciler

logger = structlog.get_logger(__name__)


def _allocation_section(expandable_default=None) -> Section:
    return Section({
        "shares": Field(str, description="low, normal, high or a custom share count"),
        "reservation": Field(int),
        "expandable_reservation": Field(bool, default=expandable_default),
        "limit": Field(int, description="0 means unlimited"),
    })


class ResourcePoolReconciler(Reconciler):

    resource_type = "vsphere_resource_pool"
    kind = ObjectKind.RESOURCE_POOL
    schema = {
        "name": Field(str, required=True),
        "datacenter_id": Field(str, description="Datacenter name; the only datacenter when unset"),
        "parent_id": Field(str, required=True, description="Parent cluster or host"),
        "cpu": _allocation_section(),
        "memory": _allocation_section(expandable_default=True),
        "keep": KEEP,
        "object_id": OBJECT_ID,
    }

    def _config_spec(self, data: ResourceData, complete: bool = False) -> vim.ResourceConfigSpec:
        return translator.resource_config_spec(data.get("cpu"), data.get("memory"),
                                               complete=complete)

    def validate(self, data: ResourceData) -> None:
        self._config_spec(data)

    def find(self, data: ResourceData) -> InventoryObject:
        return self.resolver.resource_pool(
            data.get("name"), data.get("parent_id"), data.get("datacenter_id")
        )

    def create_object(self, data: ResourceData) -> InventoryObject:
        name = data.get("name")
        parent = self.resolver.root_resource_pool(data.get("parent_id"), data.get("datacenter_id"))
        logger.info("Creating resource pool", pool=name, parent=parent.path)
        ref = self.waiter.call(
            f"create resource pool '{name}'",
            parent.ref.CreateResourcePool,
            name=name,
            spec=self._config_spec(data, complete=True),
        )
        return InventoryObject(kind=self.kind, ref=ref, path=self.client.inventory_path(ref))

    def converge(self, obj: InventoryObject, data: ResourceData, created: bool) -> None:
        # A new pool already carries the declared allocation
        if not created:
            self._update_config(obj, data)

    def _update_config(self, obj: InventoryObject, data: ResourceData) -> None:
        spec = self._config_spec(data)
        logger.info("Updating resource pool", path=obj.path)
        self.waiter.call(
            f"update resource pool '{obj.name}'",
            obj.ref.UpdateConfig,
            name=data.get("name"),
            config=spec,
        )

    def update(self, data: ResourceData) -> None:
        self.validate(data)
        obj = self.find(data)
        self._update_config(obj, data)
        self.read(data)

    def observe(self, obj: InventoryObject, data: ResourceData) -> None:
        config = obj.ref.config
        logger.debug("Reading resource pool configuration", path=obj.path)
        data.set("cpu", translator.allocation_sections(config.cpuAllocation))
        data.set("memory", translator.allocation_sections(config.memoryAllocation))
