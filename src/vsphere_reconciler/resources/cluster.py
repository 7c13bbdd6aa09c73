"""
Cluster Reconciler

Clusters live in the host folder of their datacenter. DRS and HA are owned
only when declared; an absent section leaves that facet alone.

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


DRS_SECTION = Section({
    "enable_vm_automation_override": Field(bool),
    "default_automation_level": Field(str, description="manual, partiallyAutomated or fullyAutomated"),
    "migration_threshold": Field(int),
})

HA_SECTION = Section({
    "host_monitoring": Field(str, description="enabled or disabled"),
    "vm_monitoring": Field(str, description="vmAndAppMonitoring, vmMonitoringOnly or vmMonitoringDisabled"),
    "admission_control_enabled": Field(bool),
})


class ClusterReconciler(Reconciler):

    resource_type = "vsphere_cluster"
    kind = ObjectKind.CLUSTER
    schema = {
        "name": Field(str, required=True),
        "datacenter_id": Field(str, description="Datacenter name; the only datacenter when unset"),
        "drs": DRS_SECTION,
        "ha": HA_SECTION,
        "keep": KEEP,
        "object_id": OBJECT_ID,
    }

    def _config_spec(self, data: ResourceData) -> vim.cluster.ConfigSpecEx:
        return translator.cluster_config_spec(data.get("drs"), data.get("ha"))

    def validate(self, data: ResourceData) -> None:
        self._config_spec(data)

    def find(self, data: ResourceData) -> InventoryObject:
        return self.resolver.cluster(data.get("name"), data.get("datacenter_id"))

    def create_object(self, data: ResourceData) -> InventoryObject:
        name = data.get("name")
        datacenter = self.resolver.datacenter(data.get("datacenter_id"))
        logger.info("Creating cluster", cluster=name, datacenter=datacenter.path)
        ref = self.waiter.call(
            f"create cluster '{name}'",
            datacenter.ref.hostFolder.CreateClusterEx,
            name=name,
            spec=vim.cluster.ConfigSpecEx(),
        )
        return InventoryObject(kind=self.kind, ref=ref, path=self.client.inventory_path(ref))

    def converge(self, obj: InventoryObject, data: ResourceData, created: bool) -> None:
        self._reconfigure(obj, self._config_spec(data))

    def _reconfigure(self, obj: InventoryObject, spec: vim.cluster.ConfigSpecEx) -> None:
        logger.info("Updating cluster", path=obj.path,
                    drs=spec.drsConfig is not None, ha=spec.dasConfig is not None)
        self.waiter.run(
            f"reconfigure cluster '{obj.name}'",
            obj.ref.ReconfigureComputeResource_Task,
            spec=spec,
            modify=True,
        )

    def update(self, data: ResourceData) -> None:
        spec = self._config_spec(data)
        obj = self.find(data)
        self._reconfigure(obj, spec)
        self.read(data)

    def observe(self, obj: InventoryObject, data: ResourceData) -> None:
        config = obj.ref.configurationEx
        data.set("drs", translator.drs_sections(config.drsConfig))
        data.set("ha", translator.ha_sections(config.dasConfig))
