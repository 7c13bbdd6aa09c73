"""
Host Reconciler

Connects ESXi hosts either as standalone hosts in the datacenter host folder
or as members of a declared cluster. Host facets are fixed at connect time,
so there is nothing to update.

Author: uldyssian-sh
License: MIT
"""

import structlog

from ..core.connect import HostConnector, HostConnectRequest
from ..core.inventory import InventoryObject, ObjectKind
from ..core.schema import Field, ResourceData
from ..exceptions import NotFoundError
from ..metrics import metrics
from .base import KEEP, OBJECT_ID, Reconciler

logger = structlog.get_logger(__name__)


class HostReconciler(Reconciler):

    resource_type = "vsphere_host"
    kind = ObjectKind.HOST
    schema = {
        "host": Field(str, required=True, description="Host name or address"),
        "datacenter_id": Field(str, description="Datacenter name; the only datacenter when unset"),
        "cluster_id": Field(str, description="Cluster to join; standalone when unset"),
        "user": Field(str, required=True),
        "password": Field(str, required=True, sensitive=True),
        "license": Field(str),
        "ssl_no_verify": Field(bool, default=False,
                               description="Trust the certificate the host presents"),
        "keep": KEEP,
        "object_id": OBJECT_ID,
    }

    def identity(self, data: ResourceData) -> str:
        return data.get("host")

    def find(self, data: ResourceData) -> InventoryObject:
        return self.resolver.host(
            data.get("host"), data.get("datacenter_id"), data.get("cluster_id")
        )

    def create_object(self, data: ResourceData) -> InventoryObject:
        host = data.get("host")
        license_key, _ = data.get_ok("license")
        request = HostConnectRequest(
            host=host,
            user=data.get("user"),
            password=data.get("password"),
        )
        connector = HostConnector(self.waiter, skip_verification=data.get("ssl_no_verify"))

        cluster_name, in_cluster = data.get_ok("cluster_id")
        if in_cluster:
            cluster = self.resolver.cluster(cluster_name, data.get("datacenter_id"))
            logger.info("Adding host to cluster", host=host, cluster=cluster.path)

            def add_host(spec):
                return cluster.ref.AddHost_Task(spec=spec, asConnected=True,
                                                license=license_key or None)

            connector.connect(f"add host '{host}' to cluster '{cluster_name}'", add_host, request)
        else:
            datacenter = self.resolver.datacenter(data.get("datacenter_id"))
            logger.info("Adding standalone host", host=host, datacenter=datacenter.path)

            def add_host(spec):
                return datacenter.ref.hostFolder.AddStandaloneHost_Task(
                    spec=spec, addConnected=True, license=license_key or None)

            connector.connect(f"add standalone host '{host}'", add_host, request)

        logger.info("Host connected", host=host, attempt=connector.state.value)
        return self.find(data)

    def delete(self, data: ResourceData) -> None:
        cluster_name, in_cluster = data.get_ok("cluster_id")
        if not data.get("keep") and in_cluster:
            logger.warning(
                f"To remove host '{data.get('host')}' from cluster '{cluster_name}' delete the cluster"
            )
            return
        super().delete(data)

    def destroy(self, obj: InventoryObject, data: ResourceData) -> None:
        """Destroy the compute resource that wraps the standalone host"""
        datacenter = self.resolver.datacenter(data.get("datacenter_id"))
        folder = datacenter.ref.hostFolder

        compute_resource = None
        for candidate in self.client.standalone_compute_resources(folder):
            hosts = candidate.host
            if hosts and hosts[0]._moId == obj.object_id:
                compute_resource = candidate
                break
        if compute_resource is None:
            raise NotFoundError(
                f"compute resource of standalone host '{obj.name}' was not found"
            )

        logger.info("Removing standalone host", host=obj.name, path=obj.path)
        self.waiter.run(f"remove standalone host '{obj.name}'", compute_resource.Destroy_Task)
        metrics.increment("objects_destroyed")
