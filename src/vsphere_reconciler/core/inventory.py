"""
Inventory Path Resolver

Resolves declared object identities (kind, name, datacenter/cluster anchor)
to live inventory objects. Lookups always go through names and inventory
paths; managed object ids are only reported, never used as keys.

Author: uldyssian-sh
License: MIT
"""

from dataclasses import dataclass
from enum import Enum
from glob import escape
from typing import Any, Optional

import structlog

from ..exceptions import AmbiguousMatchError, NotFoundError, PathMismatchError

logger = structlog.get_logger(__name__)


class ObjectKind(Enum):
    """Inventory object kinds handled by the reconcilers"""
    DATACENTER = "datacenter"
    CLUSTER = "cluster"
    HOST = "host"
    RESOURCE_POOL = "resource pool"
    COMPUTE_RESOURCE = "compute resource"


@dataclass(frozen=True)
class InventoryObject:
    """A resolved managed object together with its inventory path"""
    kind: ObjectKind
    ref: Any
    path: str

    @property
    def object_id(self) -> str:
        return self.ref._moId

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]


def host_path(datacenter_path: str, host: str, cluster: Optional[str] = None) -> str:
    """Canonical inventory path of a host.

    A standalone host sits in a compute resource named after itself.
    """
    return f"{datacenter_path}/host/{cluster or host}/{host}"


class InventoryResolver:
    """Resolve declared identities against the live inventory"""

    def __init__(self, client):
        self.client = client

    def datacenter(self, name: Optional[str] = None) -> InventoryObject:
        """Find a datacenter under the root folder, or the default one"""
        if name is None:
            return self.client.default_datacenter()
        return self.client.find_one(ObjectKind.DATACENTER, f"/{escape(name)}")

    def cluster(self, name: str, datacenter: Optional[str] = None) -> InventoryObject:
        dc = self.datacenter(datacenter)
        return self.client.find_one(
            ObjectKind.CLUSTER, f"{escape(dc.path)}/host/{escape(name)}"
        )

    def host(self, name: str, datacenter: Optional[str] = None,
             cluster: Optional[str] = None) -> InventoryObject:
        """Two-phase host lookup.

        The host is searched by name across the whole inventory and its path
        must then equal the path implied by the declared datacenter/cluster.
        """
        dc = self.datacenter(datacenter)
        candidate = self.client.find_one(ObjectKind.HOST, f"*/{escape(name)}")
        expected = host_path(dc.path, name, cluster)

        if candidate.path != expected:
            logger.error("Host found under unexpected parent",
                         host=name, found=candidate.path, expected=expected)
            raise PathMismatchError(
                f"found host at path '{candidate.path}' which does not match "
                f"the expected path of '{expected}'",
                found_path=candidate.path,
                expected_path=expected,
                obj=candidate,
            )

        logger.debug("Resolved host", host=name, path=candidate.path)
        return candidate

    def resource_pool(self, name: str, parent: str,
                      datacenter: Optional[str] = None) -> InventoryObject:
        """Find a pool nested under the implicit ``Resources`` pool of ``parent``"""
        dc = self.datacenter(datacenter)
        suffix = f"/{parent}/Resources/{name}"
        search = f"*/Resources/{escape(name)}"

        matches = [
            pool for pool in self.client.find(ObjectKind.RESOURCE_POOL, search)
            if pool.path.endswith(suffix) and pool.path.startswith(dc.path + "/")
        ]
        if not matches:
            raise NotFoundError(f"resource pool {name} was not found")
        if len(matches) > 1:
            raise AmbiguousMatchError(
                f"resource pool {name} under '{parent}' resolves to multiple objects",
                [m.path for m in matches],
            )
        return matches[0]

    def root_resource_pool(self, parent: str,
                           datacenter: Optional[str] = None) -> InventoryObject:
        """The unnamed default pool every cluster and standalone host exposes"""
        dc = self.datacenter(datacenter)
        return self.client.find_one(
            ObjectKind.RESOURCE_POOL, f"{escape(dc.path)}/*/{escape(parent)}/Resources"
        )
