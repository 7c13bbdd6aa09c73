"""
vSphere Client

Session to the vCenter management plane used by every reconciler: endpoint
configuration, connection lifecycle and path-addressed inventory search.

Author: uldyssian-sh
License: MIT
"""

import logging
import os
import ssl
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Any, Dict, List, Optional

import yaml
from pyVim.connect import SmartConnect, Disconnect
from pyVmomi import vim

from .core.inventory import InventoryObject, ObjectKind
from .exceptions import (
    AmbiguousMatchError, ConfigurationError, NotFoundError, VSphereConnectionError
)

logger = logging.getLogger(__name__)


VIM_TYPES = {
    ObjectKind.DATACENTER: vim.Datacenter,
    ObjectKind.CLUSTER: vim.ClusterComputeResource,
    ObjectKind.HOST: vim.HostSystem,
    ObjectKind.RESOURCE_POOL: vim.ResourcePool,
    ObjectKind.COMPUTE_RESOURCE: vim.ComputeResource,
}


@dataclass
class VSphereConfig:
    """vCenter connection configuration"""
    host: str
    username: str
    password: str
    port: int = 443
    ssl_verify: bool = False


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(config_file: Optional[str] = None) -> VSphereConfig:
    """Load endpoint configuration from a YAML file with environment fallback.

    Every key missing from the file is taken from its ``VSPHERE_*``
    environment variable.
    """
    config_file = config_file or os.getenv("VSPHERE_CONFIG_FILE")
    data: Dict[str, Any] = {}
    if config_file:
        if not os.path.exists(config_file):
            raise ConfigurationError(f"Configuration file {config_file} not found")
        with open(config_file, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {config_file} must contain a mapping")

    host = data.get("host") or os.getenv("VSPHERE_HOST", "")
    username = data.get("username") or os.getenv("VSPHERE_USERNAME", "")
    password = data.get("password") or os.getenv("VSPHERE_PASSWORD", "")

    for key, value in (("host", host), ("username", username), ("password", password)):
        if not value:
            raise ConfigurationError(
                f"vCenter {key} is required. Set VSPHERE_{key.upper()} or provide it in the config file."
            )

    ssl_verify = data.get("ssl_verify")
    if ssl_verify is None:
        ssl_verify = os.getenv("VSPHERE_SSL_VERIFY", "false")
    # A quoted YAML value arrives as a string
    if isinstance(ssl_verify, str):
        ssl_verify = _env_bool(ssl_verify)

    try:
        port = int(data.get("port") or os.getenv("VSPHERE_PORT", "443"))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid port setting: {e}")

    return VSphereConfig(
        host=host,
        username=username,
        password=password,
        port=port,
        ssl_verify=bool(ssl_verify),
    )


class VSphereClient:
    """VMware vCenter API client"""
    
    def __init__(self, config: VSphereConfig):
        self.config = config
        self.service_instance = None
        self.content = None
        self._connected = False

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, *exc_info):
        self.disconnect()
    
    def connect(self):
        """Connect to vCenter"""
        try:
            if not self.config.ssl_verify:
                ssl_context = ssl.create_default_context()
                ssl_context.check_hostname = False
                ssl_context.verify_mode = ssl.CERT_NONE
            else:
                ssl_context = None
            
            self.service_instance = SmartConnect(
                host=self.config.host,
                user=self.config.username,
                pwd=self.config.password,
                port=self.config.port,
                sslContext=ssl_context
            )
            
            if not self.service_instance:
                raise VSphereConnectionError(f"Failed to connect to vCenter {self.config.host}")
            
            self.content = self.service_instance.RetrieveContent()
            self._connected = True
            
            logger.info(f"Connected to vCenter {self.config.host}")
            
        except VSphereConnectionError:
            raise
        except Exception as e:
            logger.error(f"vCenter connection failed: {str(e)}")
            raise VSphereConnectionError(f"Connection failed: {str(e)}")
    
    def disconnect(self):
        """Disconnect from vCenter"""
        if self.service_instance:
            try:
                Disconnect(self.service_instance)
                logger.info("Disconnected from vCenter")
            except Exception as e:
                logger.error(f"Disconnect error: {str(e)}")
            finally:
                self._connected = False
                self.service_instance = None
    
    def is_connected(self) -> bool:
        """Check if connected to vCenter"""
        return self._connected and self.service_instance is not None

    @property
    def root_folder(self) -> Any:
        if not self.content:
            raise VSphereConnectionError("Not connected to vCenter")
        return self.content.rootFolder

    def inventory_path(self, obj: Any) -> str:
        """Build the inventory path of ``obj`` by walking up to the root folder"""
        root = self.root_folder
        names = []
        while obj is not None and obj != root:
            names.append(obj.name)
            obj = obj.parent
        return "/" + "/".join(reversed(names))

    def _all_objects(self, vimtype: Any) -> List[Any]:
        container = self.content.viewManager.CreateContainerView(
            self.root_folder, [vimtype], True
        )
        try:
            return list(container.view)
        finally:
            container.Destroy()

    def find(self, kind: ObjectKind, pattern: str) -> List[InventoryObject]:
        """List objects of ``kind`` whose inventory path matches a glob pattern.

        ``*`` also matches across path separators, so ``*/esx1`` searches the
        whole inventory. Results are ordered by path.
        """
        matches = []
        for obj in self._all_objects(VIM_TYPES[kind]):
            # ClusterComputeResource is a ComputeResource subtype
            if kind == ObjectKind.COMPUTE_RESOURCE and isinstance(obj, vim.ClusterComputeResource):
                continue
            path = self.inventory_path(obj)
            if fnmatchcase(path, pattern):
                matches.append(InventoryObject(kind=kind, ref=obj, path=path))
        matches.sort(key=lambda o: o.path)
        logger.debug(f"Pattern {pattern} matched {len(matches)} {kind.value} object(s)")
        return matches

    def find_one(self, kind: ObjectKind, pattern: str) -> InventoryObject:
        """Resolve a pattern to exactly one object"""
        matches = self.find(kind, pattern)
        if not matches:
            raise NotFoundError(f"{kind.value} '{pattern}' not found")
        if len(matches) > 1:
            raise AmbiguousMatchError(
                f"path '{pattern}' resolves to multiple {kind.value} objects",
                [m.path for m in matches],
            )
        return matches[0]

    def default_datacenter(self) -> InventoryObject:
        """Return the only datacenter of the inventory"""
        datacenters = self.find(ObjectKind.DATACENTER, "*")
        if not datacenters:
            raise NotFoundError("no default datacenter found")
        if len(datacenters) > 1:
            raise AmbiguousMatchError(
                "default datacenter resolves to multiple instances, please specify",
                [d.path for d in datacenters],
            )
        return datacenters[0]

    def standalone_compute_resources(self, folder: Any) -> List[Any]:
        """Direct children of ``folder`` that wrap a single standalone host"""
        return [
            child for child in folder.childEntity
            if isinstance(child, vim.ComputeResource)
            and not isinstance(child, vim.ClusterComputeResource)
        ]
