"""
Shared fixtures: an in-memory vCenter inventory.

The fake objects mimic the pyVmomi managed objects the reconcilers touch and
record every remote call so tests can assert what was sent.
"""

import os
import sys
from types import SimpleNamespace

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from pyVmomi import vim

from vsphere_reconciler.client import VSphereClient, VSphereConfig
from vsphere_reconciler.core.tasks import TaskWaiter
from vsphere_reconciler.metrics import metrics


DRS_FIELDS = ("enabled", "enableVmBehaviorOverrides", "defaultVmBehavior", "vmotionRate")
DAS_FIELDS = ("enabled", "hostMonitoring", "vmMonitoring", "admissionControlEnabled")
ALLOCATION_FIELDS = ("shares", "reservation", "limit", "expandableReservation")


def merge(current, change, fields):
    for name in fields:
        value = getattr(change, name)
        if value is not None:
            setattr(current, name, value)


class FakeTask:
    """Task that is already terminal, or becomes terminal after ``pending`` polls"""

    def __init__(self, result=None, error=None, pending=0):
        self._result = result
        self._error = error
        self._pending = pending
        self.polls = 0

    @property
    def info(self):
        self.polls += 1
        if self.polls <= self._pending:
            return SimpleNamespace(state="running", result=None, error=None)
        if self._error is not None:
            return SimpleNamespace(state="error", result=None, error=self._error)
        return SimpleNamespace(state="success", result=self._result, error=None)


def wait_for_fake_task(task, raiseOnError=True, si=None, pc=None, onProgressUpdate=None):
    """Stand-in for pyVim.task.WaitForTask over a FakeTask"""
    info = task.info
    while info.state not in ("success", "error"):
        info = task.info
    if info.state == "error" and raiseOnError:
        raise info.error
    return info.state


class FakeManagedObject:
    vim_type = None
    prefix = "obj"

    def __init__(self, inventory, name, parent=None):
        self.inventory = inventory
        self.name = name
        self.parent = parent
        self.childEntity = []
        self._moId = inventory.next_id(self.prefix)
        if parent is not None:
            parent.childEntity.append(self)
        inventory.objects.append(self)

    def Destroy_Task(self):
        self.inventory.record("Destroy_Task", self)
        self.inventory.remove(self)
        return FakeTask()

    def __repr__(self):
        return f"<{type(self).__name__} {self.name} {self._moId}>"


class FakeResourcePool(FakeManagedObject):
    vim_type = vim.ResourcePool
    prefix = "resgroup"

    def __init__(self, inventory, name, parent, cpu=None, memory=None):
        super().__init__(inventory, name, parent)
        self.config = SimpleNamespace(
            cpuAllocation=cpu if cpu is not None else self._allocation(),
            memoryAllocation=memory if memory is not None else self._allocation(),
        )

    @staticmethod
    def _allocation():
        return vim.ResourceAllocationInfo(
            shares=vim.SharesInfo(level=vim.SharesInfo.Level.normal, shares=4000),
            reservation=0,
            limit=-1,
            expandableReservation=True,
        )

    def CreateResourcePool(self, name, spec):
        self.inventory.record("CreateResourcePool", self, name=name, spec=spec)
        return FakeResourcePool(self.inventory, name, self,
                                cpu=spec.cpuAllocation, memory=spec.memoryAllocation)

    def UpdateConfig(self, name, config):
        self.inventory.record("UpdateConfig", self, name=name, config=config)
        if config.cpuAllocation is not None:
            merge(self.config.cpuAllocation, config.cpuAllocation, ALLOCATION_FIELDS)
        if config.memoryAllocation is not None:
            merge(self.config.memoryAllocation, config.memoryAllocation, ALLOCATION_FIELDS)


class FakeHost(FakeManagedObject):
    vim_type = vim.HostSystem
    prefix = "host"


class FakeComputeResource(FakeManagedObject):
    vim_type = vim.ComputeResource
    prefix = "domain-s"

    def __init__(self, inventory, name, parent):
        super().__init__(inventory, name, parent)
        self.host = []
        self.resourcePool = FakeResourcePool(inventory, "Resources", self)

    def add_host(self, name):
        host = FakeHost(self.inventory, name, self)
        self.host.append(host)
        return host


class FakeCluster(FakeComputeResource):
    vim_type = vim.ClusterComputeResource
    prefix = "domain-c"

    def __init__(self, inventory, name, parent):
        super().__init__(inventory, name, parent)
        self.configurationEx = SimpleNamespace(
            drsConfig=vim.cluster.DrsConfigInfo(
                enabled=False,
                enableVmBehaviorOverrides=True,
                defaultVmBehavior=vim.cluster.DrsConfigInfo.DrsBehavior.fullyAutomated,
                vmotionRate=3,
            ),
            dasConfig=vim.cluster.DasConfigInfo(
                enabled=False,
                hostMonitoring="enabled",
                vmMonitoring="vmMonitoringDisabled",
                admissionControlEnabled=True,
            ),
        )

    def ReconfigureComputeResource_Task(self, spec, modify):
        self.inventory.record("ReconfigureComputeResource_Task", self, spec=spec, modify=modify)
        if spec.drsConfig is not None:
            merge(self.configurationEx.drsConfig, spec.drsConfig, DRS_FIELDS)
        if spec.dasConfig is not None:
            merge(self.configurationEx.dasConfig, spec.dasConfig, DAS_FIELDS)
        return FakeTask()

    def AddHost_Task(self, spec, asConnected, license=None):
        self.inventory.record("AddHost_Task", self, spec=spec, license=license)
        fault = self.inventory.next_connect_fault()
        if fault is not None:
            return FakeTask(error=fault)
        return FakeTask(result=self.add_host(spec.hostName))


class FakeFolder(FakeManagedObject):
    prefix = "group"

    def CreateDatacenter(self, name):
        self.inventory.record("CreateDatacenter", self, name=name)
        return FakeDatacenter(self.inventory, name, self)

    def CreateClusterEx(self, name, spec):
        self.inventory.record("CreateClusterEx", self, name=name, spec=spec)
        return FakeCluster(self.inventory, name, self)

    def AddStandaloneHost_Task(self, spec, addConnected, license=None):
        self.inventory.record("AddStandaloneHost_Task", self, spec=spec, license=license)
        fault = self.inventory.next_connect_fault()
        if fault is not None:
            return FakeTask(error=fault)
        compute_resource = FakeComputeResource(self.inventory, spec.hostName, self)
        compute_resource.add_host(spec.hostName)
        return FakeTask(result=compute_resource)


class FakeDatacenter(FakeManagedObject):
    vim_type = vim.Datacenter
    prefix = "datacenter"

    def __init__(self, inventory, name, parent):
        super().__init__(inventory, name, parent)
        self.hostFolder = FakeFolder(inventory, "host", self)


class FakeViewManager:

    def __init__(self, inventory):
        self.inventory = inventory

    def CreateContainerView(self, container, types, recursive):
        objects = [o for o in self.inventory.objects if o.vim_type in types]
        return SimpleNamespace(view=objects, Destroy=lambda: None)


class FakeInventory(VSphereClient):
    """VSphereClient over an in-memory object tree"""

    def __init__(self):
        super().__init__(VSphereConfig(host="vcenter.test", username="u", password="p"))
        self.objects = []
        self.calls = []
        self.connect_faults = []
        self._ids = 0
        root = FakeFolder(self, "Datacenters")
        self.content = SimpleNamespace(rootFolder=root, viewManager=FakeViewManager(self))
        self.service_instance = object()
        self._connected = True

    def next_id(self, prefix):
        self._ids += 1
        return f"{prefix}-{self._ids}"

    def record(self, method, target, **kwargs):
        self.calls.append(SimpleNamespace(method=method, target=target, kwargs=kwargs))

    def calls_to(self, method):
        return [c for c in self.calls if c.method == method]

    def next_connect_fault(self):
        return self.connect_faults.pop(0) if self.connect_faults else None

    def remove(self, obj):
        doomed = set()
        for candidate in self.objects:
            node = candidate
            while node is not None:
                if node is obj:
                    doomed.add(id(candidate))
                    break
                node = node.parent
        self.objects = [o for o in self.objects if id(o) not in doomed]
        if obj.parent is not None:
            obj.parent.childEntity.remove(obj)

    def standalone_compute_resources(self, folder):
        return [c for c in folder.childEntity if c.vim_type is vim.ComputeResource]

    # Inventory builders

    def add_datacenter(self, name):
        return FakeDatacenter(self, name, self.content.rootFolder)

    def add_cluster(self, datacenter, name):
        return FakeCluster(self, name, datacenter.hostFolder)

    def add_standalone_host(self, datacenter, name):
        compute_resource = FakeComputeResource(self, name, datacenter.hostFolder)
        return compute_resource.add_host(name)

    def add_pool(self, parent, name):
        return FakeResourcePool(self, name, parent.resourcePool)


@pytest.fixture
def inventory():
    """Empty fake vCenter inventory"""
    return FakeInventory()


@pytest.fixture
def waiter():
    return TaskWaiter()


@pytest.fixture
def fake_task():
    return FakeTask


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture(autouse=True)
def wait_for_task(monkeypatch):
    """Route task waits through the fake task states"""
    monkeypatch.setattr("vsphere_reconciler.core.tasks.WaitForTask", wait_for_fake_task)
    return wait_for_fake_task
