"""
Object reconcilers, one per resource type.

Author: uldyssian-sh
License: MIT
"""

from .base import Reconciler, find_or_create
from .cluster import ClusterReconciler
from .datacenter import DatacenterReconciler
from .host import HostReconciler
from .resource_pool import ResourcePoolReconciler

__all__ = [
    "Reconciler",
    "find_or_create",
    "DatacenterReconciler",
    "ClusterReconciler",
    "HostReconciler",
    "ResourcePoolReconciler",
]
