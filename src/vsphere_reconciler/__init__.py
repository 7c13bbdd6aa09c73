"""
vSphere Reconciler

Reconciles declared vSphere inventory objects (datacenters, clusters, hosts
and resource pools) against a live vCenter: finds or creates each object,
converges its configuration and reads it back for drift detection.

Author: uldyssian-sh
License: MIT
Version: 0.3.0
"""

__version__ = "0.3.0"
__author__ = "uldyssian-sh"
__license__ = "MIT"
__description__ = "vSphere Reconciler - declarative vCenter inventory reconciliation"

from .exceptions import (
    ReconcilerError,
    ConfigurationError,
    VSphereConnectionError,
    ValidationError,
    NotFoundError,
    AmbiguousMatchError,
    PathMismatchError,
    RemoteOperationError,
    UnverifiedCertificateError,
)


def get_version():
    """Get the current version of vSphere Reconciler."""
    return __version__


__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "get_version",
    "ReconcilerError",
    "ConfigurationError",
    "VSphereConnectionError",
    "ValidationError",
    "NotFoundError",
    "AmbiguousMatchError",
    "PathMismatchError",
    "RemoteOperationError",
    "UnverifiedCertificateError",
]
