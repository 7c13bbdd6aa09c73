"""
vSphere Reconciler Exceptions

Custom exception classes raised while reconciling declared objects against
the vCenter inventory.

Author: uldyssian-sh
License: MIT
"""


class ReconcilerError(Exception):
    """Base exception for vSphere Reconciler"""
    pass


class ConfigurationError(ReconcilerError):
    """Raised when endpoint or declaration configuration is invalid"""
    pass


class VSphereConnectionError(ReconcilerError):
    """Raised when connection to vCenter fails"""
    pass


class ValidationError(ReconcilerError):
    """Raised when a declared configuration is malformed.

    Always raised before any request reaches the management plane.
    """
    pass


class NotFoundError(ReconcilerError):
    """Raised when an object cannot be resolved in the inventory"""
    pass


class AmbiguousMatchError(ReconcilerError):
    """Raised when a lookup pattern resolves to more than one object"""

    def __init__(self, message, paths=None):
        super().__init__(message)
        self.paths = list(paths or [])


class PathMismatchError(ReconcilerError):
    """Raised when an object exists under a different parent than declared"""

    def __init__(self, message, found_path, expected_path, obj=None):
        super().__init__(message)
        self.found_path = found_path
        self.expected_path = expected_path
        self.obj = obj


class RemoteOperationError(ReconcilerError):
    """Raised when a task fails or vCenter rejects a request.

    The platform fault is kept on ``fault`` and its message is used verbatim.
    """

    def __init__(self, message, fault=None):
        super().__init__(message)
        self.fault = fault


class UnverifiedCertificateError(RemoteOperationError):
    """Raised when a host connect fails because its SSL certificate is not trusted"""

    @property
    def thumbprint(self):
        return self.fault.thumbprint if self.fault else None
