"""
Host Connect with SSL Thumbprint Retry

Adding a host whose certificate vCenter does not trust fails with an
SSLVerifyFault carrying the certificate thumbprint. When the declaration
opts in, the thumbprint is pinned and the connect is submitted exactly once
more.

Author: uldyssian-sh
License: MIT
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Optional

import structlog
from pyVmomi import vim

from ..exceptions import RemoteOperationError
from ..metrics import metrics
from .tasks import FaultKind, TaskWaiter

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class HostConnectRequest:
    """Credentials and identity used to connect a host"""
    host: str
    user: str
    password: str
    ssl_thumbprint: Optional[str] = None

    def with_thumbprint(self, thumbprint: str) -> "HostConnectRequest":
        return replace(self, ssl_thumbprint=thumbprint)

    def to_spec(self) -> vim.host.ConnectSpec:
        spec = vim.host.ConnectSpec()
        spec.force = True
        spec.hostName = self.host
        spec.userName = self.user
        spec.password = self.password
        if self.ssl_thumbprint:
            spec.sslThumbprint = self.ssl_thumbprint
        return spec


class ConnectAttempt(Enum):
    FIRST_ATTEMPT = "first_attempt"
    RETRIED = "retried"


class HostConnector:
    """Drive one host connect with at most one thumbprint-pinned retry"""

    def __init__(self, waiter: TaskWaiter, skip_verification: bool = False):
        self.waiter = waiter
        self.skip_verification = skip_verification
        self.state = ConnectAttempt.FIRST_ATTEMPT

    def connect(self, description: str, add_host: Callable[[vim.host.ConnectSpec], Any],
                request: HostConnectRequest) -> Any:
        """Run ``add_host`` with a spec built from ``request``.

        ``add_host`` must start the connect and return its task.
        """
        self.state = ConnectAttempt.FIRST_ATTEMPT
        try:
            return self.waiter.run(description, add_host, request.to_spec())
        except RemoteOperationError as e:
            fault = e.fault
            if fault is None or fault.kind is not FaultKind.SSL_VERIFY:
                raise
            if not self.skip_verification or not fault.thumbprint:
                raise
            thumbprint = fault.thumbprint

        logger.warning("Host certificate not verified, retrying with its thumbprint",
                       host=request.host, thumbprint=thumbprint)
        metrics.increment("thumbprint_retries")
        self.state = ConnectAttempt.RETRIED
        return self.waiter.run(description, add_host, request.with_thumbprint(thumbprint).to_spec())
