"""Private-network address and route synchronisation.

This package keeps the addresses and static routes of an instance's
private-network NICs in line with a desired configuration, driven by the NIC
list published by the local metadata service. It focuses on:

* fetching the attached private NICs (network id + MAC) from the metadata API;
* mapping NICs to host links by hardware address;
* replacing link addresses and appending static routes through netlink; and
* the shared state and handoff channel used by the long-running agent.

Nothing here starts threads; see :mod:`pn_agent` for the runtime.
"""

from .errors import FetchError, GatewayNotFound, KernelOperationError  # noqa: F401
from .models import DesiredAttachment, NetworkInterfaceRef, NicSet, RouteRule  # noqa: F401
from .reconciler import NetworkReconciler  # noqa: F401
from .state import Handoff, SharedState  # noqa: F401

__all__ = [
    "DesiredAttachment",
    "FetchError",
    "GatewayNotFound",
    "Handoff",
    "KernelOperationError",
    "NetworkInterfaceRef",
    "NetworkReconciler",
    "NicSet",
    "RouteRule",
    "SharedState",
]
