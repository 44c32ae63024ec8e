"""Read-only view of host links and their IPv4 addresses."""

from __future__ import annotations

import ipaddress
import logging
import socket
from typing import List, Optional

from .errors import GatewayNotFound
from .models import HostInterface
from .netlink import IPRouteFactory, default_ipr_factory, kernel_operation, message_attr

LOG = logging.getLogger(__name__)


class NetworkInspector:
    """Enumerate host interfaces and resolve MACs/gateways to links."""

    def __init__(self, ipr_factory: IPRouteFactory = default_ipr_factory) -> None:
        self._ipr_factory = ipr_factory

    def list_interfaces(self) -> List[HostInterface]:
        interfaces: List[HostInterface] = []
        with kernel_operation("listing links"):
            with self._ipr_factory() as ipr:
                for link in ipr.get_links():
                    interfaces.append(
                        HostInterface(
                            index=int(link["index"]),
                            name=str(message_attr(link, "IFLA_IFNAME", "")),
                            mac=str(message_attr(link, "IFLA_ADDRESS", "")),
                        )
                    )
        return interfaces

    def interface_for_mac(self, mac: str) -> Optional[HostInterface]:
        """Return the first interface whose hardware address equals ``mac``."""

        wanted = mac.lower()
        for iface in self.list_interfaces():
            if iface.has_hardware_address and iface.mac.lower() == wanted:
                return iface
        return None

    def find_gateway_index(self, gateway: str) -> int:
        """Return the index of the link whose IPv4 subnet contains ``gateway``.

        Loopback addresses are never considered. Raises
        :class:`~pn_sync.errors.GatewayNotFound` when nothing matches.
        """

        target = ipaddress.IPv4Address(gateway)
        with kernel_operation("listing addresses"):
            with self._ipr_factory() as ipr:
                addresses = list(ipr.get_addr(family=socket.AF_INET))

        for addr in addresses:
            local = message_attr(addr, "IFA_LOCAL") or message_attr(addr, "IFA_ADDRESS")
            if not local:
                continue
            try:
                network = ipaddress.ip_interface(f"{local}/{addr['prefixlen']}")
            except ValueError:
                continue
            if network.version != 4 or network.ip.is_loopback:
                continue
            if target in network.network:
                LOG.debug("gateway %s reachable via link %s (%s)", gateway, addr["index"], network)
                return int(addr["index"])

        raise GatewayNotFound(f"network not found for gateway {gateway}")
