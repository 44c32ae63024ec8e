"""Apply desired addresses and static routes to the kernel."""

from __future__ import annotations

import errno
import ipaddress
import logging
import socket
from typing import Any, Dict, Optional

from pyroute2.netlink.exceptions import NetlinkError

from .errors import GatewayNotFound, KernelOperationError
from .inspector import NetworkInspector
from .models import RouteRule
from .netlink import IPRouteFactory, default_ipr_factory, kernel_operation, message_attr

LOG = logging.getLogger(__name__)


def parse_desired_address(ip: str) -> ipaddress.IPv4Interface:
    """Parse a CIDR or bare IPv4 address; bare addresses become ``/32``."""

    try:
        return ipaddress.IPv4Interface(ip)
    except ValueError as exc:
        raise KernelOperationError(f"invalid address {ip!r}: {exc}") from exc


class NetworkReconciler:
    """Idempotent address replacement and append-only route insertion."""

    def __init__(
        self,
        ipr_factory: IPRouteFactory = default_ipr_factory,
        inspector: Optional[NetworkInspector] = None,
    ) -> None:
        self._ipr_factory = ipr_factory
        self._inspector = inspector or NetworkInspector(ipr_factory)

    @property
    def inspector(self) -> NetworkInspector:
        return self._inspector

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------
    def apply_address(self, interface_name: str, ip: str) -> None:
        """Replace every IPv4 address on ``interface_name`` with ``ip``.

        This is a full replace rather than a diff: addresses unrelated to the
        configuration are removed as well. The link is brought up before the
        new address is added.
        """

        desired = parse_desired_address(ip)
        with kernel_operation(f"applying {ip} to {interface_name}"):
            with self._ipr_factory() as ipr:
                index = self._link_index(ipr, interface_name)
                existing = list(ipr.get_addr(index=index, family=socket.AF_INET))
                for addr in existing:
                    current = message_attr(addr, "IFA_LOCAL") or message_attr(addr, "IFA_ADDRESS")
                    LOG.debug(
                        "removing %s/%s from %s", current, addr["prefixlen"], interface_name
                    )
                    try:
                        ipr.addr(
                            "del",
                            index=index,
                            address=current,
                            prefixlen=addr["prefixlen"],
                        )
                    except NetlinkError as exc:
                        # Secondaries go away with their primary unless
                        # promote_secondaries is set.
                        if exc.code != errno.EADDRNOTAVAIL:
                            raise
                        LOG.debug("%s already gone from %s", current, interface_name)
                ipr.link("set", index=index, state="up")
                ipr.addr(
                    "add",
                    index=index,
                    address=str(desired.ip),
                    prefixlen=desired.network.prefixlen,
                )
        LOG.info("Added %s to %s", desired.with_prefixlen, interface_name)

    @staticmethod
    def _link_index(ipr: Any, name: str) -> int:
        indexes = ipr.link_lookup(ifname=name)
        if not indexes:
            raise KernelOperationError(f"link {name!r} not found")
        return int(indexes[0])

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------
    def apply_route(self, rule: RouteRule) -> bool:
        """Append ``rule`` through the link that can reach its gateway.

        Returns ``False`` when no local subnet contains the gateway, in which
        case nothing is changed. A route the kernel already holds counts as
        applied.
        """

        try:
            index = self._inspector.find_gateway_index(rule.gateway)
        except GatewayNotFound:
            LOG.info(
                "Skipping route %s via %s: gateway not on a local network",
                rule.destination,
                rule.gateway,
            )
            return False

        request: Dict[str, Any] = {
            "family": socket.AF_INET,
            "gateway": rule.gateway,
            "oif": index,
        }
        destination = rule.kernel_destination()
        if destination is not None:
            request["dst"] = destination

        with kernel_operation(f"adding route {rule.destination} via {rule.gateway}"):
            with self._ipr_factory() as ipr:
                ipr.link("set", index=index, state="up")
                try:
                    ipr.route("append", **request)
                except NetlinkError as exc:
                    if exc.code != errno.EEXIST:
                        raise
                    LOG.debug(
                        "route %s via %s already present", rule.destination, rule.gateway
                    )
                    return True
        LOG.info("Added route %s via %s", rule.destination, rule.gateway)
        return True
