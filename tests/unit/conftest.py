import errno
import ipaddress
import socket
from typing import Dict, List, Optional

import pytest
from pyroute2.netlink.exceptions import NetlinkError


class FakeMessage(dict):
    """Stand-in for a pyroute2 netlink message."""

    def __init__(self, fields, attrs):
        super().__init__(fields)
        self._attrs = dict(attrs)

    def get_attr(self, name):
        return self._attrs.get(name)


class FakeKernel:
    """In-memory links, IPv4 addresses and routes."""

    def __init__(self):
        self.links: Dict[int, dict] = {}
        self.addresses: List[tuple] = []
        self.routes: List[dict] = []
        self.calls: List[tuple] = []
        self.route_error: Optional[int] = None
        self.addr_del_error: Optional[int] = None
        # Deleting a primary drops the secondaries of its subnet
        # (promote_secondaries=0).
        self.drop_secondaries = False
        self.add_link("lo", "00:00:00:00:00:00", state="up")
        self.add_address(1, "127.0.0.1", 8)

    def add_link(self, name, mac, state="down"):
        index = len(self.links) + 1
        self.links[index] = {"name": name, "mac": mac, "state": state}
        return index

    def add_address(self, index, address, prefixlen):
        self.addresses.append((index, address, prefixlen))

    def addresses_of(self, name):
        index = next(i for i, link in self.links.items() if link["name"] == name)
        return [f"{a}/{p}" for i, a, p in self.addresses if i == index]

    def state_of(self, name):
        return next(link["state"] for link in self.links.values() if link["name"] == name)

    def ipr(self):
        return FakeIPRoute(self)


class FakeIPRoute:
    def __init__(self, kernel: FakeKernel):
        self._kernel = kernel

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def get_links(self):
        return [
            FakeMessage({"index": index}, {"IFLA_IFNAME": link["name"], "IFLA_ADDRESS": link["mac"]})
            for index, link in self._kernel.links.items()
        ]

    def link_lookup(self, ifname):
        return [i for i, link in self._kernel.links.items() if link["name"] == ifname]

    def get_addr(self, index=None, family=None):
        assert family in (None, socket.AF_INET)
        return [
            FakeMessage(
                {"index": i, "prefixlen": p, "family": socket.AF_INET},
                {"IFA_ADDRESS": a, "IFA_LOCAL": a},
            )
            for i, a, p in list(self._kernel.addresses)
            if index is None or i == index
        ]

    def link(self, cmd, index, **kwargs):
        self._kernel.calls.append(("link", cmd, index, kwargs))
        if index not in self._kernel.links:
            raise NetlinkError(errno.ENODEV)
        self._kernel.links[index].update(kwargs)

    def addr(self, cmd, index, address, prefixlen):
        self._kernel.calls.append(("addr", cmd, index, address, prefixlen))
        entry = (index, address, prefixlen)
        if cmd == "add":
            if entry in self._kernel.addresses:
                raise NetlinkError(errno.EEXIST)
            self._kernel.addresses.append(entry)
        elif cmd == "del":
            if self._kernel.addr_del_error is not None:
                raise NetlinkError(self._kernel.addr_del_error)
            if entry not in self._kernel.addresses:
                raise NetlinkError(errno.EADDRNOTAVAIL)
            self._kernel.addresses.remove(entry)
            if self._kernel.drop_secondaries:
                subnet = ipaddress.ip_interface(f"{address}/{prefixlen}").network
                self._kernel.addresses = [
                    (i, a, p)
                    for i, a, p in self._kernel.addresses
                    if i != index or ipaddress.ip_address(a) not in subnet
                ]

    def route(self, cmd, **kwargs):
        self._kernel.calls.append(("route", cmd, kwargs))
        if self._kernel.route_error is not None:
            raise NetlinkError(self._kernel.route_error)
        assert cmd == "append"
        if "dst" in kwargs:
            ipaddress.ip_network(kwargs["dst"])
        if kwargs in self._kernel.routes:
            raise NetlinkError(errno.EEXIST)
        self._kernel.routes.append(dict(kwargs))


@pytest.fixture
def kernel() -> FakeKernel:
    return FakeKernel()
