"""Data model for private-network attachments and their desired state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple


@dataclass(frozen=True)
class NetworkInterfaceRef:
    """One private-network attachment as reported by the metadata service.

    Attributes
    ----------
    id:
        The private network identifier.
    mac:
        Hardware address of the attached NIC, as reported (case preserved).
    """

    id: str
    mac: str


class NicSet:
    """Unordered collection of :class:`NetworkInterfaceRef`.

    Equality is order independent but cardinality sensitive: duplicates are
    kept, so ``{A, A}`` differs from ``{A}``.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[NetworkInterfaceRef] = ()) -> None:
        self._items: Tuple[NetworkInterfaceRef, ...] = tuple(items)

    def __iter__(self) -> Iterator[NetworkInterfaceRef]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NicSet):
            return NotImplemented
        if len(self._items) != len(other._items):
            return False
        remaining = list(other._items)
        for item in self._items:
            try:
                remaining.remove(item)
            except ValueError:
                return False
        return True

    def __repr__(self) -> str:
        body = ", ".join(f"{n.id}={n.mac}" for n in self._items)
        return f"NicSet([{body}])"


@dataclass(frozen=True)
class DesiredAttachment:
    """Configured address for a private network: ``id -> ip``."""

    id: str
    ip: str


@dataclass(frozen=True)
class RouteRule:
    """A static route parsed from a ``<dest> via <gateway>`` line.

    ``destination`` is either the literal ``"default"`` or a normalised IPv4
    CIDR string.
    """

    destination: str
    gateway: str

    @property
    def is_default(self) -> bool:
        return self.destination == "default"

    def kernel_destination(self) -> Optional[str]:
        """Return the destination to hand to netlink, ``None`` for default."""

        return None if self.is_default else self.destination


@dataclass(frozen=True)
class HostInterface:
    """A host link as seen through netlink."""

    index: int
    name: str
    mac: str

    @property
    def has_hardware_address(self) -> bool:
        return bool(self.mac) and self.mac != "00:00:00:00:00:00"
