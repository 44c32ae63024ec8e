"""Small helpers around :mod:`pyroute2` shared by inspector and reconciler."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

import pyroute2
from pyroute2.netlink.exceptions import NetlinkError

from .errors import KernelOperationError

IPRouteFactory = Callable[[], Any]


def default_ipr_factory() -> Any:
    return pyroute2.IPRoute()


@contextmanager
def kernel_operation(description: str) -> Iterator[None]:
    """Translate netlink/socket failures into :class:`KernelOperationError`."""

    try:
        yield
    except (NetlinkError, OSError) as exc:
        raise KernelOperationError(f"{description}: {exc}") from exc


def message_attr(msg: Any, name: str, default: Optional[Any] = None) -> Any:
    value = msg.get_attr(name)
    return default if value is None else value
