"""Exception types shared by the reconciliation pipeline."""

from __future__ import annotations


class FetchError(RuntimeError):
    """The metadata service could not provide a usable NIC list.

    Recovered by the watcher: the poll tick is skipped and the next one
    retries naturally.
    """


class GatewayNotFound(LookupError):
    """No local IPv4 subnet contains the requested gateway."""


class KernelOperationError(RuntimeError):
    """A netlink operation (or the input it needed) failed.

    These are not recovered inside a reconciliation cycle.
    """
