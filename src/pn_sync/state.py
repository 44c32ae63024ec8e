"""Shared NIC state and the handoff channel between watcher and updater."""

from __future__ import annotations

import logging
import queue
from threading import Lock
from typing import Optional

from .models import NicSet

LOG = logging.getLogger(__name__)


class SharedState:
    """Last committed :class:`NicSet` plus the one handed off but not committed.

    ``current`` only ever holds a set whose reconciliation cycle has finished.
    ``pending`` lets the watcher tell a genuinely new change from the one the
    updater is already working on, without holding the lock while the handoff
    blocks.
    """

    def __init__(self, initial: Optional[NicSet] = None) -> None:
        self._lock = Lock()
        self._current = initial if initial is not None else NicSet()
        self._pending: Optional[NicSet] = None

    @property
    def current(self) -> NicSet:
        with self._lock:
            return self._current

    @property
    def pending(self) -> Optional[NicSet]:
        with self._lock:
            return self._pending

    def claim_if_changed(self, observed: NicSet) -> bool:
        """Mark ``observed`` as pending when it differs from the latest known set.

        The latest known set is the pending one if a handoff is in flight,
        otherwise the committed one. Returns ``True`` when the caller should
        hand ``observed`` off.
        """

        with self._lock:
            baseline = self._pending if self._pending is not None else self._current
            if observed == baseline:
                return False
            self._pending = observed
            return True

    def commit(self, value: NicSet) -> None:
        # An equal set re-claimed while still queued behind another change is
        # cleared here too; it is then reconciled a second time when received,
        # which is harmless because addresses are replaced and existing routes
        # are accepted.
        with self._lock:
            self._current = value
            if self._pending is not None and self._pending == value:
                self._pending = None

    def abandon(self, value: NicSet) -> None:
        """Forget ``value`` as pending so the watcher can detect it again."""

        with self._lock:
            if self._pending is not None and self._pending == value:
                self._pending = None


class Handoff:
    """Capacity-one FIFO channel carrying changed NIC sets.

    :meth:`send` blocks while an earlier set is still waiting to be received,
    so at most one unreceived change exists at any time.
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[NicSet]" = queue.Queue(maxsize=1)

    def send(self, nics: NicSet, timeout: Optional[float] = None) -> bool:
        try:
            self._queue.put(nics, timeout=timeout)
        except queue.Full:
            return False
        return True

    def receive(self, timeout: Optional[float] = None) -> Optional[NicSet]:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
