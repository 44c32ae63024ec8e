"""Metadata poller that hands changed NIC sets to the updater."""

from __future__ import annotations

import logging
from threading import Event, Thread

from pn_sync.errors import FetchError
from pn_sync.metadata import MetadataClient
from pn_sync.state import Handoff, SharedState

LOG = logging.getLogger(__name__)


class MetadataWatcher(Thread):
    """Poll the metadata service and publish NIC set changes."""

    def __init__(
        self,
        client: MetadataClient,
        state: SharedState,
        handoff: Handoff,
        interval: float,
        stop_event: Event,
        *,
        send_timeout: float = 1.0,
    ) -> None:
        super().__init__(daemon=True, name="pn-metadata-watcher")
        self._client = client
        self._state = state
        self._handoff = handoff
        self._interval = interval
        self._stop_event = stop_event
        self._send_timeout = send_timeout

    def run(self) -> None:
        LOG.info("Starting polling every %s seconds", self._interval)
        while not self._stop_event.is_set():
            try:
                self.poll()
            except Exception:  # pragma: no cover - logged below
                LOG.exception("metadata watcher encountered an error")
            self._stop_event.wait(self._interval)
        LOG.debug("metadata watcher stopped")

    def poll(self) -> bool:
        """Run one poll tick. Returns ``True`` if a change was handed off."""

        try:
            nics = self._client.fetch_attached_interfaces()
        except FetchError as exc:
            LOG.debug("skipping poll: %s", exc)
            return False

        if not self._state.claim_if_changed(nics):
            return False

        LOG.info("New private nics state: %s", nics)
        while not self._handoff.send(nics, timeout=self._send_timeout):
            if self._stop_event.is_set():
                self._state.abandon(nics)
                return False
        return True
