"""Reconciliation loop driven by NIC sets received from the watcher."""

from __future__ import annotations

import logging
from threading import Event, Thread
from typing import Dict, Optional

from pn_sync.models import NicSet
from pn_sync.reconciler import NetworkReconciler
from pn_sync.routes import parse_routes
from pn_sync.state import Handoff, SharedState

from .config import AgentConfig

LOG = logging.getLogger(__name__)


class NicUpdater(Thread):
    """Apply addresses and routes for each NIC set handed off by the watcher.

    Any failure while reconciling is fatal for the agent: the cycle is not
    committed, ``error`` is recorded and the shared stop event is set so the
    process can exit and be restarted by its supervisor.
    """

    def __init__(
        self,
        config: AgentConfig,
        reconciler: NetworkReconciler,
        state: SharedState,
        handoff: Handoff,
        stop_event: Event,
        *,
        receive_timeout: float = 1.0,
    ) -> None:
        super().__init__(daemon=True, name="pn-updater")
        self._config = config
        self._reconciler = reconciler
        self._state = state
        self._handoff = handoff
        self._stop_event = stop_event
        self._receive_timeout = receive_timeout
        self.error: Optional[BaseException] = None

    def run(self) -> None:
        while not self._stop_event.is_set():
            nics = self._handoff.receive(timeout=self._receive_timeout)
            if nics is None:
                continue
            try:
                self.update(nics)
            except Exception as exc:
                LOG.exception("Error: reconciliation of %s failed, stopping agent", nics)
                self.error = exc
                self._stop_event.set()
                return
        LOG.debug("updater stopped")

    def update(self, nics: NicSet) -> None:
        """Reconcile the host for ``nics`` and commit it as current."""

        try:
            addresses = self.match_interfaces(nics)
            for interface_name, ip in addresses.items():
                self._reconciler.apply_address(interface_name, ip)

            for rule in parse_routes(self._config.routes):
                self._reconciler.apply_route(rule)
        except BaseException:
            self._state.abandon(nics)
            raise

        self._state.commit(nics)

    def match_interfaces(self, nics: NicSet) -> Dict[str, str]:
        """Map host interface names to desired addresses for ``nics``."""

        addresses: Dict[str, str] = {}
        for iface in self._reconciler.inspector.list_interfaces():
            if not iface.has_hardware_address:
                continue
            for nic in nics:
                if nic.mac.lower() != iface.mac.lower():
                    continue
                LOG.info("Found interface %s with mac address %s", iface.name, nic.mac)
                attachment = self._config.attachment_for(nic.id)
                if attachment is not None:
                    addresses[iface.name] = attachment.ip
        return addresses
