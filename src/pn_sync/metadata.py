"""Client for the instance metadata service."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import requests

from .errors import FetchError
from .models import NetworkInterfaceRef, NicSet

LOG = logging.getLogger(__name__)

METADATA_IP = "169.254.42.42"
METADATA_URL = f"http://{METADATA_IP}/conf?format=json"


def parse_private_nics(payload: Any) -> NicSet:
    """Extract the ``private_nics`` list from a metadata document."""

    if not isinstance(payload, dict):
        raise FetchError("metadata document is not a JSON object")

    entries = payload.get("private_nics")
    if not isinstance(entries, list):
        raise FetchError("metadata document missing 'private_nics' list")

    nics: List[NetworkInterfaceRef] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise FetchError(f"unexpected private_nics entry: {entry!r}")
        network_id = entry.get("private_network_id")
        mac = entry.get("mac_address")
        if not isinstance(network_id, str) or not isinstance(mac, str):
            raise FetchError(
                f"private_nics entry lacks private_network_id/mac_address: {entry!r}"
            )
        nics.append(NetworkInterfaceRef(id=network_id, mac=mac))
    return NicSet(nics)


class MetadataClient:
    """Fetch the private NICs currently attached to this instance.

    A single GET per call: no retry and no caching. ``timeout`` is passed to
    :mod:`requests` unchanged, so ``None`` keeps the transport default.
    """

    def __init__(
        self,
        url: str = METADATA_URL,
        *,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def url(self) -> str:
        return self._url

    def fetch_attached_interfaces(self) -> NicSet:
        try:
            response = self._session.get(self._url, timeout=self._timeout)
        except requests.exceptions.RequestException as exc:
            raise FetchError(f"metadata request to {self._url} failed: {exc}") from exc

        if response.status_code != 200:
            raise FetchError(f"Got HTTP {response.status_code} from metadata api")

        try:
            payload = response.json()
        except ValueError as exc:
            raise FetchError(f"metadata response is not valid JSON: {exc}") from exc

        nics = parse_private_nics(payload)
        LOG.debug("metadata reports %d private nics", len(nics))
        return nics
