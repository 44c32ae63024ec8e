"""YAML configuration loader for the private-network agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import yaml

from pn_sync.metadata import METADATA_URL
from pn_sync.models import DesiredAttachment

DEFAULT_CONFIG_PATH = Path("/etc/scw-wau/pn.yaml")


class ConfigError(ValueError):
    """Raised when the configuration file cannot be used."""


@dataclass(frozen=True)
class AgentConfig:
    attachments: Sequence[DesiredAttachment] = field(default_factory=tuple)
    routes: Sequence[str] = field(default_factory=tuple)
    metadata_url: str = METADATA_URL
    metadata_timeout: Optional[float] = None

    def attachment_for(self, network_id: str) -> Optional[DesiredAttachment]:
        """Return the last attachment configured for ``network_id``."""

        found = None
        for attachment in self.attachments:
            if attachment.id == network_id:
                found = attachment
        return found


def _parse_attachments(entries: Iterable[dict]) -> List[DesiredAttachment]:
    attachments: List[DesiredAttachment] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ConfigError(f"'pns' entries must be mappings, got {entry!r}")
        if "id" not in entry or "ip" not in entry:
            raise ConfigError(f"'pns' entry requires 'id' and 'ip': {entry!r}")
        if entry["id"] is None or not isinstance(entry["ip"], str) or not entry["ip"]:
            raise ConfigError(f"'pns' entry needs a non-empty id and an ip string: {entry!r}")
        attachments.append(DesiredAttachment(id=str(entry["id"]), ip=entry["ip"]))
    return attachments


def _parse_timeout(value: object) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError("'metadata_timeout' must be a number")
    try:
        timeout = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigError("'metadata_timeout' must be a number") from exc
    if timeout <= 0:
        raise ConfigError("'metadata_timeout' must be positive")
    return timeout


def load_config(path: Path) -> AgentConfig:
    try:
        data = yaml.safe_load(Path(path).read_text())
    except yaml.YAMLError as exc:
        raise ConfigError(f"cannot parse {path}: {exc}") from exc

    if data is None:
        return AgentConfig()
    if not isinstance(data, dict):
        raise ConfigError("Agent configuration must be a mapping")

    pns_section = data.get("pns") or []
    if not isinstance(pns_section, list):
        raise ConfigError("'pns' section must be a list")

    routes_section = data.get("routes") or []
    if not isinstance(routes_section, list):
        raise ConfigError("'routes' section must be a list")

    return AgentConfig(
        attachments=tuple(_parse_attachments(pns_section)),
        routes=tuple(str(route) for route in routes_section),
        metadata_url=str(data.get("metadata_url", METADATA_URL)),
        metadata_timeout=_parse_timeout(data.get("metadata_timeout")),
    )
