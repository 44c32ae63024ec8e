"""Parsing of ``<dest> via <gateway>`` route lines."""

from __future__ import annotations

import ipaddress
import logging
import re
from typing import Dict, Iterable, List, Optional

from .models import RouteRule

LOG = logging.getLogger(__name__)

ROUTE_LINE = re.compile(r"^(?P<dest>default|[0-9./]+) +via +(?P<gw>[0-9.]+)$")


def parse_route_line(line: str) -> Optional[RouteRule]:
    """Parse a single route line, returning ``None`` when it is unusable."""

    match = ROUTE_LINE.match(line)
    if not match:
        return None

    dest = match.group("dest")
    gateway = match.group("gw")
    try:
        gateway = str(ipaddress.IPv4Address(gateway))
        if dest != "default":
            dest = str(ipaddress.IPv4Network(dest, strict=False))
    except ValueError as exc:
        LOG.warning("dropping route line %r: %s", line, exc)
        return None
    return RouteRule(destination=dest, gateway=gateway)


def parse_routes(lines: Iterable[str]) -> List[RouteRule]:
    """Parse route lines keyed by destination as written.

    Later lines with the same destination text replace earlier ones; the
    first occurrence fixes the position in the result. Destinations are keyed
    before normalisation, so ``10.0.0.5/24`` and ``10.0.0.0/24`` are two
    entries even though both apply to the same network.
    """

    rules: Dict[str, RouteRule] = {}
    for line in lines:
        line = str(line)
        rule = parse_route_line(line)
        if rule is None:
            LOG.debug("ignoring route line %r", line)
            continue
        rules[ROUTE_LINE.match(line).group("dest")] = rule  # type: ignore[union-attr]
    return list(rules.values())
