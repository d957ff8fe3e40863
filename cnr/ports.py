from __future__ import annotations

from typing import Iterable

from .api_models import PortMapping, Protocol
from .errors import ConflictingPortMapping, MultipleHTTPSPorts


def validate_ports(ports: Iterable[PortMapping]) -> None:
    """Check the port table before anything is built.

    A port of 0 exposes the target port directly. Raises
    ConflictingPortMapping if one external port points at two different
    targets and MultipleHTTPSPorts on a second HTTPS mapping.
    """
    seen_https = False
    targets: dict[int, int] = {}
    for mapping in ports:
        if mapping.protocol == Protocol.HTTPS:
            if seen_https:
                raise MultipleHTTPSPorts()
            seen_https = True
        external = mapping.external_port
        existing = targets.get(external)
        if existing is not None and existing != mapping.target_port:
            raise ConflictingPortMapping(external, existing, mapping.target_port)
        targets[external] = mapping.target_port


def https_mapping(ports: Iterable[PortMapping]) -> tuple[int, PortMapping] | None:
    """Return (index, mapping) of the HTTPS mapping, if any."""
    for i, mapping in enumerate(ports):
        if mapping.protocol == Protocol.HTTPS:
            return i, mapping
    return None


def exposed_mappings(ports: Iterable[PortMapping]) -> list[tuple[int, PortMapping]]:
    """Mappings served by the load balancer. HTTPS goes through the ingress instead."""
    return [(i, m) for i, m in enumerate(ports) if m.protocol != Protocol.HTTPS]


def service_protocol(mapping: PortMapping) -> str:
    # Services only speak transport protocols; TLS terminates at the ingress.
    if mapping.protocol == Protocol.HTTPS:
        return Protocol.TCP.value
    return mapping.protocol.value
