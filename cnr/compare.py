"""Field-scoped equality and merging.

The API server fills in a lot of fields on its own (cluster IPs, node ports,
resource versions, status, annotations from other controllers). Only the fields
this reconciler writes are compared, and only those are copied onto the
observed object when an update is needed.
"""
from __future__ import annotations

import copy

from kubernetes.client import V1Ingress, V1Service, V1ServicePort

from .builders import MANAGED_ANNOTATIONS


def _port_key(p: V1ServicePort) -> tuple:
    return (p.name, p.protocol, p.port, str(p.target_port))


def ports_equal(found: list[V1ServicePort] | None, wanted: list[V1ServicePort] | None) -> bool:
    found = found or []
    wanted = wanted or []
    if len(found) != len(wanted):
        return False
    return all(_port_key(f) == _port_key(w) for f, w in zip(found, wanted))


def _managed_annotations(annotations: dict[str, str] | None) -> dict[str, str]:
    return {k: v for k, v in (annotations or {}).items() if k in MANAGED_ANNOTATIONS}


def services_equal(observed: V1Service, desired: V1Service) -> bool:
    return ports_equal(observed.spec.ports, desired.spec.ports)


def ingresses_equal(observed: V1Ingress, desired: V1Ingress) -> bool:
    if observed.spec.default_backend != desired.spec.default_backend:
        return False
    if (observed.spec.rules or []) != (desired.spec.rules or []):
        return False
    return _managed_annotations(observed.metadata.annotations) == _managed_annotations(
        desired.metadata.annotations
    )


def merge_annotations(observed: dict[str, str] | None, desired: dict[str, str] | None) -> dict[str, str] | None:
    """Replace the managed keys, keep everybody else's."""
    merged = {k: v for k, v in (observed or {}).items() if k not in MANAGED_ANNOTATIONS}
    merged.update(_managed_annotations(desired))
    return merged or None


def merge_service(observed: V1Service, desired: V1Service, copy_annotations: bool = False) -> V1Service:
    """Observed service with the desired ports (and optionally annotations).

    Node ports already allocated for an unchanged (port, protocol) pair are
    carried over so the update does not reshuffle them.
    """
    merged = copy.deepcopy(observed)
    allocated = {(p.port, p.protocol): p.node_port for p in (observed.spec.ports or []) if p.node_port}
    ports = copy.deepcopy(desired.spec.ports or [])
    for p in ports:
        if p.node_port is None:
            p.node_port = allocated.get((p.port, p.protocol))
    merged.spec.ports = ports
    if copy_annotations:
        merged.metadata.annotations = merge_annotations(
            observed.metadata.annotations, desired.metadata.annotations
        )
    return merged


def merge_ingress(observed: V1Ingress, desired: V1Ingress) -> V1Ingress:
    merged = copy.deepcopy(observed)
    merged.spec.default_backend = copy.deepcopy(desired.spec.default_backend)
    merged.spec.rules = copy.deepcopy(desired.spec.rules)
    merged.metadata.annotations = merge_annotations(observed.metadata.annotations, desired.metadata.annotations)
    return merged
