from __future__ import annotations

from .api_models import ParentRef, PortMapping


def internal_service_name(parent: ParentRef) -> str:
    return parent.name


def load_balancer_service_name(parent: ParentRef) -> str:
    return f"{parent.name}-lb-service"


def ingress_name(parent: ParentRef) -> str:
    return parent.name


def deployment_name(parent: ParentRef) -> str:
    return parent.name


def app_labels(parent: ParentRef) -> dict[str, str]:
    return {"app": parent.name}


def service_port_name(mapping: PortMapping, index: int) -> str:
    """Name of the service port for the index-th mapping.

    Indexes refer to the full mapping list so that a port keeps its name in
    every service it appears in.
    """
    if mapping.name:
        return mapping.name.lower()
    return f"port-{index}"
