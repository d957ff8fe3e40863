from __future__ import annotations

from kubernetes.client import V1Ingress, V1Service

from .api_models import ChallengeSpec


def load_balancer_should_exist(service: V1Service, spec: ChallengeSpec) -> bool:
    return spec.public and bool(service.spec.ports)


def ingress_should_exist(ingress: V1Ingress, spec: ChallengeSpec) -> bool:
    return spec.public and ingress.spec.default_backend is not None


def should_exist(desired: V1Service | V1Ingress, spec: ChallengeSpec, public_facing: bool = True) -> bool:
    """Existence predicate for a desired object.

    Only public-facing objects are subject to the policy; the internal service
    always exists.
    """
    if not public_facing:
        return True
    if isinstance(desired, V1Ingress):
        return ingress_should_exist(desired, spec)
    return load_balancer_should_exist(desired, spec)
