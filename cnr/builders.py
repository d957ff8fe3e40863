"""Desired objects for one challenge.

Every builder is a pure function of the challenge and the resolved hostname;
objects are rebuilt on each pass and never shared between passes.
"""
from __future__ import annotations

from kubernetes.client import (
    V1Container,
    V1Deployment,
    V1DeploymentSpec,
    V1EnvVar,
    V1HTTPIngressPath,
    V1HTTPIngressRuleValue,
    V1Ingress,
    V1IngressBackend,
    V1IngressRule,
    V1IngressServiceBackend,
    V1IngressSpec,
    V1LabelSelector,
    V1ObjectMeta,
    V1PodSpec,
    V1PodTemplateSpec,
    V1Service,
    V1ServiceBackendPort,
    V1ServicePort,
    V1ServiceSpec,
)

from .api_models import Challenge, ParentRef, PortMapping
from .naming import (
    app_labels,
    deployment_name,
    ingress_name,
    internal_service_name,
    load_balancer_service_name,
    service_port_name,
)
from .ports import exposed_mappings, https_mapping, service_protocol
from .settings import Settings, settings as default_settings


HOSTNAME_ANNOTATION = "external-dns.alpha.kubernetes.io/hostname"
MANAGED_CERTIFICATES_ANNOTATION = "networking.gke.io/managed-certificates"

# Annotation keys owned by this reconciler. Anything else on an observed object
# belongs to someone else and is left alone on update.
MANAGED_ANNOTATIONS = frozenset({HOSTNAME_ANNOTATION, MANAGED_CERTIFICATES_ANNOTATION})


def _metadata(name: str, parent: ParentRef, annotations: dict[str, str] | None = None) -> V1ObjectMeta:
    return V1ObjectMeta(
        name=name,
        namespace=parent.namespace,
        labels=app_labels(parent),
        annotations=annotations or None,
    )


def _service_port(mapping: PortMapping, index: int) -> V1ServicePort:
    return V1ServicePort(
        name=service_port_name(mapping, index),
        protocol=service_protocol(mapping),
        port=mapping.external_port,
        target_port=mapping.target_port,
    )


def build_internal_service(challenge: Challenge, cfg: Settings = default_settings) -> V1Service:
    """Cluster-internal service exposing every declared port."""
    parent = challenge.metadata
    return V1Service(
        api_version="v1",
        kind="Service",
        metadata=_metadata(internal_service_name(parent), parent),
        spec=V1ServiceSpec(
            type=cfg.internal_service_type,
            selector=app_labels(parent),
            ports=[_service_port(m, i) for i, m in enumerate(challenge.spec.ports)],
        ),
    )


def build_load_balancer_service(challenge: Challenge, hostname: str | None) -> V1Service:
    """Public service for the non-HTTPS ports. May end up with no ports at all."""
    parent = challenge.metadata
    annotations = {HOSTNAME_ANNOTATION: hostname} if hostname else None
    return V1Service(
        api_version="v1",
        kind="Service",
        metadata=_metadata(load_balancer_service_name(parent), parent, annotations),
        spec=V1ServiceSpec(
            type="LoadBalancer",
            selector=app_labels(parent),
            ports=[_service_port(m, i) for i, m in exposed_mappings(challenge.spec.ports)],
        ),
    )


def build_ingress(challenge: Challenge, hostname: str | None, cfg: Settings = default_settings) -> V1Ingress:
    """Ingress routing the HTTPS port to the internal service.

    Without a hostname or an HTTPS mapping the ingress has no backend, which
    the exposure policy reads as "should not exist".
    """
    parent = challenge.metadata
    https = https_mapping(challenge.spec.ports)
    if not hostname or https is None:
        return V1Ingress(
            api_version="networking.k8s.io/v1",
            kind="Ingress",
            metadata=_metadata(ingress_name(parent), parent),
            spec=V1IngressSpec(),
        )

    _, mapping = https
    backend = V1IngressBackend(
        service=V1IngressServiceBackend(
            name=internal_service_name(parent),
            port=V1ServiceBackendPort(number=mapping.external_port),
        )
    )
    annotations = {
        HOSTNAME_ANNOTATION: hostname,
        MANAGED_CERTIFICATES_ANNOTATION: cfg.managed_certificate,
    }
    rule = V1IngressRule(
        host=hostname,
        http=V1HTTPIngressRuleValue(
            paths=[V1HTTPIngressPath(path="/", path_type="Prefix", backend=backend)],
        ),
    )
    return V1Ingress(
        api_version="networking.k8s.io/v1",
        kind="Ingress",
        metadata=_metadata(ingress_name(parent), parent, annotations),
        spec=V1IngressSpec(default_backend=backend, rules=[rule]),
    )


def build_base_deployment(challenge: Challenge) -> V1Deployment:
    """Deployment running the challenge containers as declared."""
    parent = challenge.metadata
    containers = [
        V1Container(
            name=c.name,
            image=c.image,
            command=c.command,
            args=c.args,
            env=[V1EnvVar(name=k, value=v) for k, v in sorted(c.env.items())] or None,
        )
        for c in challenge.spec.containers
    ]
    return V1Deployment(
        api_version="apps/v1",
        kind="Deployment",
        metadata=_metadata(deployment_name(parent), parent),
        spec=V1DeploymentSpec(
            replicas=challenge.spec.replicas,
            selector=V1LabelSelector(match_labels=app_labels(parent)),
            template=V1PodTemplateSpec(
                metadata=V1ObjectMeta(labels=app_labels(parent)),
                spec=V1PodSpec(containers=containers),
            ),
        ),
    )
