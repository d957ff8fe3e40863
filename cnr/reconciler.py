from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .api_models import Challenge
from .builders import build_ingress, build_internal_service, build_load_balancer_service
from .cluster import ClusterClient
from .converge import INGRESS, INTERNAL_SERVICE, LOAD_BALANCER_SERVICE, Recorder, ResourceKind, no_record, converge
from .db import log_event
from .dns import ConfigMapDomainResolver, DomainResolver
from .errors import InvalidPortConfig, ReconcileError
from .policy import should_exist
from .ports import validate_ports
from .runtime import PassStatus, RuntimeState
from .settings import Settings, settings as default_settings


@dataclass(frozen=True)
class ReconcileResult:
    changed: bool
    error: ReconcileError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _converge_one(
    challenge: Challenge,
    cluster: ClusterClient,
    kind: ResourceKind,
    desired: Any,
    public_facing: bool,
    record: Recorder,
) -> bool:
    parent = challenge.metadata
    observed = cluster.get(kind.kind, desired.metadata.name, parent.namespace)
    exists = should_exist(desired, challenge.spec, public_facing=public_facing)
    return converge(cluster, kind, observed, desired, exists, parent, record=record)


def update(
    challenge: Challenge,
    cluster: ClusterClient,
    resolver: DomainResolver | None = None,
    cfg: Settings = default_settings,
    record: Recorder = no_record,
) -> ReconcileResult:
    """Run one reconcile pass for the network exposure of a challenge.

    Order: port validation, internal service, load balancer service, ingress.
    The first error ends the pass. Changes made by earlier steps stay in place
    and are reported through `changed`; the next pass picks up from there.
    """
    parent = challenge.metadata
    where = dict(challenge=parent.name, namespace=parent.namespace)

    try:
        validate_ports(challenge.spec.ports)
    except InvalidPortConfig as e:
        e.annotate(None, str(parent))
        record("ERROR", f"Invalid port configuration: {e.message}", **where)
        return ReconcileResult(False, e)

    if resolver is None:
        resolver = ConfigMapDomainResolver(cluster, cfg, record=record)

    changed = False
    label = INTERNAL_SERVICE.label
    try:
        changed = _converge_one(
            challenge, cluster, INTERNAL_SERVICE, build_internal_service(challenge, cfg), False, record
        ) or changed

        label = "domain name"
        hostname = resolver.resolve(parent)

        label = LOAD_BALANCER_SERVICE.label
        changed = _converge_one(
            challenge, cluster, LOAD_BALANCER_SERVICE, build_load_balancer_service(challenge, hostname), True, record
        ) or changed

        label = INGRESS.label
        changed = _converge_one(
            challenge, cluster, INGRESS, build_ingress(challenge, hostname, cfg), True, record
        ) or changed
    except ReconcileError as e:
        e.annotate(label, str(parent))
        record("ERROR", f"Error updating {label}: {e.message}", **where)
        return ReconcileResult(changed, e)

    return ReconcileResult(changed)


class Reconciler:
    """Serializes passes per challenge; different challenges may run in parallel."""

    def __init__(
        self,
        cluster: ClusterClient,
        resolver: DomainResolver | None = None,
        runtime: RuntimeState | None = None,
        cfg: Settings = default_settings,
        record: Recorder = log_event,
    ):
        self.cluster = cluster
        self.resolver = resolver
        self.runtime = runtime or RuntimeState()
        self.cfg = cfg
        self.record = record

    def reconcile(self, challenge: Challenge) -> ReconcileResult:
        key = f"{challenge.metadata.namespace}/{challenge.metadata.name}"
        with self.runtime.lock_for(key):
            result = update(challenge, self.cluster, resolver=self.resolver, cfg=self.cfg, record=self.record)
        self.runtime.record_pass(
            PassStatus(key=key, changed=result.changed, error=str(result.error) if result.error else None)
        )
        return result
