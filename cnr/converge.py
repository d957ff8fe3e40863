from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .api_models import ParentRef
from .cluster import ClusterClient, describe
from .compare import ingresses_equal, merge_ingress, merge_service, services_equal
from .ownership import set_owner_reference


Recorder = Callable[..., None]


def no_record(level: str, message: str, **kwargs: Any) -> None:
    return None


@dataclass(frozen=True)
class ResourceKind:
    """How one kind of object is compared, merged and whether it may be deleted."""

    label: str  # human readable, used in events and error annotations
    kind: str  # cluster kind
    equal: Callable[[Any, Any], bool]
    merge: Callable[[Any, Any], Any]
    deletable: bool = True


INTERNAL_SERVICE = ResourceKind(
    label="internal service",
    kind="Service",
    equal=services_equal,
    merge=merge_service,
    deletable=False,
)

LOAD_BALANCER_SERVICE = ResourceKind(
    label="load balancer service",
    kind="Service",
    equal=services_equal,
    merge=lambda observed, desired: merge_service(observed, desired, copy_annotations=True),
)

INGRESS = ResourceKind(
    label="ingress",
    kind="Ingress",
    equal=ingresses_equal,
    merge=merge_ingress,
)


def converge(
    cluster: ClusterClient,
    kind: ResourceKind,
    observed: Any | None,
    desired: Any,
    should_exist: bool,
    owner: ParentRef,
    record: Recorder = no_record,
) -> bool:
    """Bring one object to its desired state with at most one mutating call.

    Returns True when a create, update or delete was issued. Cluster errors
    propagate; nothing is retried here.
    """
    if not kind.deletable:
        should_exist = True

    if observed is None:
        if not should_exist:
            return False
        set_owner_reference(desired, owner)
        cluster.create(desired)
        record("INFO", f"Created {kind.label} {describe(desired)}", challenge=owner.name, namespace=owner.namespace)
        return True

    if not should_exist:
        cluster.delete(observed)
        record("INFO", f"Deleted {kind.label} {describe(observed)}", challenge=owner.name, namespace=owner.namespace)
        return True

    if kind.equal(observed, desired):
        return False

    merged = kind.merge(observed, desired)
    cluster.update(merged)
    record("INFO", f"Updated {kind.label} {describe(merged)}", challenge=owner.name, namespace=owner.namespace)
    return True
