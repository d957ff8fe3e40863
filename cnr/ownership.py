from __future__ import annotations

from typing import Any

from kubernetes.client import V1OwnerReference

from .api_models import ParentRef
from .errors import AlreadyOwned, ClusterWriteFailure


def controller_of(obj: Any) -> V1OwnerReference | None:
    for ref in obj.metadata.owner_references or []:
        if ref.controller:
            return ref
    return None


def set_owner_reference(child: Any, parent: ParentRef) -> None:
    """Mark parent as the controlling owner of child.

    The garbage collector deletes the child once the parent is gone. Only used
    right before a create; the reference is never read back during a pass.
    """
    if not parent.uid:
        raise ClusterWriteFailure(
            f"{parent} has no uid, cannot own {child.kind} {child.metadata.name}", operation="owner"
        )
    current = controller_of(child)
    if current is not None:
        if current.uid == parent.uid:
            return
        raise AlreadyOwned(f"{child.kind} {child.metadata.name}", f"{current.kind} {current.name}")

    ref = V1OwnerReference(
        api_version=parent.api_version,
        kind=parent.kind,
        name=parent.name,
        uid=parent.uid,
        controller=True,
        block_owner_deletion=True,
    )
    child.metadata.owner_references = list(child.metadata.owner_references or []) + [ref]
