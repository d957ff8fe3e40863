from __future__ import annotations


class ReconcileError(Exception):
    """Base class for every failure surfaced by a reconcile pass.

    The coordinator annotates errors with the resource kind being converged and
    the parent challenge identity before handing them back to the caller.
    """

    kind = "ReconcileError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.resource_kind: str | None = None
        self.parent: str | None = None

    def annotate(self, resource_kind: str | None, parent: str) -> "ReconcileError":
        self.resource_kind = resource_kind
        self.parent = parent
        return self

    def __str__(self) -> str:
        where = []
        if self.resource_kind:
            where.append(self.resource_kind)
        if self.parent:
            where.append(self.parent)
        if not where:
            return self.message
        return f"{self.message} ({', '.join(where)})"


class InvalidPortConfig(ReconcileError):
    kind = "InvalidPortConfig"


class ConflictingPortMapping(InvalidPortConfig):
    kind = "ConflictingPortMapping"

    def __init__(self, external_port: int, existing_target: int, new_target: int):
        super().__init__(
            f"conflicting port mapping {external_port}->{existing_target} and {external_port}->{new_target}"
        )
        self.external_port = external_port
        self.existing_target = existing_target
        self.new_target = new_target


class MultipleHTTPSPorts(InvalidPortConfig):
    kind = "MultipleHTTPSPorts"

    def __init__(self) -> None:
        super().__init__("only one https port supported")


class ClusterReadFailure(ReconcileError):
    kind = "ClusterReadFailure"


class ClusterWriteFailure(ReconcileError):
    kind = "ClusterWriteFailure"

    def __init__(self, message: str, operation: str = "write"):
        super().__init__(message)
        self.operation = operation  # create|update|delete|owner


class AlreadyOwned(ClusterWriteFailure):
    kind = "AlreadyOwned"

    def __init__(self, child: str, owner: str):
        super().__init__(f"{child} is already controlled by {owner}", operation="owner")


class MissingRequiredContainer(ReconcileError):
    kind = "MissingRequiredContainer"

    def __init__(self, container: str):
        super().__init__(f"base deployment has no '{container}' container")
        self.container = container
