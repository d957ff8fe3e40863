from __future__ import annotations

import copy
import itertools
from typing import Any

import pytest
from kubernetes.client import V1ConfigMap, V1ObjectMeta

from cnr import db
from cnr.api_models import Challenge, ChallengeSpec, ContainerSpec, HealthcheckSpec, NetworkSpec, ParentRef, PortMapping
from cnr.cluster import ClusterClient
from cnr.errors import ClusterReadFailure, ClusterWriteFailure
from cnr.settings import Settings


class FakeCluster(ClusterClient):
    """In-memory object store that behaves like an API server for our purposes.

    On create it fills in the fields a real server owns (uid, resourceVersion,
    clusterIP, nodePorts) so tests catch comparisons that look at them.
    """

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str, str], Any] = {}
        self.calls: list[tuple[str, str, str]] = []
        self.fail: dict[str, str] = {}  # operation -> kind ("*" for any)
        self._seq = itertools.count(1)
        self._node_ports = itertools.count(30000)

    def _key(self, kind: str, name: str, namespace: str) -> tuple[str, str, str]:
        return (kind, namespace, name)

    def _maybe_fail(self, op: str, kind: str) -> None:
        target = self.fail.get(op)
        if target in ("*", kind):
            if op == "get":
                raise ClusterReadFailure(f"get {kind} failed: 500 Internal Server Error")
            raise ClusterWriteFailure(f"{op} {kind} failed: 500 Internal Server Error", operation=op)

    @property
    def mutations(self) -> list[tuple[str, str, str]]:
        return [c for c in self.calls if c[0] != "get"]

    def get(self, kind: str, name: str, namespace: str) -> Any | None:
        self.calls.append(("get", kind, name))
        self._maybe_fail("get", kind)
        obj = self.objects.get(self._key(kind, name, namespace))
        return copy.deepcopy(obj)

    def create(self, obj: Any) -> None:
        self.calls.append(("create", obj.kind, obj.metadata.name))
        self._maybe_fail("create", obj.kind)
        key = self._key(obj.kind, obj.metadata.name, obj.metadata.namespace)
        if key in self.objects:
            raise ClusterWriteFailure(f"{obj.kind} {obj.metadata.name} already exists", operation="create")
        stored = copy.deepcopy(obj)
        stored.metadata.uid = f"uid-{next(self._seq)}"
        stored.metadata.resource_version = str(next(self._seq))
        if obj.kind == "Service":
            stored.spec.cluster_ip = f"10.0.0.{next(self._seq)}"
            for p in stored.spec.ports or []:
                p.node_port = next(self._node_ports)
        self.objects[key] = stored

    def update(self, obj: Any) -> None:
        self.calls.append(("update", obj.kind, obj.metadata.name))
        self._maybe_fail("update", obj.kind)
        key = self._key(obj.kind, obj.metadata.name, obj.metadata.namespace)
        if key not in self.objects:
            raise ClusterWriteFailure(f"{obj.kind} {obj.metadata.name} not found", operation="update")
        stored = copy.deepcopy(obj)
        stored.metadata.resource_version = str(next(self._seq))
        if obj.kind == "Service":
            for p in stored.spec.ports or []:
                if p.node_port is None:
                    p.node_port = next(self._node_ports)
        self.objects[key] = stored

    def delete(self, obj: Any) -> None:
        self.calls.append(("delete", obj.kind, obj.metadata.name))
        self._maybe_fail("delete", obj.kind)
        key = self._key(obj.kind, obj.metadata.name, obj.metadata.namespace)
        if self.objects.pop(key, None) is None:
            raise ClusterWriteFailure(f"{obj.kind} {obj.metadata.name} not found", operation="delete")

    def seed(self, obj: Any) -> Any:
        """Store an object as if someone else had created it."""
        stored = copy.deepcopy(obj)
        self.objects[self._key(obj.kind, obj.metadata.name, obj.metadata.namespace)] = stored
        return stored

    def find(self, kind: str, name: str, namespace: str = "default") -> Any | None:
        return self.objects.get(self._key(kind, name, namespace))


@pytest.fixture
def cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
def cfg() -> Settings:
    return Settings()


@pytest.fixture
def events_db(tmp_path, monkeypatch):
    """Point the event log at an isolated sqlite file."""
    monkeypatch.setattr(db, "settings", Settings(db_path=str(tmp_path / "events.db")))
    db.init_db()
    return db


def dns_configmap(domain: str, cfg: Settings | None = None) -> V1ConfigMap:
    cfg = cfg or Settings()
    return V1ConfigMap(
        api_version="v1",
        kind="ConfigMap",
        metadata=V1ObjectMeta(name=cfg.dns_configmap, namespace=cfg.dns_namespace),
        data={cfg.dns_key: domain},
    )


def make_challenge(
    ports: list[PortMapping] | None = None,
    public: bool = True,
    name: str = "chal",
    namespace: str = "default",
    healthcheck: HealthcheckSpec | None = None,
    containers: list[ContainerSpec] | None = None,
) -> Challenge:
    return Challenge(
        metadata=ParentRef(name=name, namespace=namespace, uid="parent-uid"),
        spec=ChallengeSpec(
            network=NetworkSpec(public=public, ports=ports or []),
            containers=containers if containers is not None else [ContainerSpec(name="challenge", image="chal:latest")],
            healthcheck=healthcheck or HealthcheckSpec(),
        ),
    )
