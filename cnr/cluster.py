from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable

from kubernetes import client, config
from kubernetes.client import ApiException
from kubernetes.config import ConfigException
from urllib3.exceptions import HTTPError

from .errors import ClusterReadFailure, ClusterWriteFailure
from .settings import Settings, settings as default_settings


class ClusterClient(ABC):
    """Minimal object store the reconciler talks to.

    get() returns None when the object does not exist; every other failure is
    raised as ClusterReadFailure / ClusterWriteFailure.
    """

    @abstractmethod
    def get(self, kind: str, name: str, namespace: str) -> Any | None: ...

    @abstractmethod
    def create(self, obj: Any) -> None: ...

    @abstractmethod
    def update(self, obj: Any) -> None: ...

    @abstractmethod
    def delete(self, obj: Any) -> None: ...


def describe(obj: Any) -> str:
    return f"{obj.kind} {obj.metadata.namespace}/{obj.metadata.name}"


class KubernetesCluster(ClusterClient):
    """ClusterClient backed by the official kubernetes client."""

    def __init__(
        self,
        core: client.CoreV1Api,
        apps: client.AppsV1Api,
        networking: client.NetworkingV1Api,
        request_timeout_s: int = default_settings.request_timeout_s,
    ):
        self.request_timeout_s = request_timeout_s
        # kind -> (read, create, replace, delete)
        self._ops: dict[str, tuple[Callable[..., Any], ...]] = {
            "Service": (
                core.read_namespaced_service,
                core.create_namespaced_service,
                core.replace_namespaced_service,
                core.delete_namespaced_service,
            ),
            "ConfigMap": (
                core.read_namespaced_config_map,
                core.create_namespaced_config_map,
                core.replace_namespaced_config_map,
                core.delete_namespaced_config_map,
            ),
            "Deployment": (
                apps.read_namespaced_deployment,
                apps.create_namespaced_deployment,
                apps.replace_namespaced_deployment,
                apps.delete_namespaced_deployment,
            ),
            "Ingress": (
                networking.read_namespaced_ingress,
                networking.create_namespaced_ingress,
                networking.replace_namespaced_ingress,
                networking.delete_namespaced_ingress,
            ),
        }

    @classmethod
    def from_settings(cls, cfg: Settings = default_settings) -> "KubernetesCluster":
        try:
            if cfg.in_cluster:
                config.load_incluster_config()
            else:
                config.load_kube_config()
        except ConfigException as e:
            raise ClusterReadFailure(f"cannot load cluster configuration: {e}") from e
        api = client.ApiClient()
        return cls(
            client.CoreV1Api(api),
            client.AppsV1Api(api),
            client.NetworkingV1Api(api),
            request_timeout_s=cfg.request_timeout_s,
        )

    def _op(self, kind: str, idx: int) -> Callable[..., Any]:
        try:
            return self._ops[kind][idx]
        except KeyError:
            raise ValueError(f"unsupported kind: {kind}") from None

    def get(self, kind: str, name: str, namespace: str) -> Any | None:
        read = self._op(kind, 0)
        try:
            return read(name, namespace, _request_timeout=self.request_timeout_s)
        except ApiException as e:
            if e.status == 404:
                return None
            raise ClusterReadFailure(f"get {kind} {namespace}/{name} failed: {e.status} {e.reason}") from e
        except HTTPError as e:
            # timeouts and refused connections never reach the API server
            raise ClusterReadFailure(f"get {kind} {namespace}/{name} failed: {type(e).__name__}: {e}") from e

    def _write(self, obj: Any, idx: int, operation: str, *args: Any) -> None:
        fn = self._op(obj.kind, idx)
        try:
            fn(*args, _request_timeout=self.request_timeout_s)
        except ApiException as e:
            raise ClusterWriteFailure(
                f"{operation} {describe(obj)} failed: {e.status} {e.reason}", operation=operation
            ) from e
        except HTTPError as e:
            raise ClusterWriteFailure(
                f"{operation} {describe(obj)} failed: {type(e).__name__}: {e}", operation=operation
            ) from e

    def create(self, obj: Any) -> None:
        self._write(obj, 1, "create", obj.metadata.namespace, obj)

    def update(self, obj: Any) -> None:
        self._write(obj, 2, "update", obj.metadata.name, obj.metadata.namespace, obj)

    def delete(self, obj: Any) -> None:
        self._write(obj, 3, "delete", obj.metadata.name, obj.metadata.namespace)
