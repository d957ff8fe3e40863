from __future__ import annotations

from abc import ABC, abstractmethod

from .api_models import ParentRef
from .cluster import ClusterClient
from .converge import Recorder, no_record
from .errors import ClusterReadFailure
from .settings import Settings, settings as default_settings


class DomainResolver(ABC):
    """Supplies the public hostname of a challenge, or None if there is none."""

    @abstractmethod
    def resolve(self, parent: ParentRef) -> str | None: ...


class StaticDomainResolver(DomainResolver):
    def __init__(self, domain: str | None):
        self.domain = domain

    def resolve(self, parent: ParentRef) -> str | None:
        if not self.domain:
            return None
        return f"{parent.name}.{self.domain}"


class ConfigMapDomainResolver(DomainResolver):
    """Reads the cluster domain from the external-dns config map.

    A failed read is recorded and treated as "no domain", so the pass can still
    remove the public objects of a challenge that is no longer public.
    """

    def __init__(self, cluster: ClusterClient, cfg: Settings = default_settings, record: Recorder = no_record):
        self.cluster = cluster
        self.cfg = cfg
        self.record = record

    def resolve(self, parent: ParentRef) -> str | None:
        try:
            cm = self.cluster.get("ConfigMap", self.cfg.dns_configmap, self.cfg.dns_namespace)
        except ClusterReadFailure as e:
            self.record(
                "WARN", f"Cannot read domain name: {e.message}", challenge=parent.name, namespace=parent.namespace
            )
            return None
        if cm is None:
            return None
        domain = (cm.data or {}).get(self.cfg.dns_key, "").strip().strip(".")
        if not domain:
            return None
        return f"{parent.name}.{domain}"
