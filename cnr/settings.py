from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Core
    db_path: str = os.getenv("CNR_DB_PATH", "cnr.db")
    request_timeout_s: int = _env_int("CNR_REQUEST_TIMEOUT_S", 10)
    in_cluster: bool = _env_bool("CNR_IN_CLUSTER", False)
    internal_service_type: str = os.getenv("CNR_INTERNAL_SERVICE_TYPE", "NodePort")

    # Domain name lookup (written by the external-dns setup)
    dns_configmap: str = os.getenv("CNR_DNS_CONFIGMAP", "external-dns")
    dns_namespace: str = os.getenv("CNR_DNS_NAMESPACE", "kctf-system")
    dns_key: str = os.getenv("CNR_DNS_KEY", "DOMAIN_NAME")
    managed_certificate: str = os.getenv("CNR_MANAGED_CERTIFICATE", "kctf-certificate")

    # Health-check sidecar
    healthcheck_port: int = _env_int("CNR_HEALTHCHECK_PORT", 45281)
    healthcheck_cpu_request_milli: int = _env_int("CNR_HEALTHCHECK_CPU_REQUEST_MILLI", 50)
    healthcheck_cpu_limit_milli: int = _env_int("CNR_HEALTHCHECK_CPU_LIMIT_MILLI", 1000)
    pow_bypass_secret: str = os.getenv("CNR_POW_BYPASS_SECRET", "pow-bypass")
    pow_bypass_mount_path: str = os.getenv("CNR_POW_BYPASS_MOUNT_PATH", "/pow-bypass")


settings = Settings()
