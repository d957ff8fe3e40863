from __future__ import annotations

import copy
from dataclasses import dataclass

from kubernetes.client import (
    V1Container,
    V1Deployment,
    V1HTTPGetAction,
    V1Probe,
    V1ResourceRequirements,
    V1SecretVolumeSource,
    V1Volume,
    V1VolumeMount,
)

from .api_models import Challenge, HealthcheckSpec
from .builders import build_base_deployment
from .errors import MissingRequiredContainer
from .settings import Settings, settings as default_settings


CHALLENGE_CONTAINER = "challenge"
HEALTHCHECK_CONTAINER = "healthcheck"
HEALTHCHECK_PATH = "/healthz"
POW_BYPASS_VOLUME = "pow-bypass"


@dataclass(frozen=True)
class ProbeTiming:
    initial_delay_s: int
    timeout_s: int
    period_s: int
    failure_threshold: int | None = None


LIVENESS = ProbeTiming(initial_delay_s=45, timeout_s=3, period_s=30, failure_threshold=2)
READINESS = ProbeTiming(initial_delay_s=5, timeout_s=3, period_s=5)


def index_of_container(name: str, containers: list[V1Container] | None) -> int:
    for i, c in enumerate(containers or []):
        if c.name == name:
            return i
    return -1


def _probe(timing: ProbeTiming, port: int) -> V1Probe:
    return V1Probe(
        http_get=V1HTTPGetAction(path=HEALTHCHECK_PATH, port=port),
        failure_threshold=timing.failure_threshold,
        initial_delay_seconds=timing.initial_delay_s,
        timeout_seconds=timing.timeout_s,
        period_seconds=timing.period_s,
    )


def with_healthcheck(
    deployment: V1Deployment, healthcheck: HealthcheckSpec, cfg: Settings = default_settings
) -> V1Deployment:
    """Return a copy of the deployment wired to the health-check sidecar.

    The challenge container gets liveness and readiness probes against the
    sidecar port, and the sidecar (added if missing) gets its image, CPU
    budget and the pow-bypass secret mount. The input is not modified.
    """
    dep = copy.deepcopy(deployment)
    pod = dep.spec.template.spec
    containers = list(pod.containers or [])

    idx_challenge = index_of_container(CHALLENGE_CONTAINER, containers)
    if idx_challenge == -1:
        raise MissingRequiredContainer(CHALLENGE_CONTAINER)

    challenge = containers[idx_challenge]
    challenge.liveness_probe = _probe(LIVENESS, cfg.healthcheck_port)
    challenge.readiness_probe = _probe(READINESS, cfg.healthcheck_port)

    idx_healthcheck = index_of_container(HEALTHCHECK_CONTAINER, containers)
    if idx_healthcheck == -1:
        containers.append(V1Container(name=HEALTHCHECK_CONTAINER))
        idx_healthcheck = len(containers) - 1

    sidecar = containers[idx_healthcheck]
    sidecar.image = healthcheck.image
    sidecar.resources = V1ResourceRequirements(
        limits={"cpu": f"{cfg.healthcheck_cpu_limit_milli}m"},
        requests={"cpu": f"{cfg.healthcheck_cpu_request_milli}m"},
    )
    sidecar.volume_mounts = [
        V1VolumeMount(name=POW_BYPASS_VOLUME, read_only=True, mount_path=cfg.pow_bypass_mount_path),
    ]
    pod.containers = containers

    volumes = [v for v in (pod.volumes or []) if v.name != POW_BYPASS_VOLUME]
    volumes.append(
        V1Volume(name=POW_BYPASS_VOLUME, secret=V1SecretVolumeSource(secret_name=cfg.pow_bypass_secret)),
    )
    pod.volumes = volumes
    return dep


def desired_deployment(challenge: Challenge, cfg: Settings = default_settings) -> V1Deployment:
    dep = build_base_deployment(challenge)
    if challenge.spec.healthcheck.enabled:
        dep = with_healthcheck(dep, challenge.spec.healthcheck, cfg)
    return dep
