import pytest
from kubernetes.client import V1Container, V1Volume, V1ConfigMapVolumeSource
from pydantic import ValidationError

from cnr.api_models import ContainerSpec, HealthcheckSpec
from cnr.builders import build_base_deployment
from cnr.deployment import desired_deployment, index_of_container, with_healthcheck
from cnr.errors import MissingRequiredContainer
from cnr.settings import Settings

from conftest import make_challenge


HC = HealthcheckSpec(enabled=True, image="healthcheck:v1")


def _containers(dep):
    return {c.name: c for c in dep.spec.template.spec.containers}


def test_adds_healthcheck_sidecar_and_probes():
    base = build_base_deployment(make_challenge())
    dep = with_healthcheck(base, HC)

    containers = dep.spec.template.spec.containers
    assert [c.name for c in containers] == ["challenge", "healthcheck"]

    sidecar = _containers(dep)["healthcheck"]
    assert sidecar.image == "healthcheck:v1"
    assert sidecar.resources.requests == {"cpu": "50m"}
    assert sidecar.resources.limits == {"cpu": "1000m"}
    assert len(sidecar.volume_mounts) == 1
    mount = sidecar.volume_mounts[0]
    assert (mount.name, mount.mount_path, mount.read_only) == ("pow-bypass", "/pow-bypass", True)

    volumes = dep.spec.template.spec.volumes
    assert [(v.name, v.secret.secret_name) for v in volumes] == [("pow-bypass", "pow-bypass")]

    chal = _containers(dep)["challenge"]
    live = chal.liveness_probe
    assert (live.http_get.path, live.http_get.port) == ("/healthz", 45281)
    assert (live.failure_threshold, live.initial_delay_seconds, live.timeout_seconds, live.period_seconds) == (
        2,
        45,
        3,
        30,
    )
    ready = chal.readiness_probe
    assert (ready.http_get.path, ready.http_get.port) == ("/healthz", 45281)
    assert (ready.initial_delay_seconds, ready.timeout_seconds, ready.period_seconds) == (5, 3, 5)


def test_input_deployment_is_not_modified():
    base = build_base_deployment(make_challenge())
    with_healthcheck(base, HC)
    containers = base.spec.template.spec.containers
    assert [c.name for c in containers] == ["challenge"]
    assert containers[0].liveness_probe is None
    assert base.spec.template.spec.volumes is None


def test_existing_healthcheck_container_is_reused():
    ch = make_challenge(
        containers=[
            ContainerSpec(name="healthcheck", image="old"),
            ContainerSpec(name="challenge", image="chal:latest"),
        ]
    )
    dep = with_healthcheck(build_base_deployment(ch), HC)
    assert [c.name for c in dep.spec.template.spec.containers] == ["healthcheck", "challenge"]
    assert _containers(dep)["healthcheck"].image == "healthcheck:v1"


def test_running_twice_gives_same_result():
    once = with_healthcheck(build_base_deployment(make_challenge()), HC)
    twice = with_healthcheck(once, HC)
    assert once == twice


def test_other_volumes_are_kept():
    base = build_base_deployment(make_challenge())
    base.spec.template.spec.volumes = [V1Volume(name="config", config_map=V1ConfigMapVolumeSource(name="cfg"))]
    dep = with_healthcheck(base, HC)
    assert [v.name for v in dep.spec.template.spec.volumes] == ["config", "pow-bypass"]


def test_missing_challenge_container_is_fatal():
    base = build_base_deployment(make_challenge(containers=[ContainerSpec(name="web", image="nginx")]))
    with pytest.raises(MissingRequiredContainer) as exc:
        with_healthcheck(base, HC)
    assert exc.value.container == "challenge"


def test_settings_override_constants():
    cfg = Settings(healthcheck_port=8081, healthcheck_cpu_request_milli=100, pow_bypass_secret="bypass")
    dep = with_healthcheck(build_base_deployment(make_challenge()), HC, cfg)
    assert _containers(dep)["challenge"].liveness_probe.http_get.port == 8081
    assert _containers(dep)["healthcheck"].resources.requests == {"cpu": "100m"}
    assert dep.spec.template.spec.volumes[0].secret.secret_name == "bypass"


def test_desired_deployment_only_injects_when_enabled():
    plain = desired_deployment(make_challenge())
    assert len(plain.spec.template.spec.containers) == 1
    injected = desired_deployment(make_challenge(healthcheck=HC))
    assert len(injected.spec.template.spec.containers) == 2


def test_index_of_container():
    containers = [V1Container(name="a"), V1Container(name="b")]
    assert index_of_container("b", containers) == 1
    assert index_of_container("c", containers) == -1
    assert index_of_container("a", None) == -1


def test_enabled_healthcheck_needs_an_image():
    with pytest.raises(ValidationError) as exc:
        HealthcheckSpec(enabled=True)
    assert "healthcheck.image is required" in str(exc.value)
    assert HealthcheckSpec(enabled=False).image is None
