from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class Protocol(str, Enum):
    TCP = "TCP"
    UDP = "UDP"
    SCTP = "SCTP"
    HTTPS = "HTTPS"


class PortMapping(BaseModel):
    name: str | None = Field(None, description="Service port name (defaults to port-<index>)")
    protocol: Protocol = Protocol.TCP
    port: int = Field(0, ge=0, le=65535, description="External port, 0 = same as target_port")
    target_port: int = Field(..., ge=1, le=65535, description="Container port the challenge listens on")

    @property
    def external_port(self) -> int:
        return self.port or self.target_port


class ContainerSpec(BaseModel):
    name: str
    image: str
    command: list[str] | None = None
    args: list[str] | None = None
    env: dict[str, str] = Field(default_factory=dict)


class HealthcheckSpec(BaseModel):
    enabled: bool = False
    image: str | None = Field(None, description="Image of the healthcheck sidecar")

    @model_validator(mode="after")
    def _image_when_enabled(self) -> "HealthcheckSpec":
        if self.enabled and not self.image:
            raise ValueError("healthcheck.image is required when the healthcheck is enabled")
        return self


class NetworkSpec(BaseModel):
    public: bool = False
    ports: list[PortMapping] = Field(default_factory=list)


class ChallengeSpec(BaseModel):
    network: NetworkSpec = Field(default_factory=NetworkSpec)
    containers: list[ContainerSpec] = Field(default_factory=list)
    healthcheck: HealthcheckSpec = Field(default_factory=HealthcheckSpec)
    replicas: int = Field(1, ge=0, le=100)

    @property
    def public(self) -> bool:
        return self.network.public

    @property
    def ports(self) -> list[PortMapping]:
        return self.network.ports


class ParentRef(BaseModel):
    name: str = Field(..., description="Challenge name (dns-safe)")
    namespace: str = "default"
    uid: str = ""
    api_version: str = "kctf.dev/v1"
    kind: str = "Challenge"

    def __str__(self) -> str:
        return f"{self.kind} {self.namespace}/{self.name}"


class Challenge(BaseModel):
    metadata: ParentRef
    spec: ChallengeSpec = Field(default_factory=ChallengeSpec)


class ReconcileRequest(BaseModel):
    uid: str = Field(..., min_length=1, description="uid of the Challenge object, used for owner references")
    spec: ChallengeSpec


class ReconcileResponse(BaseModel):
    changed: bool
    error: str | None = None
    error_kind: str | None = None
