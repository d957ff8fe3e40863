from __future__ import annotations

from threading import Lock
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query
from kubernetes.client import ApiClient

from . import db
from .api_models import Challenge, ChallengeSpec, ParentRef, ReconcileRequest, ReconcileResponse
from .cluster import KubernetesCluster
from .deployment import desired_deployment
from .errors import InvalidPortConfig, MissingRequiredContainer
from .reconciler import Reconciler
from .runtime import RuntimeState
from .settings import settings


app = FastAPI(title="Challenge Network Reconciler")

runtime = RuntimeState()
_reconciler: Reconciler | None = None
_reconciler_lock = Lock()


def get_reconciler() -> Reconciler:
    global _reconciler
    with _reconciler_lock:
        if _reconciler is None:
            _reconciler = Reconciler(KubernetesCluster.from_settings(settings), runtime=runtime)
        return _reconciler


@app.on_event("startup")
def startup() -> None:
    db.init_db()


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "healthy"}


@app.post("/challenges/{namespace}/{name}/reconcile", response_model=ReconcileResponse)
def reconcile(
    namespace: str,
    name: str,
    req: ReconcileRequest,
    reconciler: Reconciler = Depends(get_reconciler),
) -> ReconcileResponse:
    challenge = Challenge(metadata=ParentRef(name=name, namespace=namespace, uid=req.uid), spec=req.spec)
    result = reconciler.reconcile(challenge)
    if isinstance(result.error, InvalidPortConfig):
        raise HTTPException(status_code=422, detail=str(result.error))
    return ReconcileResponse(
        changed=result.changed,
        error=str(result.error) if result.error else None,
        error_kind=result.error.kind if result.error else None,
    )


@app.post("/challenges/{namespace}/{name}/deployment")
def deployment(namespace: str, name: str, spec: ChallengeSpec) -> dict[str, Any]:
    """Render the deployment for a challenge, health-check sidecar included."""
    challenge = Challenge(metadata=ParentRef(name=name, namespace=namespace), spec=spec)
    try:
        dep = desired_deployment(challenge, settings)
    except MissingRequiredContainer as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return ApiClient().sanitize_for_serialization(dep)


@app.get("/challenges")
def last_passes() -> list[dict[str, Any]]:
    return [vars(st) for st in runtime.list_passes()]


@app.get("/events")
def events(
    limit: int = Query(50, ge=1, le=1000),
    challenge: str | None = None,
    namespace: str | None = None,
) -> list[dict[str, Any]]:
    return db.latest_events(limit=limit, challenge=challenge, namespace=namespace)
