from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from plan_store import NAMESPACES, PlanStore

from .. import schemas
from ..deps import get_store

router = APIRouter(prefix="/state", tags=["state"])


def _check_key(key: str) -> None:
    if key not in NAMESPACES:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown namespace '{key}'."
        )


@router.get("", response_model=schemas.StateOut)
def get_state(store: PlanStore = Depends(get_store)):
    return {"namespaces": store.snapshot()}


@router.get("/{key}", response_model=schemas.NamespaceOut)
def get_namespace(key: str, store: PlanStore = Depends(get_store)):
    _check_key(key)
    return {"key": key, "data": store.get(key)}


@router.put("/{key}", response_model=schemas.NamespaceOut)
def put_namespace(
    key: str,
    payload: schemas.NamespaceData,
    store: PlanStore = Depends(get_store),
):
    _check_key(key)
    try:
        store.put(key, payload.data)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return {"key": key, "data": store.get(key)}
