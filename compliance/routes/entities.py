"""Common entities: counterparties that are stored and re-checked over time."""

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request, Response

from compliance.models import (
    CommonEntity,
    CommonEntityCreate,
    CommonEntityUpdate,
    ComplianceStatus,
    EntityCheckReport,
)
from compliance.screening.engine import ComplianceEngine
from compliance.storage.memory import MemoryStore

router = APIRouter(prefix="/api")


def _get_store(request: Request) -> MemoryStore:
    """Retrieve the memory store from application state."""
    return request.app.state.store


def _get_engine(request: Request) -> ComplianceEngine:
    """Retrieve the compliance engine from application state."""
    return request.app.state.engine


def _get_or_404(store: MemoryStore, entity_id: str) -> CommonEntity:
    entity = store.get_entity(entity_id)
    if entity is None:
        raise HTTPException(status_code=404, detail="Entity not found")
    return entity


@router.get("/entities", response_model=List[CommonEntity])
async def list_entities(
    request: Request,
    status: Optional[ComplianceStatus] = Query(default=None),
) -> List[CommonEntity]:
    """List stored entities, optionally filtered by their last status."""
    return _get_store(request).list_entities(status=status)


@router.post("/entities", response_model=CommonEntity, status_code=201)
async def create_entity(
    payload: CommonEntityCreate,
    request: Request,
) -> CommonEntity:
    return _get_store(request).add_entity(payload)


@router.get("/entities/{entity_id}", response_model=CommonEntity)
async def get_entity(entity_id: str, request: Request) -> CommonEntity:
    return _get_or_404(_get_store(request), entity_id)


@router.put("/entities/{entity_id}", response_model=CommonEntity)
async def update_entity(
    entity_id: str,
    update: CommonEntityUpdate,
    request: Request,
) -> CommonEntity:
    """Record a reviewer's status override and/or notes."""
    store = _get_store(request)
    _get_or_404(store, entity_id)
    return store.update_entity(entity_id, update)


@router.delete("/entities/{entity_id}", status_code=204)
async def delete_entity(entity_id: str, request: Request) -> Response:
    if not _get_store(request).delete_entity(entity_id):
        raise HTTPException(status_code=404, detail="Entity not found")
    return Response(status_code=204)


@router.post("/entities/{entity_id}/check", response_model=EntityCheckReport)
async def recheck_entity(entity_id: str, request: Request) -> EntityCheckReport:
    """Re-run the compliance check and store the new status.

    The stored status is left untouched when the check is incomplete, so a
    failed lookup never turns a flagged entity into a clean one.
    """
    store = _get_store(request)
    entity = _get_or_404(store, entity_id)
    report = await _get_engine(request).check_entity_compliance(
        entity, store.list_blacklist()
    )
    if report.complete:
        store.update_entity(
            entity_id,
            CommonEntityUpdate(status=report.status),
            last_checked=datetime.now(timezone.utc),
        )
    return report
