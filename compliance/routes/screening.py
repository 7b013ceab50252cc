"""Screening endpoints for single names and whole entities."""

from fastapi import APIRouter, HTTPException, Request

from compliance.exceptions import RetrievalError, ValidationError
from compliance.models import (
    Entity,
    EntityCheckReport,
    NameScreeningRequest,
    NameScreeningResponse,
)
from compliance.screening.engine import ComplianceEngine
from compliance.storage.memory import MemoryStore

router = APIRouter(prefix="/api")


def _get_engine(request: Request) -> ComplianceEngine:
    """Retrieve the compliance engine from application state."""
    return request.app.state.engine


def _get_store(request: Request) -> MemoryStore:
    """Retrieve the memory store from application state."""
    return request.app.state.store


@router.post("/screening/name", response_model=NameScreeningResponse)
async def screen_name(
    payload: NameScreeningRequest,
    request: Request,
) -> NameScreeningResponse:
    """Screen one free-text name against sanctions and the blacklist."""
    engine = _get_engine(request)
    store = _get_store(request)
    try:
        return await engine.check_name(payload.name, store.list_blacklist())
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except RetrievalError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/screening/entity", response_model=EntityCheckReport)
async def screen_entity(
    entity: Entity,
    request: Request,
) -> EntityCheckReport:
    """Screen an entity, its executive and its full ownership tree.

    Partial failures are listed in the report. When no check at all could
    be completed, neither a sanctions lookup nor a blacklist hit, the
    answer is unknown and the endpoint returns 503.
    """
    engine = _get_engine(request)
    store = _get_store(request)
    report = await engine.check_entity_compliance(entity, store.list_blacklist())
    if report.failures and not report.results and not report.blacklist_matches:
        raise HTTPException(
            status_code=503,
            detail=f"Sanctions lookup unavailable: {report.failures[0].reason}",
        )
    return report
