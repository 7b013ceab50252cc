"""Blacklist management endpoints."""

from typing import List

from fastapi import APIRouter, HTTPException, Request, Response

from compliance.models import BlacklistRecord, BlacklistRecordCreate
from compliance.storage.memory import MemoryStore

router = APIRouter(prefix="/api")


def _get_store(request: Request) -> MemoryStore:
    """Retrieve the memory store from application state."""
    return request.app.state.store


@router.get("/blacklist", response_model=List[BlacklistRecord])
async def list_blacklist(request: Request) -> List[BlacklistRecord]:
    """Return all blacklist records in matching order."""
    return _get_store(request).list_blacklist()


@router.post("/blacklist", response_model=BlacklistRecord, status_code=201)
async def create_blacklist_record(
    payload: BlacklistRecordCreate,
    request: Request,
) -> BlacklistRecord:
    record = BlacklistRecord(**payload.model_dump())
    return _get_store(request).add_blacklist(record)


@router.get("/blacklist/{record_id}", response_model=BlacklistRecord)
async def get_blacklist_record(record_id: str, request: Request) -> BlacklistRecord:
    record = _get_store(request).get_blacklist(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Blacklist record not found")
    return record


@router.put("/blacklist/{record_id}", response_model=BlacklistRecord)
async def update_blacklist_record(
    record_id: str,
    payload: BlacklistRecordCreate,
    request: Request,
) -> BlacklistRecord:
    """Replace the names, tax id and notes of a blacklist record."""
    record = _get_store(request).replace_blacklist(record_id, payload)
    if record is None:
        raise HTTPException(status_code=404, detail="Blacklist record not found")
    return record


@router.delete("/blacklist/{record_id}", status_code=204)
async def delete_blacklist_record(record_id: str, request: Request) -> Response:
    if not _get_store(request).delete_blacklist(record_id):
        raise HTTPException(status_code=404, detail="Blacklist record not found")
    return Response(status_code=204)
