from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from errors import StoppageValidationError
from lifecycle import StoppageLifecycle
from queries import StoppageQueries
from schemas import (
    ErrorBody,
    StoppageBoardResponse,
    StoppageCloseRequest,
    StoppageEventOut,
    StoppageListResponse,
    StoppageOpenRequest,
    StoppageReopenRequest,
    StoppageUpdateRequest,
)
from tenancy import get_lifecycle, get_queries
from utils.logging import setup_logging

logger = setup_logging()

router = APIRouter(prefix="/api/v1/stoppages", tags=["stoppages"])

CONFLICT_RESPONSES = {409: {"model": ErrorBody, "description": "Open stoppage conflict"}}


# ---------- Команды ----------

@router.post("", response_model=StoppageEventOut, responses=CONFLICT_RESPONSES)
def open_stoppage(
    payload: StoppageOpenRequest,
    lifecycle: StoppageLifecycle = Depends(get_lifecycle),
):
    """Открывает простой станка и пересчитывает его статус."""
    return lifecycle.open(
        payload.machine_id,
        payload.reason,
        team=payload.team,
        note=payload.note,
        start_time=payload.start_time,
        stoppage_type=payload.type,
        category=payload.category,
        override=payload.override,
    )


@router.post("/{event_id}/close", response_model=StoppageEventOut, responses=CONFLICT_RESPONSES)
def close_stoppage(
    event_id: int,
    payload: Optional[StoppageCloseRequest] = None,
    lifecycle: StoppageLifecycle = Depends(get_lifecycle),
):
    """Закрывает простой (станок снова в работе, если других открытых нет)."""
    end_time = payload.end_time if payload else None
    return lifecycle.close(event_id, end_time=end_time)


@router.post("/{event_id}/reopen", response_model=StoppageEventOut, responses=CONFLICT_RESPONSES)
def reopen_stoppage(
    event_id: int,
    payload: Optional[StoppageReopenRequest] = None,
    lifecycle: StoppageLifecycle = Depends(get_lifecycle),
):
    """Отменяет закрытие простоя."""
    override = payload.override if payload else False
    return lifecycle.reopen(event_id, override=override)


@router.patch("/{event_id}", response_model=StoppageEventOut)
def edit_stoppage(
    event_id: int,
    payload: StoppageUpdateRequest,
    lifecycle: StoppageLifecycle = Depends(get_lifecycle),
):
    """Редактирует простой; статус станка пересчитывается по всем открытым простоям."""
    changes = payload.changes()
    if not changes:
        raise StoppageValidationError("Nothing to update")
    return lifecycle.edit(event_id, **changes)


@router.delete("/{event_id}", status_code=204)
def delete_stoppage(
    event_id: int,
    lifecycle: StoppageLifecycle = Depends(get_lifecycle),
):
    """Удаляет простой безвозвратно."""
    lifecycle.delete(event_id)
    return Response(status_code=204)


# ---------- Чтение ----------

@router.get("", response_model=StoppageListResponse)
def list_stoppages(queries: StoppageQueries = Depends(get_queries)):
    items = queries.list_all()
    return {"items": items, "count": len(items)}


@router.get("/open", response_model=StoppageBoardResponse)
def list_open_stoppages(queries: StoppageQueries = Depends(get_queries)):
    """Открытые простои всех станков тенанта (панель оператора)."""
    items = queries.list_open()
    return {"items": items, "count": len(items)}


@router.get("/history", response_model=StoppageBoardResponse)
def stoppage_history(
    limit: Optional[int] = Query(default=None),
    machine_id: Optional[int] = Query(default=None),
    queries: StoppageQueries = Depends(get_queries),
):
    """Последние закрытые простои; limit ограничивается диапазоном [1, 200]."""
    items = queries.list_history(limit=limit, machine_id=machine_id)
    return {"items": items, "count": len(items)}


@router.get("/{event_id}", response_model=StoppageEventOut)
def get_stoppage(event_id: int, queries: StoppageQueries = Depends(get_queries)):
    return queries.get(event_id)
