from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from enums import EventState
from queries import StoppageQueries
from schemas import MachineOut, StoppageListResponse
from tenancy import get_queries

router = APIRouter(prefix="/api/v1/machines", tags=["machines"])


@router.get("", response_model=List[MachineOut])
def list_machines(queries: StoppageQueries = Depends(get_queries)):
    """Станки тенанта с кэшированным статусом."""
    return queries.list_machines()


@router.get("/{machine_id}", response_model=MachineOut)
def get_machine(machine_id: int, queries: StoppageQueries = Depends(get_queries)):
    return queries.get_machine(machine_id)


@router.get("/{machine_id}/stoppages", response_model=StoppageListResponse)
def list_machine_stoppages(
    machine_id: int,
    state: str = Query(default=EventState.ALL.value, description="ALL | OPEN | CLOSED, без учёта регистра"),
    started_from: Optional[datetime] = Query(default=None),
    started_to: Optional[datetime] = Query(default=None),
    queries: StoppageQueries = Depends(get_queries),
):
    """Простои станка с фильтрами по состоянию и началу."""
    items = queries.list_for_machine(
        machine_id, state=state, started_from=started_from, started_to=started_to
    )
    return {"items": items, "count": len(items)}
