# services/stoppage_service/queries.py

from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from config import settings
from enums import EventState
from errors import StoppageNotFound, StoppageValidationError
from lifecycle import parse_timestamp
from models import Machine, StoppageEvent
from repository import MachineRegistry, StoppageRepository


def clamp_history_limit(limit: int | None) -> int:
    if limit is None:
        return settings.HISTORY_DEFAULT_LIMIT
    return max(1, min(settings.HISTORY_MAX_LIMIT, int(limit)))


class StoppageQueries:
    """Чтение простоев и статусов станков в пределах тенанта (read model)."""

    def __init__(self, db: Session, tenant_id: str | None):
        self.machines = MachineRegistry(db, tenant_id)
        self.stoppages = StoppageRepository(db, tenant_id)

    def get(self, event_id: int) -> StoppageEvent:
        event = self.stoppages.get(event_id)
        if event is None:
            raise StoppageNotFound(f"Stoppage event {event_id} not found")
        return event

    def list_all(self) -> list[StoppageEvent]:
        return self.stoppages.list_all()

    def list_open(self) -> list[StoppageEvent]:
        return self.stoppages.list_open()

    def list_history(self, limit: int | None = None, machine_id: int | None = None) -> list[StoppageEvent]:
        return self.stoppages.list_history(clamp_history_limit(limit), machine_id=machine_id)

    def list_for_machine(
        self,
        machine_id: int,
        state: EventState | str = EventState.ALL,
        started_from: datetime | str | None = None,
        started_to: datetime | str | None = None,
    ) -> list[StoppageEvent]:
        machine = self.get_machine(machine_id)
        raw_state = state.value if isinstance(state, EventState) else str(state)
        try:
            state = EventState(raw_state.upper())
        except ValueError:
            raise StoppageValidationError(f"Unknown state filter: {state!r}")

        return self.stoppages.list_for_machine(
            machine.id,
            state=state,
            started_from=_optional_timestamp(started_from, "started_from"),
            started_to=_optional_timestamp(started_to, "started_to"),
        )

    def get_machine(self, machine_id: int) -> Machine:
        machine = self.machines.find_machine(machine_id)
        if machine is None:
            raise StoppageNotFound(f"Machine {machine_id} not found")
        return machine

    def list_machines(self) -> list[Machine]:
        return self.machines.list_machines()


def _optional_timestamp(value: Any, field: str) -> datetime | None:
    if value is None:
        return None
    return parse_timestamp(value, field)
