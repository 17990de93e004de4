# services/stoppage_service/repository.py

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from enums import EventState, MachineStatus, StoppageCategory
from models import Machine, StoppageEvent


class MachineRegistry:
    """
    Доступ к станкам в пределах тенанта.
    tenant_id=None означает агрегированный доступ ко всем тенантам.
    """

    def __init__(self, db: Session, tenant_id: str | None):
        self.db = db
        self.tenant_id = tenant_id

    def find_machine(self, machine_id: int, lock: bool = False) -> Machine | None:
        stmt = select(Machine).where(Machine.id == machine_id)
        if self.tenant_id is not None:
            stmt = stmt.where(Machine.tenant_id == self.tenant_id)
        if lock:
            # Блокировка строки станка сериализует команды по одному станку
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalars().first()

    def lock(self, machine_id: int) -> Machine:
        """Блокирует строку станка без фильтра по тенанту (доступ уже проверен по простою)."""
        stmt = select(Machine).where(Machine.id == machine_id).with_for_update()
        return self.db.execute(stmt).scalars().one()

    def list_machines(self) -> list[Machine]:
        stmt = select(Machine).order_by(Machine.code)
        if self.tenant_id is not None:
            stmt = stmt.where(Machine.tenant_id == self.tenant_id)
        return list(self.db.execute(stmt).scalars())

    def set_status(self, machine: Machine, status: MachineStatus) -> None:
        machine.status = status


class StoppageRepository:
    """CRUD по простоям в пределах тенанта."""

    def __init__(self, db: Session, tenant_id: str | None):
        self.db = db
        self.tenant_id = tenant_id

    def _scoped(self, stmt):
        if self.tenant_id is not None:
            stmt = stmt.where(StoppageEvent.tenant_id == self.tenant_id)
        return stmt

    # ---------- Запись ----------

    def add(self, event: StoppageEvent) -> StoppageEvent:
        self.db.add(event)
        self.db.flush()
        return event

    def delete(self, event: StoppageEvent) -> None:
        self.db.delete(event)
        self.db.flush()

    # ---------- Чтение ----------

    def get(self, event_id: int, lock: bool = False) -> StoppageEvent | None:
        stmt = self._scoped(select(StoppageEvent).where(StoppageEvent.id == event_id))
        if lock:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalars().first()

    def open_categories(self, machine_id: int) -> list[StoppageCategory]:
        """Категории всех открытых простоев станка (мультимножество)."""
        stmt = select(StoppageEvent.category).where(
            StoppageEvent.machine_id == machine_id,
            StoppageEvent.end_time.is_(None),
        )
        return list(self.db.execute(stmt).scalars())

    def find_other_open(
        self, machine_id: int, exclude_event_id: int | None = None
    ) -> StoppageEvent | None:
        stmt = select(StoppageEvent).where(
            StoppageEvent.machine_id == machine_id,
            StoppageEvent.end_time.is_(None),
        )
        if exclude_event_id is not None:
            stmt = stmt.where(StoppageEvent.id != exclude_event_id)
        stmt = stmt.order_by(StoppageEvent.start_time.desc())
        return self.db.execute(stmt).scalars().first()

    def list_all(self) -> list[StoppageEvent]:
        stmt = self._scoped(select(StoppageEvent)).order_by(StoppageEvent.start_time.desc())
        return list(self.db.execute(stmt).scalars())

    def list_for_machine(
        self,
        machine_id: int,
        state: EventState = EventState.ALL,
        started_from: datetime | None = None,
        started_to: datetime | None = None,
    ) -> list[StoppageEvent]:
        stmt = self._scoped(
            select(StoppageEvent).where(StoppageEvent.machine_id == machine_id)
        )
        if state == EventState.OPEN:
            stmt = stmt.where(StoppageEvent.end_time.is_(None))
        elif state == EventState.CLOSED:
            stmt = stmt.where(StoppageEvent.end_time.is_not(None))
        if started_from is not None:
            stmt = stmt.where(StoppageEvent.start_time >= started_from)
        if started_to is not None:
            stmt = stmt.where(StoppageEvent.start_time <= started_to)
        stmt = stmt.order_by(StoppageEvent.start_time.desc())
        return list(self.db.execute(stmt).scalars())

    def list_open(self) -> list[StoppageEvent]:
        """Открытые простои (панель оператора) вместе со станками."""
        stmt = (
            self._scoped(select(StoppageEvent).where(StoppageEvent.end_time.is_(None)))
            .options(joinedload(StoppageEvent.machine))
            .order_by(StoppageEvent.start_time.desc())
        )
        return list(self.db.execute(stmt).scalars())

    def list_history(self, limit: int, machine_id: int | None = None) -> list[StoppageEvent]:
        """Последние закрытые простои, самые свежие по времени закрытия идут первыми."""
        stmt = self._scoped(select(StoppageEvent).where(StoppageEvent.end_time.is_not(None)))
        if machine_id is not None:
            stmt = stmt.where(StoppageEvent.machine_id == machine_id)
        stmt = (
            stmt.options(joinedload(StoppageEvent.machine))
            .order_by(StoppageEvent.end_time.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars())
