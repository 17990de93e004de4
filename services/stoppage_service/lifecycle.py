# services/stoppage_service/lifecycle.py

import math
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from classification import resolve_classification
from conflicts import CONFLICT_MESSAGES, check_open_conflict
from enums import ConflictCode, MachineStatus
from errors import (
    StoppageAlreadyClosed,
    StoppageConflict,
    StoppageError,
    StoppageInternalError,
    StoppageNotFound,
    StoppageValidationError,
)
from models import Machine, StoppageEvent, utcnow
from repository import MachineRegistry, StoppageRepository
from status import derive_status

EDITABLE_FIELDS = frozenset(
    {"reason", "team", "note", "start_time", "end_time", "type", "category"}
)

SINGLE_OPEN_INDEX = "uq_stoppage_single_open"


# ---------- Вспомогательные функции ----------

def parse_timestamp(value: Any, field: str) -> datetime:
    """Принимает datetime или ISO-8601 строку; возвращает naive UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise StoppageValidationError(f"Malformed timestamp for '{field}': {value!r}")
    else:
        raise StoppageValidationError(f"Malformed timestamp for '{field}': {value!r}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def intervention_minutes(start: datetime, end: datetime) -> int:
    """Длительность вмешательства в минутах: округление половины вверх, не меньше 0."""
    minutes = (end - start).total_seconds() / 60
    return max(0, math.floor(minutes + 0.5))


def clean_reason(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise StoppageValidationError("Stoppage reason is required")
    return value.strip()


def clean_optional_text(value: Any, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise StoppageValidationError(f"'{field}' must be a string")
    return value.strip() or None


def _is_single_open_violation(exc: IntegrityError) -> bool:
    # PostgreSQL называет индекс, SQLite называет столбец
    message = str(exc.orig)
    return SINGLE_OPEN_INDEX in message or "stoppage_events.machine_id" in message


class StoppageLifecycle:
    """
    Команды жизненного цикла простоя: open / close / reopen / edit / delete.

    Каждая команда выполняется одной транзакцией: изменение простоя и пересчёт статуса
    станка фиксируются вместе или не фиксируются вовсе. Строка станка
    блокируется (SELECT ... FOR UPDATE) до проверки конфликта и записи.
    """

    def __init__(self, db: Session, tenant_id: str | None):
        self.db = db
        self.tenant_id = tenant_id
        self.machines = MachineRegistry(db, tenant_id)
        self.stoppages = StoppageRepository(db, tenant_id)

    # ---------- Транзакция и пересчёт ----------

    @contextmanager
    def _unit_of_work(self, action: str, conflict_code: ConflictCode | None = None):
        try:
            yield
            self.db.commit()
        except StoppageError:
            self.db.rollback()
            raise
        except IntegrityError as exc:
            self.db.rollback()
            if conflict_code is not None and _is_single_open_violation(exc):
                logger.warning(f"⚠️ Concurrent {action} rejected by single-open index")
                raise StoppageConflict(conflict_code, CONFLICT_MESSAGES[conflict_code]) from exc
            logger.error(f"❌ Integrity error during {action}: {exc.orig}")
            raise StoppageInternalError(f"Failed to {action} stoppage event") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"❌ Storage error during {action}: {exc}")
            raise StoppageInternalError(f"Failed to {action} stoppage event") from exc

    def _refresh_status(self, machine: Machine) -> MachineStatus:
        """Пересчитывает кэш статуса станка по текущему набору открытых простоев."""
        self.db.flush()
        status = derive_status(self.stoppages.open_categories(machine.id))
        if machine.status != status:
            logger.debug(f"🔄 Machine {machine.id}: {machine.status.value} → {status.value}")
        self.machines.set_status(machine, status)
        self.db.flush()
        return status

    def _load_event(self, event_id: int) -> StoppageEvent:
        event = self.stoppages.get(event_id, lock=True)
        if event is None:
            raise StoppageNotFound(f"Stoppage event {event_id} not found")
        return event

    # ---------- Команды ----------

    def open(
        self,
        machine_id: int,
        reason: str,
        team: str | None = None,
        note: str | None = None,
        start_time: datetime | str | None = None,
        stoppage_type: Any = None,
        category: Any = None,
        override: bool = False,
    ) -> StoppageEvent:
        """Открывает новый простой станка."""
        reason = clean_reason(reason)
        team = clean_optional_text(team, "team")
        note = clean_optional_text(note, "note")
        start = parse_timestamp(start_time, "start_time") if start_time is not None else utcnow()

        with self._unit_of_work("open", conflict_code=ConflictCode.ALREADY_OPEN):
            machine = self.machines.find_machine(machine_id, lock=True)
            if machine is None:
                raise StoppageNotFound(f"Machine {machine_id} not found")

            classification = resolve_classification(stoppage_type, category)

            check = check_open_conflict(
                self.stoppages, machine.id, ConflictCode.ALREADY_OPEN, override=override
            )
            if not check.ok:
                logger.warning(
                    f"⚠️ Open refused on machine {machine.id}: "
                    f"event {check.blocking.id} is still open"
                )
                raise check.conflict

            event = self.stoppages.add(
                StoppageEvent(
                    tenant_id=machine.tenant_id,
                    machine_id=machine.id,
                    start_time=start,
                    end_time=None,
                    reason=reason,
                    team=team,
                    note=note,
                    intervention_minutes=None,
                    type=classification.type,
                    category=classification.category,
                    override_open=check.overridden,
                )
            )
            status = self._refresh_status(machine)
            event_id = event.id

        logger.info(
            f"🛑 Stoppage {event_id} opened on machine {machine_id} "
            f"({classification.category.value}), machine is {status.value}"
        )
        return event

    def close(self, event_id: int, end_time: datetime | str | None = None) -> StoppageEvent:
        """Закрывает открытый простой; повторное закрытие даёт ALREADY_CLOSED."""
        end = parse_timestamp(end_time, "end_time") if end_time is not None else utcnow()

        with self._unit_of_work("close"):
            event = self._load_event(event_id)
            if not event.is_open:
                raise StoppageAlreadyClosed(f"Stoppage event {event_id} is already closed")

            machine = self.machines.lock(event.machine_id)
            event.end_time = end
            event.intervention_minutes = intervention_minutes(event.start_time, end)
            event.override_open = False
            status = self._refresh_status(machine)
            minutes = event.intervention_minutes

        logger.info(
            f"✅ Stoppage {event_id} closed after {minutes} min, machine is {status.value}"
        )
        return event

    def reopen(self, event_id: int, override: bool = False) -> StoppageEvent:
        """Снова открывает закрытый простой (отмена закрытия)."""
        with self._unit_of_work("reopen", conflict_code=ConflictCode.OTHER_OPEN):
            event = self._load_event(event_id)
            if event.is_open:
                logger.debug(f"Stoppage {event_id} is already open, nothing to reopen")
                return event

            machine = self.machines.lock(event.machine_id)
            check = check_open_conflict(
                self.stoppages,
                machine.id,
                ConflictCode.OTHER_OPEN,
                exclude_event_id=event.id,
                override=override,
            )
            if not check.ok:
                logger.warning(
                    f"⚠️ Reopen of {event_id} refused: event {check.blocking.id} is still open"
                )
                raise check.conflict

            event.end_time = None
            event.intervention_minutes = None
            event.override_open = check.overridden
            status = self._refresh_status(machine)

        logger.info(f"↩️ Stoppage {event_id} reopened, machine is {status.value}")
        return event

    def edit(self, event_id: int, **changes: Any) -> StoppageEvent:
        """
        Редактирует простой. Применяются только переданные поля;
        end_time=None явно открывает простой.

        Политика конфликтов здесь не проверяется: редактор может сознательно
        получить несколько открытых простоев на станке.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise StoppageValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

        if "reason" in changes:
            changes["reason"] = clean_reason(changes["reason"])
        for field in ("team", "note"):
            if field in changes:
                changes[field] = clean_optional_text(changes[field], field)
        if "start_time" in changes:
            if changes["start_time"] is None:
                raise StoppageValidationError("'start_time' cannot be null")
            changes["start_time"] = parse_timestamp(changes["start_time"], "start_time")
        if changes.get("end_time") is not None:
            changes["end_time"] = parse_timestamp(changes["end_time"], "end_time")

        with self._unit_of_work("edit"):
            event = self._load_event(event_id)
            machine = self.machines.lock(event.machine_id)
            was_open = event.is_open

            for field in ("reason", "team", "note", "start_time", "end_time"):
                if field in changes:
                    setattr(event, field, changes[field])

            classification = resolve_classification(
                changes.get("type"),
                changes.get("category"),
                fallback_type=event.type,
                fallback_category=event.category,
            )
            event.type = classification.type
            event.category = classification.category

            if event.end_time is None:
                event.intervention_minutes = None
                if not was_open:
                    other = self.stoppages.find_other_open(machine.id, exclude_event_id=event.id)
                    event.override_open = other is not None
            else:
                event.intervention_minutes = intervention_minutes(event.start_time, event.end_time)
                event.override_open = False

            status = self._refresh_status(machine)

        logger.info(f"✏️ Stoppage {event_id} edited, machine is {status.value}")
        return event

    def delete(self, event_id: int) -> None:
        """Удаляет простой безвозвратно и пересчитывает статус станка."""
        with self._unit_of_work("delete"):
            event = self._load_event(event_id)
            machine = self.machines.lock(event.machine_id)
            self.stoppages.delete(event)
            status = self._refresh_status(machine)

        logger.info(f"🗑️ Stoppage {event_id} deleted, machine is {status.value}")
