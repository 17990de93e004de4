# services/stoppage_service/conflicts.py

from dataclasses import dataclass

from enums import ConflictCode
from errors import StoppageConflict
from models import StoppageEvent
from repository import StoppageRepository

CONFLICT_MESSAGES = {
    ConflictCode.ALREADY_OPEN: (
        "This machine already has an open stoppage event. Open another one anyway?"
    ),
    ConflictCode.OTHER_OPEN: (
        "Another stoppage event is already open for this machine. Reopen this one anyway?"
    ),
}


@dataclass
class OpenCheck:
    """Результат проверки политики «один открытый простой на станок»."""
    blocking: StoppageEvent | None = None
    conflict: StoppageConflict | None = None

    @property
    def ok(self) -> bool:
        return self.conflict is None

    @property
    def overridden(self) -> bool:
        """Другой открытый простой есть, но вызывающий явно разрешил продолжить."""
        return self.blocking is not None and self.conflict is None


def check_open_conflict(
    repo: StoppageRepository,
    machine_id: int,
    code: ConflictCode,
    exclude_event_id: int | None = None,
    override: bool = False,
) -> OpenCheck:
    """
    Проверяет, блокирует ли уже открытый простой станка команду open/reopen.

    Вызывается внутри транзакции команды после блокировки строки станка,
    поэтому проверка и последующая вставка/обновление атомарны.
    """
    blocking = repo.find_other_open(machine_id, exclude_event_id=exclude_event_id)
    if blocking is None or override:
        return OpenCheck(blocking=blocking)

    return OpenCheck(
        blocking=blocking,
        conflict=StoppageConflict(
            code, CONFLICT_MESSAGES[code], blocking_event_id=blocking.id
        ),
    )
