# services/stoppage_service/enums.py

import enum


class MachineStatus(str, enum.Enum):
    """Отображаемое состояние станка (кэш, вычисляется из открытых простоев)."""
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"
    MAINTENANCE = "MAINTENANCE"


class StoppageType(str, enum.Enum):
    """Грубая группировка простоя; всегда согласована с категорией."""
    OPERATIONAL = "OPERATIONAL"
    NON_OPERATIONAL = "NON_OPERATIONAL"


class StoppageCategory(str, enum.Enum):
    # Операционные
    CORRECTIVE_MAINTENANCE = "CORRECTIVE_MAINTENANCE"
    PREVENTIVE_MAINTENANCE = "PREVENTIVE_MAINTENANCE"
    TOOL_SETUP_CHANGE = "TOOL_SETUP_CHANGE"
    MATERIAL_SHORTAGE = "MATERIAL_SHORTAGE"
    QUALITY_INSPECTION = "QUALITY_INSPECTION"
    PROCESS_ADJUSTMENT = "PROCESS_ADJUSTMENT"
    REPLENISHMENT = "REPLENISHMENT"
    CLEANING = "CLEANING"

    # Неоперационные
    LUNCH = "LUNCH"
    RESTROOM = "RESTROOM"
    MEETING = "MEETING"
    TRAINING = "TRAINING"
    DAILY_SAFETY_TALK = "DAILY_SAFETY_TALK"
    OTHER_NON_OPERATIONAL = "OTHER_NON_OPERATIONAL"


# Порядок внутри пулов значим: первый элемент является категорией по умолчанию для типа
OPERATIONAL_POOL: tuple[StoppageCategory, ...] = (
    StoppageCategory.CORRECTIVE_MAINTENANCE,
    StoppageCategory.PREVENTIVE_MAINTENANCE,
    StoppageCategory.TOOL_SETUP_CHANGE,
    StoppageCategory.MATERIAL_SHORTAGE,
    StoppageCategory.QUALITY_INSPECTION,
    StoppageCategory.PROCESS_ADJUSTMENT,
    StoppageCategory.REPLENISHMENT,
    StoppageCategory.CLEANING,
)

NON_OPERATIONAL_POOL: tuple[StoppageCategory, ...] = (
    StoppageCategory.LUNCH,
    StoppageCategory.RESTROOM,
    StoppageCategory.MEETING,
    StoppageCategory.TRAINING,
    StoppageCategory.DAILY_SAFETY_TALK,
    StoppageCategory.OTHER_NON_OPERATIONAL,
)

CATEGORY_POOLS: dict[StoppageType, tuple[StoppageCategory, ...]] = {
    StoppageType.OPERATIONAL: OPERATIONAL_POOL,
    StoppageType.NON_OPERATIONAL: NON_OPERATIONAL_POOL,
}

MAINTENANCE_CATEGORIES = frozenset({
    StoppageCategory.CORRECTIVE_MAINTENANCE,
    StoppageCategory.PREVENTIVE_MAINTENANCE,
})


class ConflictCode(str, enum.Enum):
    ALREADY_OPEN = "ALREADY_OPEN"   # открытие нового простоя
    OTHER_OPEN = "OTHER_OPEN"       # повторное открытие закрытого


class EventState(str, enum.Enum):
    """Фильтр списка простоев станка."""
    ALL = "ALL"
    OPEN = "OPEN"
    CLOSED = "CLOSED"
