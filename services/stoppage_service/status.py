# services/stoppage_service/status.py

from typing import Iterable

from enums import (
    NON_OPERATIONAL_POOL,
    OPERATIONAL_POOL,
    MachineStatus,
    StoppageCategory,
)


def derive_status(open_categories: Iterable[StoppageCategory]) -> MachineStatus:
    """
    Вычисляет статус станка по категориям ВСЕХ его открытых простоев.

    Приоритет (сверху вниз):
      1. корректирующее ТО          -> MAINTENANCE
      2. планово-предупредительное  -> MAINTENANCE
      3. прочие операционные        -> STOPPED
      4. неоперационные             -> STOPPED
      5. открытых простоев нет      -> RUNNING

    Чистая функция: единственная реализация для всех команд жизненного цикла.
    """
    categories = set(open_categories)

    if StoppageCategory.CORRECTIVE_MAINTENANCE in categories:
        return MachineStatus.MAINTENANCE
    if StoppageCategory.PREVENTIVE_MAINTENANCE in categories:
        return MachineStatus.MAINTENANCE
    if categories.intersection(OPERATIONAL_POOL):
        return MachineStatus.STOPPED
    if categories.intersection(NON_OPERATIONAL_POOL):
        return MachineStatus.STOPPED
    return MachineStatus.RUNNING
