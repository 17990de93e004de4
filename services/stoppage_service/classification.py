# services/stoppage_service/classification.py

from typing import Any, NamedTuple

from enums import CATEGORY_POOLS, OPERATIONAL_POOL, StoppageCategory, StoppageType


class Classification(NamedTuple):
    type: StoppageType
    category: StoppageCategory


def _as_category(value: Any) -> StoppageCategory | None:
    if isinstance(value, StoppageCategory):
        return value
    try:
        return StoppageCategory(value)
    except ValueError:
        return None


def _as_type(value: Any) -> StoppageType | None:
    if isinstance(value, StoppageType):
        return value
    try:
        return StoppageType(value)
    except ValueError:
        return None


def type_for_category(category: StoppageCategory) -> StoppageType:
    if category in OPERATIONAL_POOL:
        return StoppageType.OPERATIONAL
    return StoppageType.NON_OPERATIONAL


def resolve_classification(
    raw_type: Any = None,
    raw_category: Any = None,
    fallback_type: Any = None,
    fallback_category: Any = None,
) -> Classification:
    """
    Приводит пару (тип, категория) к согласованному виду. Никогда не падает.

    1. Валидная категория побеждает: тип выводится из её пула, raw_type игнорируется.
    2. Иначе тип = raw_type, если он валиден, иначе fallback_type (по умолчанию OPERATIONAL).
    3. Категория = fallback_category, если она из пула этого типа, иначе первая категория пула.
    """
    category = _as_category(raw_category)
    if category is not None:
        return Classification(type_for_category(category), category)

    stoppage_type = (
        _as_type(raw_type)
        or _as_type(fallback_type)
        or StoppageType.OPERATIONAL
    )
    pool = CATEGORY_POOLS[stoppage_type]

    fallback = _as_category(fallback_category)
    if fallback is not None and fallback in pool:
        return Classification(stoppage_type, fallback)
    return Classification(stoppage_type, pool[0])
