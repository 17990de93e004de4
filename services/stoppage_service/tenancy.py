# services/stoppage_service/tenancy.py

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from errors import StoppageValidationError
from lifecycle import StoppageLifecycle
from queries import StoppageQueries


def get_tenant_id(request: Request) -> str | None:
    """
    Тенант запроса из заголовка X-Tenant-Id.
    "*" — агрегированный доступ ко всем тенантам (None).
    Авторизация выполняется выше по стеку; здесь значению доверяем.
    """
    raw = request.headers.get(settings.TENANT_HEADER)
    if raw is None or not raw.strip():
        raise StoppageValidationError(f"{settings.TENANT_HEADER} header is required")
    raw = raw.strip()
    if raw == settings.ALL_TENANTS_TOKEN:
        return None
    return raw


def get_lifecycle(
    db: Session = Depends(get_db),
    tenant_id: str | None = Depends(get_tenant_id),
) -> StoppageLifecycle:
    return StoppageLifecycle(db, tenant_id)


def get_queries(
    db: Session = Depends(get_db),
    tenant_id: str | None = Depends(get_tenant_id),
) -> StoppageQueries:
    return StoppageQueries(db, tenant_id)
