# services/stoppage_service/schemas.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from enums import MachineStatus, StoppageCategory, StoppageType


# ----- Запросы команд жизненного цикла -----

class StoppageOpenRequest(BaseModel):
    """Тело запроса на открытие простоя (POST /stoppages)."""
    machine_id: int = Field(description="Идентификатор станка")
    reason: str = Field(max_length=255, description="Причина простоя (обязательна)")
    team: Optional[str] = Field(default=None, max_length=255, description="Бригада на вмешательстве")
    note: Optional[str] = Field(default=None, description="Примечание")
    start_time: Optional[datetime] = Field(default=None, description="Начало простоя; по умолчанию сейчас")
    # Тип и категория принимаются «как есть»: некорректные значения нормализуются
    type: Optional[str] = Field(default=None, description="OPERATIONAL | NON_OPERATIONAL")
    category: Optional[str] = Field(default=None, description="Категория простоя")
    override: bool = Field(default=False, description="Открыть, даже если уже есть открытый простой")


class StoppageCloseRequest(BaseModel):
    end_time: Optional[datetime] = Field(default=None, description="Окончание простоя; по умолчанию сейчас")


class StoppageReopenRequest(BaseModel):
    override: bool = Field(default=False, description="Открыть, даже если открыт другой простой")


class StoppageUpdateRequest(BaseModel):
    """
    Частичное редактирование простоя (PATCH).
    Применяются только переданные поля; end_time: null открывает простой.
    """
    reason: Optional[str] = Field(default=None, max_length=255)
    team: Optional[str] = Field(default=None, max_length=255)
    note: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    type: Optional[str] = None
    category: Optional[str] = None

    def changes(self) -> dict:
        return {field: getattr(self, field) for field in self.model_fields_set}


# ----- Ответы -----

class MachineBrief(BaseModel):
    id: int
    code: str
    name: str
    status: MachineStatus

    model_config = ConfigDict(from_attributes=True)


class MachineOut(MachineBrief):
    tenant_id: str
    section_id: Optional[int] = None


class StoppageEventOut(BaseModel):
    """Простой станка наружу (response_model)."""
    id: int
    tenant_id: str
    machine_id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    reason: str
    team: Optional[str] = None
    note: Optional[str] = None
    intervention_minutes: Optional[int] = Field(default=None, ge=0)
    type: StoppageType
    category: StoppageCategory
    override_open: bool = False
    is_open: bool

    model_config = ConfigDict(from_attributes=True)


class StoppageBoardItem(StoppageEventOut):
    """Открытый или недавно закрытый простой вместе со станком (панель оператора)."""
    machine: MachineBrief


class StoppageListResponse(BaseModel):
    items: List[StoppageEventOut]
    count: int


class StoppageBoardResponse(BaseModel):
    items: List[StoppageBoardItem]
    count: int


class ErrorBody(BaseModel):
    kind: str
    code: str
    message: str
    blocking_event_id: Optional[int] = None
