# services/stoppage_service/models.py

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base, DOWNTIME_SCHEMA
from enums import MachineStatus, StoppageCategory, StoppageType


def utcnow() -> datetime:
    """Текущее время в UTC без tzinfo (так время хранится в БД)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Machine(Base):
    """
    Станок (оборудование) клиента.
    Поле status — кэш, который пересчитывает только StoppageLifecycle
    по открытым простоям станка.
    """
    __tablename__ = "machines"
    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_machine_tenant_code"),
        {"schema": DOWNTIME_SCHEMA},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[MachineStatus] = mapped_column(
        SAEnum(MachineStatus, name="machine_status", inherit_schema=True),
        default=MachineStatus.RUNNING,
        nullable=False,
    )
    section_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    stoppages: Mapped[list["StoppageEvent"]] = relationship(
        back_populates="machine",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class StoppageEvent(Base):
    """
    Простой станка: интервал, в течение которого станок не работал штатно.
    end_time IS NULL — простой открыт.

    override_open выставляется, когда простой стал открытым при уже открытом
    другом простое того же станка (явный override или редактирование).
    Частичный уникальный индекс допускает не более одного открытого простоя
    без этого флага на станок.
    """
    __tablename__ = "stoppage_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    machine_id: Mapped[int] = mapped_column(
        ForeignKey(f"{DOWNTIME_SCHEMA}.machines.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    end_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    reason: Mapped[str] = mapped_column(String(255), nullable=False)
    team: Mapped[str | None] = mapped_column(String(255), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    intervention_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    type: Mapped[StoppageType] = mapped_column(
        SAEnum(StoppageType, name="stoppage_type", inherit_schema=True),
        nullable=False,
    )
    category: Mapped[StoppageCategory] = mapped_column(
        SAEnum(StoppageCategory, name="stoppage_category", inherit_schema=True),
        nullable=False,
    )
    override_open: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    machine: Mapped[Machine] = relationship(back_populates="stoppages")

    __table_args__ = (
        Index(
            "uq_stoppage_single_open",
            "machine_id",
            unique=True,
            postgresql_where=text("end_time IS NULL AND override_open = false"),
            sqlite_where=text("end_time IS NULL AND override_open = 0"),
        ),
        {"schema": DOWNTIME_SCHEMA},
    )

    @property
    def is_open(self) -> bool:
        return self.end_time is None
