import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[3]
SERVICE_DIR = ROOT / "services" / "stoppage_service"
if str(SERVICE_DIR) not in sys.path:
    sys.path.insert(0, str(SERVICE_DIR))

# Сервис по умолчанию смотрит в PostgreSQL; тестам достаточно SQLite
os.environ.setdefault("DATABASE_URL", "sqlite://")

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from database import DOWNTIME_SCHEMA  # noqa: E402
from enums import MachineStatus  # noqa: E402
from models import Base, Machine  # noqa: E402

TENANT_A = "tenant-a"
TENANT_B = "tenant-b"


@pytest.fixture
def engine(tmp_path):
    # Файловая БД: её можно открыть из нескольких потоков одновременно
    db_path = tmp_path / "downtime.sqlite3"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
        execution_options={"schema_translate_map": {DOWNTIME_SCHEMA: None}},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _add_machine(session_factory, tenant_id: str, code: str) -> int:
    with session_factory() as session:
        machine = Machine(
            tenant_id=tenant_id,
            code=code,
            name=f"Machine {code}",
            status=MachineStatus.RUNNING,
        )
        session.add(machine)
        session.commit()
        return machine.id


@pytest.fixture
def machine_id(session_factory) -> int:
    return _add_machine(session_factory, TENANT_A, "CNC-01")


@pytest.fixture
def other_machine_id(session_factory) -> int:
    return _add_machine(session_factory, TENANT_A, "CNC-02")


@pytest.fixture
def foreign_machine_id(session_factory) -> int:
    return _add_machine(session_factory, TENANT_B, "LATHE-01")


@pytest.fixture
def status_of(session_factory):
    """Читает статус станка отдельной сессией (то, что видят потребители read model)."""

    def _status(machine_id: int) -> MachineStatus:
        with session_factory() as session:
            return session.get(Machine, machine_id).status

    return _status
