# services/stoppage_service/database.py

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from config import settings

# URL базы и схема берутся из настроек (docker-compose / .env)
DATABASE_URL = settings.DATABASE_URL
DOWNTIME_SCHEMA = settings.DB_SCHEMA

# Движок с пингом (устойчивость к сбоям соединений)
engine = create_engine(DATABASE_URL, pool_pre_ping=True, future=True)

# Фабрика сессий: транзакцией управляет StoppageLifecycle, а не автокоммит
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


class Base(DeclarativeBase):
    """Базовый класс моделей SQLAlchemy для stoppage_service."""
    pass


def ensure_schema() -> None:
    """Создаёт схему downtime, если её ещё нет (только PostgreSQL)."""
    if engine.dialect.name != "postgresql":
        return
    with engine.begin() as conn:
        conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{DOWNTIME_SCHEMA}"'))


def get_db():
    """Зависимость FastAPI для работы с БД."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
