import os
import sys
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool, text
from alembic import context


# ============================================================
#  Добавляем путь до корня микросервиса (/app), чтобы работали импорты
# ============================================================
BASE_DIR = os.path.dirname(os.path.dirname(__file__))  # -> /app
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

# ============================================================
#  Импортируем внутренние модули сервиса
# ============================================================
from database import Base, DOWNTIME_SCHEMA  # noqa
from models import Machine, StoppageEvent  # noqa: F401
from config import settings  # noqa

# ============================================================
#  Конфигурация Alembic
# ============================================================
config = context.config

db_url = os.getenv("DATABASE_URL", settings.DATABASE_URL)
if db_url:
    config.set_main_option("sqlalchemy.url", db_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Генерация SQL без подключения к БД."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        include_schemas=True,
        version_table_schema=DOWNTIME_SCHEMA,
        literal_binds=True,
        render_as_batch=url.startswith("sqlite"),
    )

    with context.begin_transaction():
        if not url.startswith("sqlite"):
            context.execute(f'CREATE SCHEMA IF NOT EXISTS "{DOWNTIME_SCHEMA}"')
        context.run_migrations()


def run_migrations_online() -> None:
    """Миграции с подключением к реальной базе данных."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        is_sqlite = connection.dialect.name == "sqlite"
        if not is_sqlite:
            connection.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{DOWNTIME_SCHEMA}"'))
            connection.commit()
        else:
            # В SQLite схем нет: таблицы downtime.* живут в основной базе
            connection = connection.execution_options(schema_translate_map={DOWNTIME_SCHEMA: None})

        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_schemas=not is_sqlite,
            version_table_schema=None if is_sqlite else DOWNTIME_SCHEMA,
            render_as_batch=is_sqlite,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
