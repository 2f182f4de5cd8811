import asyncio
import logging
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config

from app.core.config import settings
from app.models import Base  # noqa: F401 (registers every model on the metadata)

config = context.config
# The URL always comes from Settings; alembic.ini carries no credentials
config.set_main_option("sqlalchemy.url", settings.database_url.replace("%", "%%"))

if config.config_file_name is not None:
    fileConfig(config.config_file_name)
else:
    logging.basicConfig(level=settings.log_level)

logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata

# Reflection drops the gin_trgm_ops operator class, so autogenerate would
# re-create these on every run. Their migrations manage them by hand.
OPCLASS_INDEXES = frozenset({"ix_researches_title_trgm"})


def include_object(obj, name, type_, reflected, compare_to):
    if type_ == "index" and name in OPCLASS_INDEXES:
        return False
    return True


CONFIGURE_OPTS = dict(
    target_metadata=target_metadata,
    include_object=include_object,
    compare_type=True,
    compare_server_default=True,
)


def do_run_migrations(connection):
    # pg_trgm backs the title similarity index; it must exist before any
    # migration touching that index runs
    connection.exec_driver_sql("CREATE EXTENSION IF NOT EXISTS pg_trgm")
    context.configure(connection=connection, **CONFIGURE_OPTS)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations():
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
        await connection.commit()
    await connectable.dispose()


def run_migrations_offline():
    """Emit the migration as SQL without connecting."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **CONFIGURE_OPTS,
    )
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    logger.info("Rendering migrations as SQL (offline)")
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
