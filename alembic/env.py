"""Alembic environment bootstrap for Inkwell."""

from __future__ import annotations

from logging.config import fileConfig

import inkwell.models.category  # noqa: F401 - register tables on the metadata
import inkwell.models.post  # noqa: F401
import inkwell.models.subscriber  # noqa: F401
import inkwell.models.user  # noqa: F401
from alembic import context
from inkwell.config import settings
from inkwell.database import Base, engine

config = context.config
if config.config_file_name:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit SQL for the configured URL without connecting."""
    context.configure(
        url=settings.resolved_database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=settings.resolved_database_url.startswith("sqlite"),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
