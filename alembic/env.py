import logging
import os
import sys
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool
from alembic import context

# ================================
# Project metadata
# ================================
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.config import settings
from sqlmodel import SQLModel
import app.models  # noqa: F401  registers every table

config = context.config
config.set_main_option("sqlalchemy.url", settings.database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")
target_metadata = SQLModel.metadata


def skip_empty_revisions(context, revision, directives):
    # autogenerate with no model changes should not write a file
    if getattr(config.cmd_opts, "autogenerate", False) and directives[0].upgrade_ops.is_empty():
        directives[:] = []
        logger.info("No schema changes detected")


def configure(**kwargs):
    is_sqlite = settings.database_url.startswith("sqlite")
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=not is_sqlite,
        # SQLite cannot ALTER most constraints in place
        render_as_batch=is_sqlite,
        process_revision_directives=skip_empty_revisions,
        **kwargs,
    )


def run_migrations_offline():
    configure(url=config.get_main_option("sqlalchemy.url"), literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
