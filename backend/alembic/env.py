"""Alembic environment bound to the application's engine and metadata."""
from logging.config import fileConfig

from alembic import context

from app.db import Base
from app.db.session import engine

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_online() -> None:
    render_as_batch = engine.url.get_backend_name().startswith("sqlite")

    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            compare_server_default=True,
            render_as_batch=render_as_batch,
        )

        with context.begin_transaction():
            context.run_migrations()


run_migrations_online()
