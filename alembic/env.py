"""Alembic environment for the accounts schema; database URL comes from app settings."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine
from sqlalchemy.pool import NullPool

from app.core.config import get_settings
from app.models import Base

# Imported for its side effect of registering the users table on Base.metadata.
from app.models import User  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def get_url() -> str:
    """`alembic -x db_url=...` wins over DATABASE_URL from the environment."""
    return context.get_x_argument(as_dictionary=True).get("db_url") or get_settings().DATABASE_URL


def _configure_kwargs(url: str) -> dict:
    # SQLite cannot ALTER most constraints in place; batch mode recreates tables instead.
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Emit SQL for the migrations without connecting."""
    url = get_url()
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Connect to the database and apply migrations."""
    url = get_url()
    connectable = create_engine(url, poolclass=NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_kwargs(url))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
