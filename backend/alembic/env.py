# Migrations for the Supabase Postgres schema that backs call_logs and friends.
# Runtime code talks to the same tables over PostgREST; this is the schema owner.

from pathlib import Path
import sys
import os
from logging.config import fileConfig

from dotenv import load_dotenv
from alembic import context
from sqlalchemy import engine_from_config, pool

BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))
load_dotenv(BACKEND_DIR / ".env")

from courier_bridge.infrastructure.db.base import Base
from courier_bridge.domain.entities import profile, customer, call_log, archived_call, setting  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

DRIVER_PREFIX = "postgresql+psycopg://"


def database_url() -> str:
    """
    DATABASE_URL (or the Supabase-provided SUPABASE_DB_URL), pinned to psycopg3.
    Plain postgres:// URLs as copied from the Supabase dashboard are rewritten.
    """
    url = os.getenv("DATABASE_URL") or os.getenv("SUPABASE_DB_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; point it at the Supabase Postgres instance")
    for scheme in ("postgres://", "postgresql://"):
        if url.startswith(scheme):
            return DRIVER_PREFIX + url[len(scheme):]
    return url


def run_offline() -> None:
    context.configure(
        url=database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    engine = engine_from_config(
        {"sqlalchemy.url": database_url()},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
