"""
Alembic environment for the event manager schema.

The target URL comes from ``event_manager.core.config`` (the blocking-driver
variant of DATABASE_URL or the DATABASE_* parts) unless one is passed on the
command line:

    alembic -x dburl=sqlite:///./local.db upgrade head

SQLite targets run in batch mode so ALTERs are emitted as table rebuilds.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import make_url

from event_manager.core.config import get_settings
from event_manager.db.base import Base
from event_manager.models import Event, Registration, User  # noqa: F401 - registers tables on Base.metadata

config = context.config

# Callers that already configured logging (the test suite) pass configure_logger=False
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def _database_url() -> str:
    override = context.get_x_argument(as_dictionary=True).get("dburl")
    return override or get_settings().database_url_sync


def _configure_options(url: str) -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": make_url(url).get_backend_name() == "sqlite",
    }


def run_migrations_offline(url: str) -> None:
    """Emit the migration SQL to stdout instead of running it."""
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online(url: str) -> None:
    # ConfigParser treats % as interpolation
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_options(url))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline(_database_url())
else:
    run_migrations_online(_database_url())
