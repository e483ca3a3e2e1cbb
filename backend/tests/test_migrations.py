"""
The Alembic history must build the same schema the models describe.
"""

from argparse import Namespace
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError

from event_manager.db.base import Base

ALEMBIC_INI = Path(__file__).resolve().parents[1] / "alembic.ini"


def _alembic_config(url: str) -> Config:
    config = Config(str(ALEMBIC_INI), cmd_opts=Namespace(x=[f"dburl={url}"]))
    config.attributes["configure_logger"] = False
    return config


@pytest.fixture
def migrated_url(tmp_path) -> str:
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    command.upgrade(_alembic_config(url), "head")
    return url


def test_upgrade_creates_model_tables(migrated_url):
    engine = create_engine(migrated_url)
    try:
        inspector = inspect(engine)
        assert set(Base.metadata.tables) <= set(inspector.get_table_names())
        uniques = inspector.get_unique_constraints("event_registrations")
        assert {"event_id", "user_id"} == set(uniques[0]["column_names"])
        foreign_keys = inspector.get_foreign_keys("event_registrations")
        assert {fk["options"].get("ondelete") for fk in foreign_keys} == {"CASCADE"}
    finally:
        engine.dispose()


def test_migrated_capacity_check(migrated_url):
    engine = create_engine(migrated_url)
    try:
        with pytest.raises(IntegrityError):
            with engine.begin() as conn:
                conn.execute(text(
                    "INSERT INTO events (title, date_time, location, capacity) "
                    "VALUES ('Too big', '2030-01-01 00:00:00', 'Hall', 1001)"
                ))
    finally:
        engine.dispose()


def test_downgrade_to_base(migrated_url):
    command.downgrade(_alembic_config(migrated_url), "base")
    engine = create_engine(migrated_url)
    try:
        assert set(inspect(engine).get_table_names()) == {"alembic_version"}
    finally:
        engine.dispose()
