from pathlib import Path

import sqlalchemy as sa
from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory

from gagyebu.core.database import Base

ALEMBIC_DIR = Path(__file__).resolve().parents[1] / "alembic"


def _alembic_config(db_path: Path) -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(ALEMBIC_DIR))
    cfg.set_main_option("sqlalchemy.url", f"sqlite:///{db_path}")
    return cfg


def test_single_head():
    script = ScriptDirectory.from_config(_alembic_config(Path("unused.sqlite3")))
    assert len(script.get_heads()) == 1


def test_upgrade_matches_models_and_downgrades(tmp_path):
    db_path = tmp_path / "migrated.sqlite3"
    cfg = _alembic_config(db_path)

    command.upgrade(cfg, "head")

    engine = sa.create_engine(f"sqlite:///{db_path}")
    try:
        inspector = sa.inspect(engine)
        tables = set(inspector.get_table_names()) - {"alembic_version"}
        assert tables == set(Base.metadata.tables)

        for name, table in Base.metadata.tables.items():
            migrated = {col["name"] for col in inspector.get_columns(name)}
            assert migrated == {col.name for col in table.columns}, name

        indexes = {ix["name"] for ix in inspector.get_indexes("transaction")}
        assert "ix_transaction_household_date" in indexes
    finally:
        engine.dispose()

    command.downgrade(cfg, "base")

    engine = sa.create_engine(f"sqlite:///{db_path}")
    try:
        assert set(sa.inspect(engine).get_table_names()) <= {"alembic_version"}
    finally:
        engine.dispose()
