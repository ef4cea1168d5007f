from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"

TABLES = {"students", "subjects", "grades", "attendance", "behavioral_notes", "feedback"}


def _alembic_config(url):
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", url)
    return cfg


def test_upgrade_and_downgrade(tmp_path):
    url = "sqlite:///{}".format(tmp_path / "migrated.db")
    cfg = _alembic_config(url)

    command.upgrade(cfg, "head")

    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        assert TABLES <= set(inspector.get_table_names())
        student_indexes = {ix["name"]: ix for ix in inspector.get_indexes("students")}
        assert student_indexes["ix_students_student_id"]["unique"]
        feedback_columns = {c["name"] for c in inspector.get_columns("feedback")}
        assert {"id", "student_id", "content", "generated_by", "feedback_type", "created_at"} <= feedback_columns
        fks = inspector.get_foreign_keys("feedback")
        assert fks[0]["referred_table"] == "students"
        assert fks[0]["options"].get("ondelete") == "CASCADE"
    finally:
        engine.dispose()

    command.downgrade(cfg, "base")

    engine = create_engine(url)
    try:
        assert not TABLES & set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
