"""Alembic migrations build the same schema as the models."""

from pathlib import Path

from flask_migrate import downgrade, upgrade
from sqlalchemy import inspect

from kiosk import create_app
from kiosk.extensions import db

MIGRATIONS = Path(__file__).resolve().parents[1] / "migrations"


def migrated_app(tmp_path):
    return create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'migrated.sqlite3'}",
    })


def test_upgrade_matches_models(tmp_path):
    app = migrated_app(tmp_path)
    with app.app_context():
        upgrade(directory=str(MIGRATIONS))

        inspector = inspect(db.engine)
        tables = set(inspector.get_table_names()) - {"alembic_version"}
        assert tables == {t.name for t in db.metadata.sorted_tables}

        for table in db.metadata.sorted_tables:
            columns = {c["name"] for c in inspector.get_columns(table.name)}
            assert columns == {c.name for c in table.columns}, table.name

        db.engine.dispose()


def test_downgrade_to_base_drops_everything(tmp_path):
    app = migrated_app(tmp_path)
    with app.app_context():
        upgrade(directory=str(MIGRATIONS))
        downgrade(directory=str(MIGRATIONS), revision="base")

        assert set(inspect(db.engine).get_table_names()) <= {"alembic_version"}
        db.engine.dispose()
