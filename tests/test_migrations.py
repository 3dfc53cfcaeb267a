# mypy: ignore-errors
# tests/test_migrations.py
"""The Alembic history must produce the schema the models describe."""

from sqlalchemy import create_engine, inspect

from veil_inbox.core.settings import settings
from veil_inbox.db.session import Base
from veil_inbox.scripts.migrate import run_upgrade_head


def test_upgrade_head_creates_model_tables(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.delenv("ALEMBIC_URL", raising=False)
    monkeypatch.setattr(settings, "database_url", url)

    run_upgrade_head()

    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        tables = set(inspector.get_table_names())
        assert set(Base.metadata.tables) <= tables
        assert "alembic_version" in tables
        for name, table in Base.metadata.tables.items():
            columns = {column["name"] for column in inspector.get_columns(name)}
            assert columns == {column.name for column in table.columns}, name
    finally:
        engine.dispose()
