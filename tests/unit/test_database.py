"""Unit tests for the database layer."""

from datetime import datetime

import pytest
from sqlalchemy import inspect

from news_aggregation.models import KVEntryModel
from news_aggregation.storage.database import DatabaseManager, init_db


class TestDatabaseManager:
    """Tests for DatabaseManager."""

    def test_init_db_creates_table(self, db_manager: DatabaseManager):
        """Test that init_db creates the key-value table."""
        assert "kv_entries" in inspect(db_manager.engine).get_table_names()

    def test_session_commits(self, db_manager: DatabaseManager):
        """Test that a session commits on exit."""
        with db_manager.session() as session:
            session.add(KVEntryModel(key="k", value="1", updated_at=datetime(2024, 1, 1)))

        with db_manager.session() as session:
            assert session.get(KVEntryModel, "k").value == "1"

    def test_session_rolls_back_on_error(self, db_manager: DatabaseManager):
        """Test that a failing session leaves nothing behind."""
        with pytest.raises(RuntimeError):
            with db_manager.session() as session:
                session.add(KVEntryModel(key="k", value="1", updated_at=datetime(2024, 1, 1)))
                session.flush()
                raise RuntimeError("abort")

        with db_manager.session() as session:
            assert session.get(KVEntryModel, "k") is None

    def test_drop_all(self, db_manager: DatabaseManager):
        """Test that drop_all recreates empty tables."""
        with db_manager.session() as session:
            session.add(KVEntryModel(key="k", value="1", updated_at=datetime(2024, 1, 1)))

        db_manager.init_db(drop_all=True)

        with db_manager.session() as session:
            assert session.get(KVEntryModel, "k") is None

    def test_path_from_config(self, test_config):
        """Test that the configured store path is the default."""
        manager = DatabaseManager()

        assert manager.db_path == test_config.store.path

    def test_context_manager_closes(self):
        with DatabaseManager(":memory:") as manager:
            manager.init_db()
            assert manager._engine is not None

        assert manager._engine is None


class TestInitDb:
    """Tests for the init_db helper."""

    def test_creates_file_database(self, tmp_path):
        path = tmp_path / "store" / "news.db"

        init_db(str(path))

        assert path.exists()
        with DatabaseManager(str(path)) as manager:
            assert "kv_entries" in inspect(manager.engine).get_table_names()
