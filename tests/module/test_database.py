"""Module Tests for the Database traversal root

Validates:
- Lazy table loading and explicit reload
- Keyed access with the absent signal
- Restartable sequential traversal
- Mapping mutation
"""

import pytest

from db_iterator.core import Database, DatabaseConnection, FetchMode, Table


class TestBinding:
    """Test binding a connection."""

    def test_bind_loads_tables(self, connection: DatabaseConnection):
        """Test that binding loads one table view per table."""
        db = Database(connection)

        assert sorted(db.names()) == ["logs", "posts", "tags"]
        assert all(isinstance(table, Table) for table in db)

    def test_bind_sets_assoc_fetch_mode(self, connection: DatabaseConnection):
        """Test that binding switches the connection to associative records."""
        connection.set_fetch_mode(FetchMode.NUM)
        Database(connection)

        assert connection.fetch_mode is FetchMode.ASSOC

    def test_database_name(self, sqlite_file_url: str):
        """Test the database name comes from the connection."""
        with DatabaseConnection.from_url(sqlite_file_url) as connection:
            db = Database(connection)

            assert db.database_name.endswith("blog.db")

    def test_unbound_root_raises(self):
        """Test that traversing an unbound root fails."""
        db = Database()

        with pytest.raises(RuntimeError):
            db.get("posts")

    def test_bind_later(self, connection: DatabaseConnection):
        """Test binding after construction."""
        db = Database()
        db.bind(connection)

        assert "posts" in db


class TestKeyedAccess:
    """Test access by table name."""

    def test_get_existing(self, database: Database):
        table = database["posts"]

        assert table is not None
        assert table.name == "posts"
        assert database.get("posts") is table

    def test_get_missing_returns_none(self, database: Database):
        assert database["missing"] is None
        assert database.get("missing") is None
        assert "missing" not in database

    def test_set_and_delete(self, database: Database):
        """Test direct mutation of the table mapping."""
        posts = database["posts"]
        database["articles"] = posts

        assert database["articles"] is posts

        del database["articles"]
        del database["never_there"]

        assert "articles" not in database
        assert len(database) == 3


class TestTraversal:
    """Test sequential traversal."""

    def test_iteration_order_matches_names(self, database: Database):
        assert [table.name for table in database] == database.names()

    def test_iteration_is_restartable(self, database: Database):
        first = [table.name for table in database]
        second = [table.name for table in database]

        assert first == second
        assert len(first) == 3

    def test_for_each(self, database: Database):
        visited = []
        database.for_each(lambda table: visited.append(table.name))

        assert visited == database.names()


class TestReload:
    """Test explicit reload."""

    def test_reload_replaces_views(self, database: Database):
        """Test that reload discards previous views and their state."""
        old = database["posts"]
        old.where("id = 1")

        database.reload_tables()
        new = database["posts"]

        assert new is not old
        assert new.spec.where is None

    def test_reload_sees_new_tables(
        self, database: Database, connection: DatabaseConnection
    ):
        connection.execute("CREATE TABLE comments (id INTEGER PRIMARY KEY, text TEXT)")

        assert "comments" not in database

        database.reload_tables()

        assert "comments" in database
