"""Pytest configuration and shared fixtures for db-iterator tests"""

import os
from typing import Generator, Optional

import pytest
from dotenv import load_dotenv

from db_iterator.core import Database, DatabaseConnection
from db_iterator.models.config import DatabaseConfig

# Load environment variables
load_dotenv()

BLOG_SCHEMA = [
    "CREATE TABLE posts ("
    " id INTEGER PRIMARY KEY,"
    " title VARCHAR(100) NOT NULL,"
    " body TEXT)",
    "CREATE TABLE tags ("
    " post_id INTEGER NOT NULL,"
    " tag VARCHAR(20) NOT NULL,"
    " PRIMARY KEY (post_id, tag))",
    "CREATE TABLE logs (message TEXT)",
]

BLOG_DATA = [
    "INSERT INTO posts (id, title, body) VALUES (1, 'First', 'Hello')",
    "INSERT INTO posts (id, title, body) VALUES (2, 'Second', 'World')",
    "INSERT INTO posts (id, title, body) VALUES (3, 'Third', NULL)",
    "INSERT INTO tags (post_id, tag) VALUES (1, 'news')",
    "INSERT INTO tags (post_id, tag) VALUES (1, 'intro')",
    "INSERT INTO tags (post_id, tag) VALUES (2, 'news')",
    "INSERT INTO logs (message) VALUES ('started')",
]


def create_blog_schema(connection: DatabaseConnection) -> None:
    """Create and seed the posts/tags/logs tables used across tests."""
    for statement in BLOG_SCHEMA + BLOG_DATA:
        connection.execute(statement)


# ==================== Configuration Fixtures ====================


@pytest.fixture
def sqlite_config() -> DatabaseConfig:
    """In-memory SQLite configuration"""
    return DatabaseConfig(url="sqlite://")


@pytest.fixture(scope="session")
def mysql_database_url() -> Optional[str]:
    """MySQL test database URL from environment"""
    return os.getenv("MYSQL_TEST_DATABASE_URL")


@pytest.fixture(scope="session")
def pg_database_url() -> Optional[str]:
    """PostgreSQL test database URL from environment"""
    return os.getenv("PG_TEST_DATABASE_URL")


# ==================== SQLite Fixtures ====================


@pytest.fixture
def connection(
    sqlite_config: DatabaseConfig,
) -> Generator[DatabaseConnection, None, None]:
    """Seeded in-memory SQLite connection with proper cleanup"""
    connection = DatabaseConnection(sqlite_config)
    connection.initialize()
    create_blog_schema(connection)
    try:
        yield connection
    finally:
        connection.dispose()


@pytest.fixture
def database(connection: DatabaseConnection) -> Database:
    """Traversal root bound to the seeded connection"""
    return Database(connection)


@pytest.fixture
def sqlite_file_url(tmp_path) -> str:
    """URL of a seeded SQLite file, for components that open their own connection"""
    url = f"sqlite:///{tmp_path / 'blog.db'}"
    with DatabaseConnection.from_url(url) as connection:
        create_blog_schema(connection)
    return url
