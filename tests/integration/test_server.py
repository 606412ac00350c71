"""Integration Tests for the MCP server handlers

Calls the tool handlers of DatabaseIteratorMCPServer against a seeded SQLite
file, without the stdio transport.
"""

import json
from typing import Any, AsyncGenerator

import pytest

from db_iterator.exceptions import InsertDataMismatchError, UnknownFieldError
from db_iterator.models.config import DatabaseConfig
from db_iterator.server import DatabaseIteratorMCPServer, truncate_json_response

pytestmark = pytest.mark.integration


def _payload(result) -> Any:
    assert len(result) == 1
    assert result[0].type == "text"
    return json.loads(result[0].text)


@pytest.fixture
async def server(sqlite_file_url: str) -> AsyncGenerator[DatabaseIteratorMCPServer, None]:
    """Initialized read-write server"""
    server = DatabaseIteratorMCPServer(DatabaseConfig(url=sqlite_file_url))
    await server.initialize()
    try:
        yield server
    finally:
        await server.cleanup()


@pytest.fixture
async def read_only_server(
    sqlite_file_url: str,
) -> AsyncGenerator[DatabaseIteratorMCPServer, None]:
    """Initialized read-only server"""
    server = DatabaseIteratorMCPServer(
        DatabaseConfig(url=sqlite_file_url, read_only=True)
    )
    await server.initialize()
    try:
        yield server
    finally:
        await server.cleanup()


class TestToolRegistration:
    async def test_read_write_tools(self, server: DatabaseIteratorMCPServer):
        names = [tool.name for tool in server.list_tools()]

        assert names == [
            "list_tables",
            "describe_table",
            "browse_rows",
            "count_rows",
            "get_create_table",
            "insert_row",
            "update_row",
            "delete_row",
        ]

    async def test_read_only_tools(self, read_only_server: DatabaseIteratorMCPServer):
        names = [tool.name for tool in read_only_server.list_tools()]

        assert "insert_row" not in names
        assert "browse_rows" in names

    async def test_unknown_tool(self, server: DatabaseIteratorMCPServer):
        with pytest.raises(ValueError, match="Unknown tool"):
            await server.call_tool("drop_everything", {})


class TestReadTools:
    async def test_list_tables(self, server: DatabaseIteratorMCPServer):
        tables = _payload(await server.call_tool("list_tables", {"reload": True}))

        assert {t["name"]: t["column_count"] for t in tables} == {
            "logs": 1,
            "posts": 3,
            "tags": 2,
        }

    async def test_describe_table(self, server: DatabaseIteratorMCPServer):
        description = _payload(
            await server.call_tool("describe_table", {"table": "tags"})
        )

        assert description["primary_key"] == ["post_id", "tag"]
        assert [c["name"] for c in description["columns"]] == ["post_id", "tag"]

    async def test_describe_missing_table(self, server: DatabaseIteratorMCPServer):
        with pytest.raises(ValueError, match="Table not found"):
            await server.call_tool("describe_table", {"table": "missing"})

    async def test_browse_rows(self, server: DatabaseIteratorMCPServer):
        result = _payload(
            await server.call_tool(
                "browse_rows",
                {
                    "table": "posts",
                    "columns": "id, title",
                    "where": "id >= :min_id",
                    "params": {"min_id": 2},
                    "order_by": "id",
                    "limit": 10,
                },
            )
        )

        assert result["query"] == (
            "SELECT id, title FROM posts WHERE id >= :min_id ORDER BY id LIMIT 10"
        )
        assert result["rows"] == [
            {"id": 2, "title": "Second"},
            {"id": 3, "title": "Third"},
        ]

    async def test_browse_resets_previous_query(
        self, server: DatabaseIteratorMCPServer
    ):
        await server.call_tool("browse_rows", {"table": "posts", "where": "id = 1"})
        result = _payload(await server.call_tool("browse_rows", {"table": "posts"}))

        assert result["row_count"] == 3

    async def test_count_rows(self, server: DatabaseIteratorMCPServer):
        result = _payload(await server.call_tool("count_rows", {"table": "tags"}))

        assert result == {"table": "tags", "total": 3}

    async def test_get_create_table(self, server: DatabaseIteratorMCPServer):
        result = await server.call_tool("get_create_table", {"table": "logs"})

        assert result[0].text == "CREATE TABLE logs (message TEXT)"


class TestWriteTools:
    async def test_insert_row(self, server: DatabaseIteratorMCPServer):
        result = _payload(
            await server.call_tool(
                "insert_row",
                {"table": "tags", "values": {"post_id": 3, "tag": "draft"}},
            )
        )

        assert result["affected_rows"] == 1

    async def test_insert_row_mismatch(self, server: DatabaseIteratorMCPServer):
        with pytest.raises(InsertDataMismatchError):
            await server.call_tool(
                "insert_row", {"table": "tags", "values": {"post_id": 3}}
            )

    async def test_update_row(self, server: DatabaseIteratorMCPServer):
        result = _payload(
            await server.call_tool(
                "update_row",
                {"table": "posts", "key": {"id": 3}, "values": {"body": "Filled"}},
            )
        )
        assert result["affected_rows"] == 1

        rows = _payload(
            await server.call_tool("browse_rows", {"table": "posts", "where": "id = 3"})
        )["rows"]
        assert rows[0]["body"] == "Filled"

    async def test_update_unknown_field(self, server: DatabaseIteratorMCPServer):
        with pytest.raises(UnknownFieldError):
            await server.call_tool(
                "update_row",
                {"table": "posts", "key": {"id": 1}, "values": {"author": "me"}},
            )

    async def test_update_rejects_primary_key_values(
        self, server: DatabaseIteratorMCPServer
    ):
        """Test that a key column in values neither moves nor overwrites rows."""
        with pytest.raises(ValueError, match="primary key"):
            await server.call_tool(
                "update_row",
                {
                    "table": "posts",
                    "key": {"id": 1},
                    "values": {"id": 2, "title": "Changed"},
                },
            )

        rows = _payload(
            await server.call_tool("browse_rows", {"table": "posts", "order_by": "id"})
        )["rows"]
        assert {row["id"]: row["title"] for row in rows} == {
            1: "First",
            2: "Second",
            3: "Third",
        }

    async def test_update_missing_row(self, server: DatabaseIteratorMCPServer):
        with pytest.raises(ValueError, match="No row"):
            await server.call_tool(
                "update_row",
                {"table": "posts", "key": {"id": 99}, "values": {"title": "x"}},
            )

    async def test_delete_row(self, server: DatabaseIteratorMCPServer):
        result = _payload(
            await server.call_tool(
                "delete_row", {"table": "tags", "key": {"post_id": 1, "tag": "news"}}
            )
        )
        assert result["affected_rows"] == 1

        count = _payload(await server.call_tool("count_rows", {"table": "tags"}))
        assert count["total"] == 2

    async def test_writes_rejected_when_read_only(
        self, read_only_server: DatabaseIteratorMCPServer
    ):
        with pytest.raises(ValueError, match="read-only"):
            await read_only_server.call_tool(
                "delete_row", {"table": "posts", "key": {"id": 1}}
            )


class TestTruncation:
    def test_short_response_unchanged(self):
        assert truncate_json_response('{"a": 1}', 100) == '{"a": 1}'

    def test_long_response_truncated(self):
        data = json.dumps([{"id": i} for i in range(500)], indent=2)
        truncated = truncate_json_response(data, 500)

        assert len(truncated) <= 500
        assert "Response truncated" in truncated
