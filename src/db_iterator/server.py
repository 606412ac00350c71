"""db-iterator MCP Server

A Model Context Protocol (MCP) server exposing table traversal, row browsing
and single-row editing of a SQLite, MySQL or PostgreSQL database.
"""

import asyncio
import json
import logging
import os
from typing import Any, Optional

from dotenv import load_dotenv
from mcp.server import Server
from mcp.types import TextContent, Tool

from db_iterator.core import Database, DatabaseConnection, Row, Table
from db_iterator.models.config import DatabaseConfig
from db_iterator.utils import convert_rows_to_json_safe, dumps

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Response size limits (in characters) for MCP tool responses
MAX_RESPONSE_LIST_TABLES = 3000
MAX_RESPONSE_DESCRIBE_TABLE = 5000
MAX_RESPONSE_GET_CREATE_TABLE = 8000
MAX_RESPONSE_BROWSE_ROWS = 10000
MAX_RESPONSE_WRITE = 1000

DEFAULT_BROWSE_LIMIT = 100


def truncate_json_response(data: str, max_length: int) -> str:
    """
    Truncate JSON response to a maximum length.

    Args:
        data: JSON string to truncate
        max_length: Maximum length in characters

    Returns:
        Truncated JSON string with truncation notice if needed
    """
    if len(data) <= max_length:
        return data

    truncation_msg = (
        f"\n\n... [Response truncated: {len(data)} chars -> {max_length} chars]"
    )
    available_length = max_length - len(truncation_msg)

    if available_length < 100:
        return json.dumps(
            {
                "error": "Response too large",
                "original_size": len(data),
                "limit": max_length,
                "message": "Response exceeds size limit. Use a narrower select, where or limit.",
            },
            indent=2,
        )

    truncated = data[:available_length]

    # Cut at a line end when one is close to the limit
    last_newline = truncated.rfind("\n")
    if last_newline > available_length * 0.8:
        truncated = truncated[:last_newline]

    return truncated + truncation_msg


def _text(payload: Any, max_length: int) -> list[TextContent]:
    return [
        TextContent(
            type="text", text=truncate_json_response(dumps(payload), max_length)
        )
    ]


class DatabaseIteratorMCPServer:
    """MCP server over a Database traversal root."""

    def __init__(self, config: DatabaseConfig):
        """
        Initialize the server.

        Args:
            config: Database configuration
        """
        self.config = config
        self.connection = DatabaseConnection(config)
        self.database: Optional[Database] = None
        self.server = Server("db-iterator")

    async def initialize(self) -> None:
        """Open the connection and load the tables."""
        self.connection.initialize()
        self.database = Database(self.connection)

        logger.info(
            f"Initialized {self.config.dialect} MCP server "
            f"({len(self.database)} tables, "
            f"{'read-only' if self.config.read_only else 'read-write'})"
        )

    def list_tools(self) -> list[Tool]:
        """Tools offered for the current configuration."""
        tools = [
            self._create_list_tables_tool(),
            self._create_describe_table_tool(),
            self._create_browse_rows_tool(),
            self._create_count_rows_tool(),
            self._create_get_create_table_tool(),
        ]

        if not self.config.read_only:
            tools.extend(
                [
                    self._create_insert_row_tool(),
                    self._create_update_row_tool(),
                    self._create_delete_row_tool(),
                ]
            )

        return tools

    def _create_list_tables_tool(self) -> Tool:
        return Tool(
            name="list_tables",
            description="List the tables of the database",
            inputSchema={
                "type": "object",
                "properties": {
                    "reload": {
                        "type": "boolean",
                        "description": "Re-read the table list from the database",
                        "default": False,
                    },
                },
                "required": [],
            },
        )

    def _create_describe_table_tool(self) -> Tool:
        return Tool(
            name="describe_table",
            description="Get the columns and primary key of a table",
            inputSchema={
                "type": "object",
                "properties": {
                    "table": {"type": "string", "description": "Table name"},
                },
                "required": ["table"],
            },
        )

    def _create_browse_rows_tool(self) -> Tool:
        return Tool(
            name="browse_rows",
            description=(
                "Read rows of a table. select, where, order_by and limit are raw "
                "SQL fragments; pass values through params with :name placeholders"
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "table": {"type": "string", "description": "Table name"},
                    "columns": {
                        "type": "string",
                        "description": "Select list (default: *)",
                        "default": "*",
                    },
                    "where": {
                        "type": "string",
                        "description": "WHERE condition, e.g. 'id > :min_id'",
                    },
                    "params": {
                        "type": "object",
                        "description": "Values for :name placeholders in where",
                    },
                    "order_by": {
                        "type": "string",
                        "description": "ORDER BY clause body",
                    },
                    "limit": {
                        "type": "integer",
                        "description": f"Maximum rows (default: {DEFAULT_BROWSE_LIMIT})",
                        "default": DEFAULT_BROWSE_LIMIT,
                    },
                },
                "required": ["table"],
            },
        )

    def _create_count_rows_tool(self) -> Tool:
        return Tool(
            name="count_rows",
            description="Count all rows of a table",
            inputSchema={
                "type": "object",
                "properties": {
                    "table": {"type": "string", "description": "Table name"},
                },
                "required": ["table"],
            },
        )

    def _create_get_create_table_tool(self) -> Tool:
        return Tool(
            name="get_create_table",
            description="Get the CREATE TABLE statement of a table",
            inputSchema={
                "type": "object",
                "properties": {
                    "table": {"type": "string", "description": "Table name"},
                },
                "required": ["table"],
            },
        )

    def _create_insert_row_tool(self) -> Tool:
        return Tool(
            name="insert_row",
            description="Insert one row; values must name every column of the table",
            inputSchema={
                "type": "object",
                "properties": {
                    "table": {"type": "string", "description": "Table name"},
                    "values": {
                        "type": "object",
                        "description": "Column values",
                    },
                },
                "required": ["table", "values"],
            },
        )

    def _create_update_row_tool(self) -> Tool:
        return Tool(
            name="update_row",
            description="Update the row identified by its primary key values",
            inputSchema={
                "type": "object",
                "properties": {
                    "table": {"type": "string", "description": "Table name"},
                    "key": {
                        "type": "object",
                        "description": "Primary key column values",
                    },
                    "values": {
                        "type": "object",
                        "description": "New values for non-key columns",
                    },
                },
                "required": ["table", "key", "values"],
            },
        )

    def _create_delete_row_tool(self) -> Tool:
        return Tool(
            name="delete_row",
            description="Delete the row identified by its primary key values",
            inputSchema={
                "type": "object",
                "properties": {
                    "table": {"type": "string", "description": "Table name"},
                    "key": {
                        "type": "object",
                        "description": "Primary key column values",
                    },
                },
                "required": ["table", "key"],
            },
        )

    # Tool handlers
    async def handle_list_tables(self, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle list_tables request."""
        assert self.database is not None

        if arguments.get("reload", False):
            self.database.reload_tables()

        tables = [
            {"name": table.name, "column_count": len(table.get_columns())}
            for table in self.database
        ]
        return _text(tables, MAX_RESPONSE_LIST_TABLES)

    async def handle_describe_table(
        self, arguments: dict[str, Any]
    ) -> list[TextContent]:
        """Handle describe_table request."""
        table = self._get_table(arguments["table"])

        primary_keys = table.get_primary_keys() or {}
        description = {
            "name": table.name,
            "columns": [column.model_dump() for column in table.get_columns().values()],
            "primary_key": list(primary_keys),
        }
        return _text(description, MAX_RESPONSE_DESCRIBE_TABLE)

    async def handle_browse_rows(self, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle browse_rows request."""
        table = self._get_table(arguments["table"])

        table.reset(clear_spec=True)
        table.select(arguments.get("columns") or "*")
        if arguments.get("where"):
            table.where(arguments["where"], arguments.get("params"))
        if arguments.get("order_by"):
            table.order_by(arguments["order_by"])
        table.limit(int(arguments.get("limit", DEFAULT_BROWSE_LIMIT)))

        rows = convert_rows_to_json_safe([row.to_dict() for row in table.execute()])
        result = {
            "query": table.build_query(),
            "row_count": len(rows),
            "rows": rows,
        }
        return _text(result, MAX_RESPONSE_BROWSE_ROWS)

    async def handle_count_rows(self, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle count_rows request."""
        table = self._get_table(arguments["table"])
        return _text(
            {"table": table.name, "total": table.total_count()},
            MAX_RESPONSE_WRITE,
        )

    async def handle_get_create_table(
        self, arguments: dict[str, Any]
    ) -> list[TextContent]:
        """Handle get_create_table request."""
        table = self._get_table(arguments["table"])
        return [
            TextContent(
                type="text",
                text=truncate_json_response(
                    table.get_create_table(), MAX_RESPONSE_GET_CREATE_TABLE
                ),
            )
        ]

    async def handle_insert_row(self, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle insert_row request."""
        self._check_writable()
        table = self._get_table(arguments["table"])

        affected = table.insert(arguments["values"])
        logger.info(f"Inserted {affected} row(s) into {table.name}")
        return _text(
            {"table": table.name, "affected_rows": affected}, MAX_RESPONSE_WRITE
        )

    async def handle_update_row(self, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle update_row request."""
        self._check_writable()
        table = self._get_table(arguments["table"])
        values = arguments["values"]

        # The row is located by its primary key, so the key cannot change here
        primary_keys = table.get_primary_keys() or {}
        key_columns = [name for name in values if name in primary_keys]
        if key_columns:
            raise ValueError(
                f"Cannot update primary key column(s) of {table.name}: "
                f"{', '.join(key_columns)}"
            )

        row = self._find_row(table, arguments["key"])
        for name, value in values.items():
            row[name] = value

        affected = row.update()
        logger.info(f"Updated {affected} row(s) in {table.name}")
        return _text(
            {"table": table.name, "affected_rows": affected}, MAX_RESPONSE_WRITE
        )

    async def handle_delete_row(self, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle delete_row request."""
        self._check_writable()
        table = self._get_table(arguments["table"])
        row = self._find_row(table, arguments["key"])

        affected = row.delete()
        logger.info(f"Deleted {affected} row(s) from {table.name}")
        return _text(
            {"table": table.name, "affected_rows": affected}, MAX_RESPONSE_WRITE
        )

    def _get_table(self, name: str) -> Table:
        assert self.database is not None

        table = self.database.get(name)
        if table is None:
            raise ValueError(f"Table not found: {name}")
        return table

    def _find_row(self, table: Table, key: dict[str, Any]) -> Row:
        """Load the single row whose columns equal ``key``."""
        if not key:
            raise ValueError("key must name at least one column")

        columns = table.get_columns()
        conditions = []
        params = {}
        for i, (name, value) in enumerate(key.items()):
            if name not in columns:
                raise ValueError(f"Unknown column {name} in table {table.name}")
            conditions.append(f"{self.connection.quote_identifier(name)} = :key_{i}")
            params[f"key_{i}"] = value

        table.reset(clear_spec=True)
        row = table.where(" AND ".join(conditions), params).limit(1)[0]
        if row is None:
            raise ValueError(f"No row in {table.name} matches {key}")
        return row

    def _check_writable(self) -> None:
        if self.config.read_only:
            raise ValueError("Server is read-only; write tools are disabled")

    async def call_tool(
        self, name: str, arguments: dict[str, Any]
    ) -> list[TextContent]:
        """Dispatch a tool call to its handler."""
        handlers = {
            "list_tables": self.handle_list_tables,
            "describe_table": self.handle_describe_table,
            "browse_rows": self.handle_browse_rows,
            "count_rows": self.handle_count_rows,
            "get_create_table": self.handle_get_create_table,
            "insert_row": self.handle_insert_row,
            "update_row": self.handle_update_row,
            "delete_row": self.handle_delete_row,
        }

        handler = handlers.get(name)
        if handler is None:
            raise ValueError(f"Unknown tool: {name}")

        return await handler(arguments)

    async def cleanup(self) -> None:
        """Cleanup resources."""
        self.connection.dispose()
        logger.info("db-iterator MCP server cleaned up")


def config_from_env() -> DatabaseConfig:
    """Build the configuration from DATABASE_URL and DATABASE_READ_ONLY."""
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL environment variable must be set")

    read_only = os.getenv("DATABASE_READ_ONLY", "false").lower() in {
        "1",
        "true",
        "yes",
    }
    return DatabaseConfig(url=database_url, read_only=read_only)


async def main() -> None:
    """Main entry point for the MCP server."""
    mcp_server = DatabaseIteratorMCPServer(config_from_env())

    try:
        await mcp_server.initialize()

        @mcp_server.server.list_tools()
        async def list_tools() -> list[Tool]:
            """List available tools."""
            return mcp_server.list_tools()

        @mcp_server.server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            """Handle tool calls."""
            return await mcp_server.call_tool(name, arguments)

        # Run the server
        from mcp.server.stdio import stdio_server

        async with stdio_server() as (read_stream, write_stream):
            await mcp_server.server.run(
                read_stream,
                write_stream,
                mcp_server.server.create_initialization_options(),
            )

    finally:
        await mcp_server.cleanup()


def cli_entry() -> None:
    """
    Synchronous entry point for console script.

    This function is called by the 'db-iterator-mcp' console script.
    """
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    cli_entry()
