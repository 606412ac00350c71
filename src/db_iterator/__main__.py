"""Entry point for running db_iterator as a module."""

from db_iterator.server import cli_entry

if __name__ == "__main__":
    cli_entry()
