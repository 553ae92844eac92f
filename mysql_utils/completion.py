"""
Shell completion candidates queried from the live server.
"""

from .connection import DatabaseConnection

COMPLETION_KINDS = ('database', 'table')


def suggest_completions(connection: DatabaseConnection, word: str, kind: str = 'table') -> list[str]:
    """Return database or table names starting with ``word``."""
    if kind == 'database':
        candidates = connection.get_databases()
    elif kind == 'table':
        candidates = [name.table for name in connection.get_tables()]
    else:
        raise ValueError(f"Unknown completion kind '{kind}', expecting one of {COMPLETION_KINDS}")

    return sorted(name for name in candidates if name.startswith(word))
