"""
Dialect-native upsert statements.

Single-row writes to the planner tables must be atomic insert-or-update
(or insert-or-ignore) statements so concurrent writers never lose the row.
"""

from typing import Any, Dict, Iterable

from sqlalchemy import Table
from sqlalchemy.dialects import mysql, postgresql, sqlite

from ..exceptions import StoreError


def _dialect_insert(dialect_name: str, table: Table):
    if dialect_name == 'sqlite':
        return sqlite.insert(table)
    if dialect_name == 'postgresql':
        return postgresql.insert(table)
    if dialect_name in ('mysql', 'mariadb'):
        return mysql.insert(table)
    raise StoreError(f"Upserts are not supported on the '{dialect_name}' dialect")


def upsert_statement(
    dialect_name: str,
    table: Table,
    values: Dict[str, Any],
    conflict_columns: Iterable[str],
    update_columns: Iterable[str],
):
    """
    Build ``INSERT ... ON CONFLICT DO UPDATE`` (or MySQL's ``ON DUPLICATE KEY UPDATE``).

    Args:
        dialect_name: Engine dialect name
        table: Target table
        values: Column values for the row
        conflict_columns: Unique columns identifying the row
        update_columns: Columns overwritten when the row already exists
    """
    stmt = _dialect_insert(dialect_name, table).values(**values)
    update_columns = list(update_columns)

    if dialect_name in ('mysql', 'mariadb'):
        return stmt.on_duplicate_key_update(
            {column: stmt.inserted[column] for column in update_columns}
        )

    return stmt.on_conflict_do_update(
        index_elements=list(conflict_columns),
        set_={column: stmt.excluded[column] for column in update_columns},
    )


def insert_ignore_statement(
    dialect_name: str,
    table: Table,
    values: Dict[str, Any],
    conflict_columns: Iterable[str],
):
    """Build an insert that leaves an existing row untouched."""
    stmt = _dialect_insert(dialect_name, table).values(**values)

    if dialect_name in ('mysql', 'mariadb'):
        return stmt.prefix_with('IGNORE')

    return stmt.on_conflict_do_nothing(index_elements=list(conflict_columns))
