"""
Database migrations for the local expense store.

Uses SQLite ALTER TABLE ADD COLUMN for incremental schema evolution.
Each migration is idempotent: columns are only added if absent.

Called from create_db_engine() after create_all() so databases written by
older app versions gain the new optional fields with their defaults:
payment_method falls back to 'cash', description stays NULL.
"""
from sqlalchemy import text


def run_migrations(engine) -> None:
    """Apply all pending schema migrations.

    Idempotent: a column is added only when PRAGMA table_info (SQLite) lacks it.

    Args:
        engine: SQLAlchemy engine (SQLModel create_engine result).
    """
    with engine.connect() as conn:
        # Payment method was added after the first release
        _add_column_if_missing(
            conn, "expenses", "payment_method", "VARCHAR NOT NULL DEFAULT 'cash'"
        )
        # Optional free-text description
        _add_column_if_missing(conn, "expenses", "description", "VARCHAR")

        conn.commit()


def _add_column_if_missing(conn, table: str, column: str, col_type: str) -> None:
    """Add a column to a table if it doesn't already exist.

    Args:
        conn: SQLAlchemy connection.
        table: Table name.
        column: Column name to add.
        col_type: SQLite column definition, e.g. "VARCHAR", "REAL DEFAULT 0".
    """
    result = conn.execute(text(f"PRAGMA table_info({table})"))
    existing_columns = {row[1] for row in result}
    if column not in existing_columns:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {col_type}"))
