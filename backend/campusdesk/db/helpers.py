from __future__ import annotations

from sqlalchemy import Table
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def insert_ignoring_duplicates(db: Session, table: Table, values: dict) -> bool:
    """Insert a row unless a unique constraint already holds it.

    Returns True when a row was written. Relies on the dialect's native
    ``ON CONFLICT DO NOTHING`` so concurrent callers never see an IntegrityError.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        statement = postgresql.insert(table).values(**values).on_conflict_do_nothing()
    elif dialect == "sqlite":
        statement = sqlite.insert(table).values(**values).on_conflict_do_nothing()
    else:
        raise NotImplementedError(f"Unsupported database dialect: {dialect}")
    result = db.execute(statement)
    return bool(result.rowcount)
