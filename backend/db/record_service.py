"""
Record access for migratable tables.

Tables are not mapped with ORM models - the shop schema is owned elsewhere.
Lightweight sqlalchemy table()/column() constructs are built per table spec
so identifiers are quoted by the dialect.
"""

from typing import Any, Dict, List, Sequence

from sqlalchemy import column, select, table, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from migration.errors import PersistError


def _table(table_name: str, column_names: Sequence[str]):
    return table(table_name, *(column(name) for name in column_names))


def fetch_rows(
    db: Session,
    table_name: str,
    primary_key: str,
    fields: Sequence[str],
) -> List[Dict[str, Any]]:
    """
    Full-table scan of primary key + migratable fields.

    Returns:
        List of row dicts keyed by column name
    """
    columns = [primary_key, *fields]
    t = _table(table_name, columns)
    result = db.execute(select(*(t.c[name] for name in columns)))
    return [dict(row) for row in result.mappings()]


def update_row(
    db: Session,
    table_name: str,
    primary_key: str,
    record_id: Any,
    updates: Dict[str, Any],
) -> None:
    """
    Write all changed fields of one row in a single UPDATE, then commit.

    Raises:
        PersistError: If the statement fails (session is rolled back)
    """
    t = _table(table_name, [primary_key, *updates.keys()])
    stmt = update(t).where(t.c[primary_key] == record_id).values(**updates)
    try:
        db.execute(stmt)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistError(f"Update failed for {table_name}.{primary_key}={record_id}: {e}") from e
