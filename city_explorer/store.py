"""
Record store adapter.

Generic parameterized select/insert/delete against the ORM tables. No
business logic lives here: callers decide which failures are fatal.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import Table, delete, insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import StoreError

logger = logging.getLogger(__name__)


class OnConflict(Enum):
    RAISE = "raise"
    IGNORE = "ignore"  # ON CONFLICT DO NOTHING


class Returning(Enum):
    NOTHING = "nothing"
    ROW = "row"  # RETURNING every column of the inserted row


# Dialects whose insert() supports on_conflict_do_nothing()
_CONFLICT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def build_insert(
    table: Table,
    values: Mapping[str, Any],
    dialect: str,
    on_conflict: OnConflict = OnConflict.IGNORE,
    returning: Returning = Returning.NOTHING,
):
    """Build one INSERT statement for `values` with explicit conflict/returning options."""
    if on_conflict is OnConflict.IGNORE:
        make_insert = _CONFLICT_INSERTS.get(dialect)
        if make_insert is None:
            raise StoreError(f"Conflict-ignoring insert is not supported on {dialect!r}")
        stmt = make_insert(table).values(dict(values)).on_conflict_do_nothing()
    else:
        stmt = insert(table).values(dict(values))

    if returning is Returning.ROW:
        stmt = stmt.returning(*table.c)
    return stmt


def _matching(table: Table, key: Mapping[str, Any]) -> list:
    return [table.c[column] == value for column, value in key.items()]


def select_rows(db: Session, table: Table, key: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    """All rows of `table` matching every column/value pair of `key`, oldest first."""
    stmt = select(table).where(*_matching(table, key)).order_by(*table.primary_key.columns)
    try:
        return list(db.execute(stmt).mappings().all())
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("select from %s where %s failed: %s", table.name, dict(key), e)
        raise StoreError(f"Lookup in {table.name} failed") from e


def insert_rows(
    db: Session,
    table: Table,
    rows: Sequence[Mapping[str, Any]],
    on_conflict: OnConflict = OnConflict.IGNORE,
    returning: Returning = Returning.ROW,
) -> List[Optional[Dict[str, Any]]]:
    """
    Insert `rows` in a single transaction.

    Returns one entry per input row: the stored row when `returning` is ROW
    and the insert took effect, otherwise None (conflict no-op).
    """
    dialect = db.get_bind().dialect.name
    stored: List[Optional[Dict[str, Any]]] = []
    try:
        for values in rows:
            result = db.execute(build_insert(table, values, dialect, on_conflict, returning))
            row = result.mappings().first() if returning is Returning.ROW else None
            stored.append(dict(row) if row is not None else None)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError(f"Insert into {table.name} failed") from e
    return stored


def delete_rows(db: Session, table: Table, key: Mapping[str, Any]) -> int:
    """Delete every row of `table` matching `key`; returns the number removed."""
    stmt = delete(table).where(*_matching(table, key))
    try:
        deleted = db.execute(stmt).rowcount
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError(f"Delete from {table.name} failed") from e
    return deleted
