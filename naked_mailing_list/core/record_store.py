"""
Record Store
============

Base class for every table this package owns. A subclass declares its table,
primary key and column schema; the base provides whitelisted, type-coerced
CRUD on top of parameter-bound SQLite statements.

Writes only ever touch columns present in the schema. Unknown keys are dropped
silently and column names are never taken from caller input unless they are
first matched against the schema.
"""

import logging
import sqlite3
from enum import Enum

from .utils import is_numeric, intval

logger = logging.getLogger(__name__)

# Largest value an SQLite INTEGER column can hold
MAX_ROW_ID = 2 ** 63 - 1

# sqlite3 raises OverflowError, not sqlite3.Error, for ints outside int64
STORE_ERRORS = (sqlite3.Error, OverflowError)


def is_row_id(value):
    """True for an int in the range a rowid can take (1 .. MAX_ROW_ID)"""
    return isinstance(value, int) and not isinstance(value, bool) and 0 < value <= MAX_ROW_ID


class ColumnType(Enum):
    """Field kinds a schema column can hold"""
    STRING = '%s'
    INTEGER = '%d'
    FLOAT = '%f'


def coerce_value(column_type, value, default=None):
    """
    Coerce ``value`` to ``column_type``.

    INTEGER: non-numeric values, and values whose integer part is negative,
    fall back to ``default``; anything else becomes a non-negative int.
    FLOAT: values that do not parse as a finite float fall back to ``default``.
    STRING: None is kept (nullable columns), anything else becomes str.
    """
    if column_type is ColumnType.INTEGER:
        if not is_numeric(value) or intval(value) != abs(intval(value)):
            return default
        return intval(value)

    if column_type is ColumnType.FLOAT:
        if not is_numeric(value):
            return default
        return float(value)

    if value is None:
        return None
    return str(value)


class RecordStore:
    """Generic whitelisted CRUD over one table"""

    table_name = ''
    primary_key = 'ID'
    version = '1.0'

    def __init__(self, database, events=None):
        self.db = database
        self.events = events

    @property
    def table(self):
        return self.db.table(self.table_name)

    def get_columns(self):
        """Column name -> ColumnType"""
        return {}

    def get_column_defaults(self):
        """Default column values used by insert"""
        return {}

    # ===== Internal helpers =====

    def _fire(self, name, **payload):
        if self.events is not None:
            self.events.fire(name, **payload)

    def _column_name(self, name):
        """Declared column matching ``name`` (case-insensitive), or None"""
        if not isinstance(name, str):
            return None
        columns = self.get_columns()
        if name in columns:
            return name
        lowered = name.lower()
        for column in columns:
            if column.lower() == lowered:
                return column
        return None

    def _whitelist(self, data):
        """
        Keep only schema columns, normalized to their declared names, in the
        order they were given. The primary key is never written.
        """
        clean = {}
        for key, value in (data or {}).items():
            column = self._column_name(key)
            if column is None or column == self.primary_key:
                continue
            clean[column] = value
        return clean

    def sanitize_columns(self, data):
        """Coerce the provided schema columns to their declared type; other keys pass through"""
        columns = self.get_columns()
        defaults = self.get_column_defaults()
        clean = dict(data)
        for key, value in data.items():
            column = self._column_name(key)
            if column is None:
                continue
            clean[key] = coerce_value(columns[column], value, defaults.get(column))
        return clean

    @staticmethod
    def _positive_id(row_id):
        """Row id as a strictly positive int within SQLite's range, or None"""
        if not is_numeric(row_id):
            return None
        row_id = intval(row_id)
        return row_id if is_row_id(row_id) else None

    # ===== Reads =====

    def get(self, row_id):
        """Retrieve a row by the primary key"""
        return self.get_by(self.primary_key, row_id)

    def get_by(self, column, value):
        """Retrieve a row by a specific column / value"""
        column = self._column_name(column)
        if column is None:
            return None
        try:
            with self.db.connect() as conn:
                row = conn.execute(
                    f"SELECT * FROM {self.table} WHERE {column} = ? LIMIT 1",
                    (value,)
                ).fetchone()
        except STORE_ERRORS as e:
            logger.error(f"Error reading {self.table} by {column}: {e}")
            return None
        return dict(row) if row else None

    def get_column(self, column, row_id):
        """Retrieve a specific column's value by the primary key"""
        return self.get_column_by(column, self.primary_key, row_id)

    def get_column_by(self, column, column_where, column_value):
        """Retrieve a specific column's value by the specified column / value"""
        column = self._column_name(column)
        column_where = self._column_name(column_where)
        if column is None or column_where is None:
            return None
        try:
            with self.db.connect() as conn:
                row = conn.execute(
                    f"SELECT {column} FROM {self.table} WHERE {column_where} = ? LIMIT 1",
                    (column_value,)
                ).fetchone()
        except STORE_ERRORS as e:
            logger.error(f"Error reading {column} from {self.table}: {e}")
            return None
        return row[0] if row else None

    # ===== Writes =====

    def insert(self, data, type=''):
        """
        Insert a new row.

        Returns:
            The new row's id, or False on error.
        """
        columns = self.get_columns()
        defaults = self.get_column_defaults()

        args = self._whitelist(defaults)
        args.update(self._whitelist(data))
        args = {key: coerce_value(columns[key], value, defaults.get(key))
                for key, value in args.items()}

        if not args:
            return False

        self._fire(f'pre_insert_{type}', data=args)

        names = ', '.join(args)
        placeholders = ', '.join('?' for _ in args)
        try:
            with self.db.connect() as conn:
                cursor = conn.execute(
                    f"INSERT INTO {self.table} ({names}) VALUES ({placeholders})",
                    tuple(args.values())
                )
                new_id = cursor.lastrowid
        except STORE_ERRORS as e:
            logger.error(f"Error inserting into {self.table}: {e}")
            return False

        self._fire(f'post_insert_{type}', row_id=new_id, data=args)
        return new_id

    def update(self, row_id, data=None, where=''):
        """
        Update a row.

        ``row_id`` must be a positive integer; ``where`` is the column it is
        matched against and defaults to the primary key. Returns True when the
        statement ran, even if no row changed.
        """
        row_id = self._positive_id(row_id)
        if row_id is None:
            return False

        where = self._column_name(where) if where else self.primary_key
        if where is None:
            return False

        columns = self.get_columns()
        defaults = self.get_column_defaults()
        args = {key: coerce_value(columns[key], value, defaults.get(key))
                for key, value in self._whitelist(data).items()}

        if not args:
            return False

        assignments = ', '.join(f"{key} = ?" for key in args)
        try:
            with self.db.connect() as conn:
                conn.execute(
                    f"UPDATE {self.table} SET {assignments} WHERE {where} = ?",
                    tuple(args.values()) + (row_id,)
                )
        except STORE_ERRORS as e:
            logger.error(f"Error updating {self.table} row {row_id}: {e}")
            return False

        return True

    def delete(self, row_id=0):
        """Delete a row identified by the primary key"""
        row_id = self._positive_id(row_id)
        if row_id is None:
            return False
        try:
            with self.db.connect() as conn:
                conn.execute(
                    f"DELETE FROM {self.table} WHERE {self.primary_key} = ?",
                    (row_id,)
                )
        except STORE_ERRORS as e:
            logger.error(f"Error deleting {self.table} row {row_id}: {e}")
            return False
        return True

    def delete_by_ids(self, ids):
        """
        Delete multiple rows by primary key.

        Returns:
            Number of rows deleted, or False if the statement failed.
        """
        if not isinstance(ids, (list, tuple, set, frozenset)):
            ids = [ids]
        ids = [intval(row_id) for row_id in ids]
        ids = [row_id for row_id in ids if is_row_id(row_id)]

        if not ids:
            return 0

        placeholders = ', '.join('?' for _ in ids)
        try:
            with self.db.connect() as conn:
                cursor = conn.execute(
                    f"DELETE FROM {self.table} WHERE {self.primary_key} IN ({placeholders})",
                    tuple(ids)
                )
                return cursor.rowcount
        except STORE_ERRORS as e:
            logger.error(f"Error bulk deleting from {self.table}: {e}")
            return False

    # ===== Schema =====

    def table_exists(self, table):
        """Check if the given table exists"""
        try:
            with self.db.connect() as conn:
                row = conn.execute(
                    "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
                    (table,)
                ).fetchone()
        except STORE_ERRORS as e:
            logger.error(f"Error checking for table {table}: {e}")
            return False
        return row is not None

    def installed(self):
        """Check if the table was ever installed"""
        return self.table_exists(self.table)

    def _add_missing_columns(self, conn, column_ddl):
        """ALTER TABLE for every (name, ddl) pair not present yet"""
        existing = [col[1] for col in conn.execute(f"PRAGMA table_info({self.table})").fetchall()]
        for name, ddl in column_ddl:
            if name not in existing:
                conn.execute(f"ALTER TABLE {self.table} ADD COLUMN {name} {ddl}")
                logger.info(f"Migrated {self.table}: added {name} column")

    def _record_version(self):
        self.db.update_option(f"{self.table}_db_version", self.version)
