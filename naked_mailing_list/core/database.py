import logging
import os
import sqlite3
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class Database:
    """
    SQLite connection factory shared by every record store.

    One instance is created per application and handed to each store, so there
    is no module-level connection handle. Each ``connect()`` opens a short-lived
    connection that is committed on success, rolled back on error and always
    closed.
    """

    OPTIONS_TABLE = 'nml_options'

    def __init__(self, path, table_prefix=''):
        self.path = path
        self.table_prefix = table_prefix or ''
        db_dir = os.path.dirname(path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    @contextmanager
    def connect(self):
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def table(self, name):
        """Return the prefixed table name"""
        return f"{self.table_prefix}{name}"

    # ===== Options =====

    @property
    def options_table(self):
        return self.table(self.OPTIONS_TABLE)

    def init_options_table(self):
        """Create the key/value options table (stores schema versions)"""
        with self.connect() as conn:
            conn.execute(f'''
                CREATE TABLE IF NOT EXISTS {self.options_table} (
                    option_name TEXT PRIMARY KEY,
                    option_value TEXT,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')

    def get_option(self, name, default=None):
        try:
            with self.connect() as conn:
                row = conn.execute(
                    f"SELECT option_value FROM {self.options_table} WHERE option_name = ?",
                    (name,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Error reading option {name}: {e}")
            return default
        return row[0] if row else default

    def update_option(self, name, value):
        try:
            self.init_options_table()
            with self.connect() as conn:
                conn.execute(f'''
                    INSERT INTO {self.options_table} (option_name, option_value, updated_at)
                    VALUES (?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(option_name) DO UPDATE SET
                        option_value = excluded.option_value,
                        updated_at = excluded.updated_at
                ''', (name, value))
            return True
        except sqlite3.Error as e:
            logger.error(f"Error saving option {name}: {e}")
            return False
