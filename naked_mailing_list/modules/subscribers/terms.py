"""
Subscriber list and tag membership.

One row per (subscriber, term type, name). Lists and tags are plain names
here; there is no separate list or tag entity.
"""

import logging

from ...core.record_store import STORE_ERRORS, ColumnType, RecordStore
from ...core.utils import intval, sanitize_text_field

logger = logging.getLogger(__name__)

TERM_TYPES = ('list', 'tag')


class SubscriberTermStore(RecordStore):

    table_name = 'nml_subscriber_terms'
    primary_key = 'ID'
    version = '1.0'

    def get_columns(self):
        return {
            'ID': ColumnType.INTEGER,
            'subscriber_id': ColumnType.INTEGER,
            'term_type': ColumnType.STRING,
            'name': ColumnType.STRING,
        }

    def get_column_defaults(self):
        return {
            'subscriber_id': 0,
            'term_type': 'list',
            'name': '',
        }

    @staticmethod
    def _valid(subscriber_id, term_type):
        return intval(subscriber_id) > 0 and term_type in TERM_TYPES

    def get_terms(self, subscriber_id, term_type='list'):
        """Names of the lists/tags a subscriber belongs to, alphabetically"""
        if not self._valid(subscriber_id, term_type):
            return []
        try:
            with self.db.connect() as conn:
                rows = conn.execute(
                    f"SELECT name FROM {self.table} WHERE subscriber_id = ? AND term_type = ? ORDER BY name ASC",
                    (intval(subscriber_id), term_type)
                ).fetchall()
        except STORE_ERRORS as e:
            logger.error(f"Error reading {term_type}s for subscriber {subscriber_id}: {e}")
            return []
        return [row['name'] for row in rows]

    def has_term(self, subscriber_id, name, term_type='list'):
        name = sanitize_text_field(name)
        return bool(name) and name in self.get_terms(subscriber_id, term_type)

    def add_term(self, subscriber_id, name, term_type='list'):
        """Add a subscriber to a list / give them a tag. True if they end up with it."""
        name = sanitize_text_field(name)
        if not name or not self._valid(subscriber_id, term_type):
            return False
        if self.has_term(subscriber_id, name, term_type):
            return True
        return bool(self.insert({
            'subscriber_id': intval(subscriber_id),
            'term_type': term_type,
            'name': name,
        }, 'subscriber_term'))

    def remove_term(self, subscriber_id, name, term_type='list'):
        if not self._valid(subscriber_id, term_type):
            return False
        try:
            with self.db.connect() as conn:
                cursor = conn.execute(
                    f"DELETE FROM {self.table} WHERE subscriber_id = ? AND term_type = ? AND name = ?",
                    (intval(subscriber_id), term_type, sanitize_text_field(name))
                )
                return cursor.rowcount > 0
        except STORE_ERRORS as e:
            logger.error(f"Error removing {term_type} {name!r} from subscriber {subscriber_id}: {e}")
            return False

    def set_terms(self, subscriber_id, names, term_type='list'):
        """Replace a subscriber's lists/tags with ``names``"""
        if not self._valid(subscriber_id, term_type):
            return False
        wanted = []
        for name in names:
            name = sanitize_text_field(name)
            if name and name not in wanted:
                wanted.append(name)

        current = self.get_terms(subscriber_id, term_type)
        ok = True
        for name in current:
            if name not in wanted:
                ok = self.remove_term(subscriber_id, name, term_type) and ok
        for name in wanted:
            if name not in current:
                ok = self.add_term(subscriber_id, name, term_type) and ok
        return ok

    def delete_all(self, subscriber_id):
        try:
            with self.db.connect() as conn:
                conn.execute(f"DELETE FROM {self.table} WHERE subscriber_id = ?", (intval(subscriber_id),))
            return True
        except STORE_ERRORS as e:
            logger.error(f"Error deleting terms for subscriber {subscriber_id}: {e}")
            return False

    def create_table(self):
        with self.db.connect() as conn:
            conn.execute(f'''
                CREATE TABLE IF NOT EXISTS {self.table} (
                    ID INTEGER PRIMARY KEY AUTOINCREMENT,
                    subscriber_id INTEGER NOT NULL,
                    term_type VARCHAR(20) NOT NULL DEFAULT 'list',
                    name VARCHAR(200) NOT NULL,
                    UNIQUE (subscriber_id, term_type, name)
                )
            ''')
            conn.execute(f'CREATE INDEX IF NOT EXISTS idx_{self.table}_subscriber ON {self.table}(subscriber_id)')

        self._record_version()
