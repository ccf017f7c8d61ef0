"""
Subscriber meta: arbitrary key/value attributes keyed by subscriber ID.
Values are stored JSON encoded so lists and dicts survive a round trip.
"""

import json
import logging

from ...core.record_store import STORE_ERRORS, ColumnType, RecordStore
from ...core.utils import intval

logger = logging.getLogger(__name__)


def _encode(value):
    return json.dumps(value, default=str)


def _decode(raw):
    if raw is None:
        return ''
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return raw


class SubscriberMetaStore(RecordStore):

    table_name = 'nml_subscribermeta'
    primary_key = 'meta_id'
    version = '1.0'

    def get_columns(self):
        return {
            'meta_id': ColumnType.INTEGER,
            'nml_subscriber_id': ColumnType.INTEGER,
            'meta_key': ColumnType.STRING,
            'meta_value': ColumnType.STRING,
        }

    def get_column_defaults(self):
        return {
            'nml_subscriber_id': 0,
            'meta_key': '',
            'meta_value': None,
        }

    def _rows(self, subscriber_id, meta_key=''):
        sql = f"SELECT meta_id, meta_key, meta_value FROM {self.table} WHERE nml_subscriber_id = ?"
        params = [subscriber_id]
        if meta_key:
            sql += " AND meta_key = ?"
            params.append(meta_key)
        sql += " ORDER BY meta_id ASC"
        try:
            with self.db.connect() as conn:
                return conn.execute(sql, params).fetchall()
        except STORE_ERRORS as e:
            logger.error(f"Error reading meta for subscriber {subscriber_id}: {e}")
            return []

    def get_meta(self, subscriber_id, meta_key='', single=True):
        """
        Retrieve meta for a subscriber.

        With no key, returns {key: [values]} for every key. With a key, returns
        the first value ('' when missing) if ``single`` is true, otherwise the
        list of values.
        """
        subscriber_id = intval(subscriber_id)
        rows = self._rows(subscriber_id, meta_key) if subscriber_id > 0 else []

        if not meta_key:
            meta = {}
            for row in rows:
                meta.setdefault(row['meta_key'], []).append(_decode(row['meta_value']))
            return meta

        values = [_decode(row['meta_value']) for row in rows]
        if single:
            return values[0] if values else ''
        return values

    def add_meta(self, subscriber_id, meta_key, meta_value, unique=False):
        subscriber_id = intval(subscriber_id)
        if subscriber_id < 1 or not meta_key:
            return False
        if unique and self._rows(subscriber_id, meta_key):
            return False
        return bool(self.insert({
            'nml_subscriber_id': subscriber_id,
            'meta_key': meta_key,
            'meta_value': _encode(meta_value),
        }, 'subscriber_meta'))

    def update_meta(self, subscriber_id, meta_key, meta_value, prev_value=''):
        """
        Update a meta field. When ``prev_value`` is given only rows holding that
        value are changed. Adds the field if the subscriber does not have it yet.
        """
        subscriber_id = intval(subscriber_id)
        if subscriber_id < 1 or not meta_key:
            return False

        rows = self._rows(subscriber_id, meta_key)
        if not rows:
            return self.add_meta(subscriber_id, meta_key, meta_value)

        if prev_value != '':
            rows = [row for row in rows if _decode(row['meta_value']) == prev_value]
            if not rows:
                return False

        encoded = _encode(meta_value)
        return all(self.update(row['meta_id'], {'meta_value': encoded}) for row in rows)

    def delete_meta(self, subscriber_id, meta_key, meta_value=''):
        """Delete a meta field, or only the rows holding ``meta_value``"""
        subscriber_id = intval(subscriber_id)
        if subscriber_id < 1 or not meta_key:
            return False

        rows = self._rows(subscriber_id, meta_key)
        if meta_value != '':
            rows = [row for row in rows if _decode(row['meta_value']) == meta_value]
        if not rows:
            return False

        return bool(self.delete_by_ids([row['meta_id'] for row in rows]))

    def delete_all(self, subscriber_id):
        """Remove every meta row belonging to a subscriber"""
        try:
            with self.db.connect() as conn:
                conn.execute(f"DELETE FROM {self.table} WHERE nml_subscriber_id = ?", (intval(subscriber_id),))
            return True
        except STORE_ERRORS as e:
            logger.error(f"Error deleting meta for subscriber {subscriber_id}: {e}")
            return False

    def create_table(self):
        with self.db.connect() as conn:
            conn.execute(f'''
                CREATE TABLE IF NOT EXISTS {self.table} (
                    meta_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    nml_subscriber_id INTEGER NOT NULL DEFAULT 0,
                    meta_key VARCHAR(255),
                    meta_value TEXT
                )
            ''')
            conn.execute(f'CREATE INDEX IF NOT EXISTS idx_{self.table}_subscriber ON {self.table}(nml_subscriber_id)')
            conn.execute(f'CREATE INDEX IF NOT EXISTS idx_{self.table}_key ON {self.table}(meta_key)')

        self._record_version()
