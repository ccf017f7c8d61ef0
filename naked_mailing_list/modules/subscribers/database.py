"""
Subscribers Database
====================

Record store for the subscribers table: schema and defaults, add-or-update by
email, lookups by ID or email, cached filtered listing and table creation.
"""

import hashlib
import json
import logging
from datetime import datetime

from ...core.record_store import STORE_ERRORS, ColumnType, RecordStore, is_row_id
from ...core.utils import get_client_ip, intval, is_email, is_numeric, sanitize_text_field

logger = logging.getLogger(__name__)

STATUSES = ('pending', 'subscribed', 'unsubscribed')

CACHE_GROUP = 'subscribers'

# Page size used when a listing asks for "all" rows
UNBOUNDED = 999999999999


class SubscriberStore(RecordStore):
    """
    Interacts with the subscribers table.

    Args:
        database: Database the table lives in
        events: EventBus receiving pre/post insert notifications
        cache: TTLCache used by get_subscribers()
        ip_resolver: callable returning the caller's address for the ``ip`` default
        cache_ttl: seconds a cached listing stays valid
    """

    table_name = 'nml_subscribers'
    primary_key = 'ID'
    version = '1.0'

    def __init__(self, database, events=None, cache=None, ip_resolver=None, cache_ttl=3600):
        super().__init__(database, events)
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.ip_resolver = ip_resolver or get_client_ip

    def get_columns(self):
        return {
            'ID': ColumnType.INTEGER,
            'email': ColumnType.STRING,
            'first_name': ColumnType.STRING,
            'last_name': ColumnType.STRING,
            'status': ColumnType.STRING,
            'signup_date': ColumnType.STRING,
            'confirm_date': ColumnType.STRING,
            'ip': ColumnType.STRING,
            'email_count': ColumnType.INTEGER,
        }

    def get_column_defaults(self):
        return {
            'email': '',
            'first_name': '',
            'last_name': '',
            'status': 'pending',
            'signup_date': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
            'confirm_date': None,
            'ip': self.ip_resolver(),
            'email_count': 0,
        }

    def add(self, data=None):
        """
        Add a subscriber, or update the existing one with the same email.

        Returns:
            ID of the added/updated subscriber, or False on failure.
        """
        args = dict(data or {})

        if not args.get('email') or not is_email(args['email']):
            return False

        subscriber = self.get_subscriber_by('email', args['email'])

        if subscriber:
            # Update existing subscriber.
            result = self.update(subscriber['ID'], args)
            return subscriber['ID'] if result else False

        return self.insert(args, 'subscriber')

    def delete(self, id_or_email=False):
        """
        Delete a subscriber row.

        NOTE: This should not be called directly as it does not remove the
        subscriber's meta or list/tag membership. Use
        SubscriberService.delete_subscriber() instead.

        Returns:
            Number of rows deleted, or False on error.
        """
        if not id_or_email:
            return False

        column = 'email' if is_email(id_or_email) else 'ID'
        subscriber = self.get_subscriber_by(column, id_or_email)

        if not subscriber or subscriber['ID'] < 1:
            return False

        try:
            with self.db.connect() as conn:
                cursor = conn.execute(f"DELETE FROM {self.table} WHERE ID = ?", (subscriber['ID'],))
                return cursor.rowcount
        except STORE_ERRORS as e:
            logger.error(f"Error deleting subscriber {subscriber['ID']}: {e}")
            return False

    def exists(self, value='', field='email'):
        """Checks if a subscriber exists"""
        if field not in self.get_columns():
            return False
        return bool(self.get_column_by('ID', field, value))

    def get_subscriber_by(self, field='ID', value=0):
        """
        Retrieve a single subscriber from the database.

        Args:
            field: The field to get the subscriber by (ID or email)
            value: The value of the field to search

        Returns:
            Row dict on success, None on failure.
        """
        if not field or not value:
            return None

        if field == 'ID':
            if not is_numeric(value):
                return None
            value = intval(value)
            if not is_row_id(value):
                return None

        elif field == 'email':
            if not is_email(value):
                return None
            value = sanitize_text_field(value.strip())

        else:
            return None

        return self.get_by(field, value)

    def _build_where(self, args):
        """WHERE clause and bound parameters for the listing filters"""
        where = ' WHERE 1=1 '
        params = []

        # Specific subscriber(s).
        if args.get('ID'):
            ids = args['ID'] if isinstance(args['ID'], (list, tuple, set)) else [args['ID']]
            ids = [intval(i) for i in ids]
            ids = [i for i in ids if is_row_id(i)]
            if ids:
                where += f" AND ID IN ({', '.join('?' for _ in ids)}) "
                params.extend(ids)
            else:
                where += " AND 0 "

        # Specific subscriber(s) by email.
        if args.get('email'):
            if isinstance(args['email'], (list, tuple, set)):
                emails = list(args['email'])
                where += f" AND email IN ({', '.join('?' for _ in emails)}) "
                params.extend(emails)
            else:
                where += " AND email = ? "
                params.append(args['email'])

        if args.get('first_name'):
            where += " AND first_name LIKE ? "
            params.append(f"%{args['first_name']}%")

        if args.get('last_name'):
            where += " AND last_name LIKE ? "
            params.append(f"%{args['last_name']}%")

        # By status
        if args.get('status'):
            if isinstance(args['status'], (list, tuple, set)):
                statuses = list(args['status'])
                where += f" AND status IN ({', '.join('?' for _ in statuses)}) "
                params.extend(statuses)
            else:
                where += " AND status = ? "
                params.append(args['status'])

        return where, params

    def _cache_key(self, args):
        payload = json.dumps(args, sort_keys=True, default=str)
        return hashlib.md5(f'nml_subscribers_{payload}'.encode()).hexdigest()

    def get_subscribers(self, args=None):
        """
        Retrieve subscribers from the database.

        Results for a given set of arguments are cached for ``cache_ttl``
        seconds. Writes do not invalidate the cache, so a listing can lag
        behind the table by up to that long; call flush_cache() when fresh
        data is required.

        Returns:
            List of row dicts, or an empty list on error.
        """
        defaults = {
            'number': 20,
            'offset': 0,
            'orderby': 'ID',
            'order': 'DESC',
            'ID': None,
            'email': None,
            'first_name': None,
            'last_name': None,
            'status': None,
        }
        args = {**defaults, **(args or {})}

        args['number'] = intval(args['number'])
        if args['number'] < 1:
            args['number'] = UNBOUNDED
        args['offset'] = abs(intval(args['offset']))

        if not isinstance(args['orderby'], str) or args['orderby'] not in self.get_columns():
            args['orderby'] = 'ID'
        args['order'] = 'ASC' if str(args['order']).upper() == 'ASC' else 'DESC'

        cache_key = self._cache_key(args)

        subscribers = self.cache.get(cache_key, CACHE_GROUP) if self.cache is not None else None

        if subscribers is None:
            where, params = self._build_where(args)
            query = (
                f"SELECT * FROM {self.table} {where} "
                f"ORDER BY {args['orderby']} {args['order']} LIMIT ? OFFSET ?"
            )
            try:
                with self.db.connect() as conn:
                    rows = conn.execute(query, params + [args['number'], args['offset']]).fetchall()
            except STORE_ERRORS as e:
                logger.error(f"Error querying subscribers: {e}")
                return []
            subscribers = [dict(row) for row in rows]
            if self.cache is not None:
                self.cache.set(cache_key, subscribers, CACHE_GROUP, ttl=self.cache_ttl)

        return [dict(row) for row in subscribers]

    def count(self, args=None):
        """Count the subscribers matching the listing filters, ignoring pagination"""
        where, params = self._build_where(args or {})
        try:
            with self.db.connect() as conn:
                return conn.execute(f"SELECT COUNT(*) FROM {self.table} {where}", params).fetchone()[0]
        except STORE_ERRORS as e:
            logger.error(f"Error counting subscribers: {e}")
            return 0

    def flush_cache(self):
        """Drop every cached listing"""
        if self.cache is not None:
            self.cache.flush(CACHE_GROUP)

    def create_table(self):
        """Create the table, or add whatever columns an older install is missing"""
        with self.db.connect() as conn:
            conn.execute(f'''
                CREATE TABLE IF NOT EXISTS {self.table} (
                    ID INTEGER PRIMARY KEY AUTOINCREMENT,
                    email VARCHAR(50) NOT NULL COLLATE NOCASE UNIQUE,
                    first_name TEXT NOT NULL DEFAULT '',
                    last_name TEXT NOT NULL DEFAULT '',
                    status VARCHAR(50) NOT NULL DEFAULT 'pending',
                    signup_date DATETIME NOT NULL,
                    confirm_date DATETIME,
                    ip TEXT NOT NULL DEFAULT '',
                    email_count INTEGER NOT NULL DEFAULT 0
                )
            ''')

            self._add_missing_columns(conn, [
                ('first_name', "TEXT NOT NULL DEFAULT ''"),
                ('last_name', "TEXT NOT NULL DEFAULT ''"),
                ('status', "VARCHAR(50) NOT NULL DEFAULT 'pending'"),
                ('signup_date', "DATETIME NOT NULL DEFAULT '0000-00-00 00:00:00'"),
                ('confirm_date', 'DATETIME'),
                ('ip', "TEXT NOT NULL DEFAULT ''"),
                ('email_count', 'INTEGER NOT NULL DEFAULT 0'),
            ])

            conn.execute(f'CREATE INDEX IF NOT EXISTS idx_{self.table}_status ON {self.table}(status)')
            conn.execute(f'CREATE INDEX IF NOT EXISTS idx_{self.table}_confirm_date ON {self.table}(confirm_date)')

        self._record_version()
        logger.info(f"{self.table} table created/verified successfully")
