"""
Subscriber Object
=================

A single subscriber loaded from the subscribers table. Persistence goes
through SubscriberStore; meta and list/tag membership are delegated to the
meta and term stores keyed by this subscriber's ID.
"""

import logging

from ...core.record_store import ColumnType
from ...core.utils import absint, is_email, is_numeric, sanitize_email, sanitize_text_field

logger = logging.getLogger(__name__)


class Subscriber:
    """
    Usage::

        subscriber = Subscriber('jane@example.com', store, meta_store, term_store)
        if not subscriber.ID:
            subscriber.create({'email': 'jane@example.com', 'first_name': 'Jane'})

        subscriber.update({'status': 'subscribed'})
        subscriber.increase_email_count()

    Construction never fails: when nothing matches ``id_or_email`` the object
    stays empty with ``ID == 0``, ready for create().
    """

    def __init__(self, id_or_email, store, meta_store=None, term_store=None):
        self.ID = 0
        self.email = ''
        self.first_name = ''
        self.last_name = ''
        self.status = ''
        self.signup_date = None
        self.confirm_date = None
        self.ip = ''
        self.email_count = 0

        self.db = store
        self.meta_store = meta_store
        self.term_store = term_store

        field = 'ID' if is_numeric(id_or_email) else 'email'
        subscriber = self.db.get_subscriber_by(field, id_or_email)

        if subscriber:
            self._setup_subscriber(subscriber)

    def __repr__(self):
        return f"Subscriber(ID={self.ID}, email={self.email!r}, status={self.status!r})"

    def _setup_subscriber(self, subscriber):
        """Given a row from the database, set up all the attributes"""
        if not subscriber:
            return False

        for key in self.db.get_columns():
            if key in subscriber:
                setattr(self, key, subscriber[key])

        return bool(self.ID and self.email)

    def _fire(self, name, **payload):
        if self.db.events is not None:
            self.db.events.fire(name, **payload)

    def _sanitize_columns(self, data):
        """Whitelist ``data`` to the table columns and sanitize each value by type"""
        columns = self.db.get_columns()
        data = {key: value for key, value in data.items()
                if key in columns and key != self.db.primary_key}
        data = self.db.sanitize_columns(data)

        for key, value in list(data.items()):
            if columns[key] is not ColumnType.STRING or value is None:
                continue
            data[key] = sanitize_email(value) if key == 'email' else sanitize_text_field(value)

        # A subscriber's address is never blanked out.
        if 'email' in data and not data['email']:
            del data['email']

        return data

    def to_dict(self):
        return {key: getattr(self, key) for key in self.db.get_columns()}

    # ===== Persistence =====

    def create(self, data=None):
        """
        Create the subscriber. Updates the existing row instead if the email is
        already subscribed.

        Returns:
            The subscriber ID, or False on failure.
        """
        if self.ID != 0 or not data:
            return False

        args = self._sanitize_columns(data)

        if not args.get('email') or not is_email(args['email']):
            return False

        self._fire('subscriber_pre_create', args=args)

        created = False

        if self.db.add(args):
            subscriber = self.db.get_subscriber_by('email', args['email'])
            if self._setup_subscriber(subscriber):
                created = self.ID

        self._fire('subscriber_post_create', created=created, args=args)

        if created:
            logger.info(f"Subscriber {created} saved: {self.email}")

        return created

    def update(self, data=None):
        """Update the subscriber record with whitelisted columns from ``data``"""
        if not data:
            return False

        data = self._sanitize_columns(data)
        if not data:
            return False

        self._fire('subscriber_pre_update', subscriber_id=self.ID, data=data)

        updated = False

        if self.db.update(self.ID, data):
            subscriber = self.db.get_subscriber_by('ID', self.ID)
            self._setup_subscriber(subscriber)
            updated = True

        self._fire('subscriber_post_update', updated=updated, subscriber_id=self.ID, data=data)

        return updated

    def increase_email_count(self, count=1):
        """
        Increase the number of emails the subscriber has received.

        Returns:
            The new email count, or False if ``count`` is not a non-negative integer.
        """
        if not is_numeric(count) or float(count) != absint(count):
            return False

        count = absint(count)
        new_total = int(self.email_count or 0) + count

        self._fire('subscriber_pre_increase_email_count', count=count, subscriber_id=self.ID)

        if self.update({'email_count': new_total}):
            self.email_count = new_total

        self._fire('subscriber_post_increase_email_count',
                   email_count=self.email_count, count=count, subscriber_id=self.ID)

        return self.email_count

    # ===== Computed properties =====

    @property
    def lists(self):
        return self.get_lists()

    @property
    def tags(self):
        return self.get_tags()

    @property
    def notes(self):
        notes = self.get_meta('notes')
        return notes if isinstance(notes, str) else ''

    # ===== Lists & tags =====

    def get_lists(self):
        if self.term_store is None or not self.ID:
            return []
        return self.term_store.get_terms(self.ID, 'list')

    def is_on_list(self, list_name):
        if self.term_store is None or not self.ID:
            return False
        return self.term_store.has_term(self.ID, list_name, 'list')

    def add_to_list(self, list_name):
        if self.term_store is None or not self.ID:
            return False
        return self.term_store.add_term(self.ID, list_name, 'list')

    def get_tags(self):
        if self.term_store is None or not self.ID:
            return []
        return self.term_store.get_terms(self.ID, 'tag')

    def has_tag(self, tag_name):
        if self.term_store is None or not self.ID:
            return False
        return self.term_store.has_term(self.ID, tag_name, 'tag')

    def tag(self, tag_name):
        if self.term_store is None or not self.ID:
            return False
        return self.term_store.add_term(self.ID, tag_name, 'tag')

    # ===== Meta =====

    def get_meta(self, meta_key='', single=True):
        if self.meta_store is None:
            return '' if meta_key and single else ([] if meta_key else {})
        return self.meta_store.get_meta(self.ID, meta_key, single)

    def add_meta(self, meta_key, meta_value, unique=False):
        if self.meta_store is None:
            return False
        return self.meta_store.add_meta(self.ID, meta_key, meta_value, unique)

    def update_meta(self, meta_key, meta_value, prev_value=''):
        if self.meta_store is None:
            return False
        return self.meta_store.update_meta(self.ID, meta_key, meta_value, prev_value)

    def delete_meta(self, meta_key, meta_value=''):
        if self.meta_store is None:
            return False
        return self.meta_store.delete_meta(self.ID, meta_key, meta_value)
