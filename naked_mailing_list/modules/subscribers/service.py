"""
Subscriber service: the operations admin screens and signup forms call.

Keep SQL out of here; everything goes through the stores and the Subscriber
object so whitelisting and lifecycle events always apply.
"""

import logging

from ...core.utils import intval, is_email
from .subscriber import Subscriber

logger = logging.getLogger(__name__)


def _split_terms(value):
    """Accept a list or a comma separated string of list/tag names"""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(',') if value else []
    return [str(name).strip() for name in value if str(name).strip()]


class SubscriberService:

    def __init__(self, store, meta_store, term_store):
        self.store = store
        self.meta_store = meta_store
        self.term_store = term_store

    def get_subscriber(self, id_or_email):
        return Subscriber(id_or_email, self.store, self.meta_store, self.term_store)

    def insert_subscriber(self, data):
        """
        Create or update a subscriber from form-style data.

        ``ID`` > 0 updates that subscriber; otherwise the subscriber is created
        (or updated, if the email already exists). ``notes`` is saved as meta,
        ``lists`` and ``tags`` replace the subscriber's current ones.

        Returns:
            The subscriber ID, or False on failure.
        """
        subscriber_id = intval(data.get('ID'))

        if subscriber_id > 0:
            subscriber = self.get_subscriber(subscriber_id)
            if not subscriber.ID:
                return False
            # A form may resend only the extra fields; that is still a success.
            columns = {k: v for k, v in data.items() if k in self.store.get_columns() and k != 'ID'}
            if columns and not subscriber.update(columns):
                return False
        else:
            # Only ever look a new subscriber up by a valid address, never by ID.
            email = data.get('email')
            if not is_email(email):
                return False
            subscriber = self.get_subscriber(email.strip())
            if subscriber.ID:
                if not subscriber.update(data):
                    return False
            elif not subscriber.create(data):
                return False

        if 'notes' in data:
            subscriber.update_meta('notes', str(data['notes'] or ''))

        if 'lists' in data:
            self.term_store.set_terms(subscriber.ID, _split_terms(data['lists']), 'list')

        if 'tags' in data:
            self.term_store.set_terms(subscriber.ID, _split_terms(data['tags']), 'tag')

        return subscriber.ID

    def delete_subscriber(self, id_or_email):
        """Delete a subscriber together with their meta and list/tag membership"""
        subscriber = self.get_subscriber(id_or_email)
        if not subscriber.ID:
            return False

        self.meta_store.delete_all(subscriber.ID)
        self.term_store.delete_all(subscriber.ID)

        deleted = bool(self.store.delete(subscriber.ID))
        if deleted:
            logger.info(f"Deleted subscriber {subscriber.ID}: {subscriber.email}")
        return deleted

    def create_tables(self):
        self.store.create_table()
        self.meta_store.create_table()
        self.term_store.create_table()
