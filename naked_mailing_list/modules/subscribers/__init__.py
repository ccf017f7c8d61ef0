"""
Subscribers Module
==================

Provides:
- SubscriberStore, SubscriberMetaStore, SubscriberTermStore record stores
- Subscriber object (create/update, email count, meta, lists and tags)
- SubscriberService for saving from form data and cascading deletes
- Admin JSON API at /admin/subscribers and public signup at /api/subscribers
"""

from flask import Blueprint

# Admin CRUD (session auth)
subscribers_admin_bp = Blueprint(
    'subscribers_admin',
    __name__,
    url_prefix='/admin/subscribers'
)

# Public signup endpoint
subscribers_bp = Blueprint(
    'subscribers',
    __name__,
    url_prefix='/api/subscribers'
)

from .database import SubscriberStore, STATUSES
from .meta import SubscriberMetaStore
from .terms import SubscriberTermStore
from .subscriber import Subscriber
from .service import SubscriberService
from . import routes

__all__ = [
    'subscribers_admin_bp',
    'subscribers_bp',
    'SubscriberStore',
    'SubscriberMetaStore',
    'SubscriberTermStore',
    'Subscriber',
    'SubscriberService',
    'STATUSES',
]
