"""
Naked Mailing List - Subscriber management for Flask
====================================================

Mailing-list subscriber storage with:
- A generic record store with column whitelisting and type coercion
- Subscribers with add-or-update by email and a cached, filtered listing
- Subscriber meta, list and tag membership
- Lifecycle events around create, update and email count changes
- Admin JSON API and a public signup endpoint

Usage:
    from flask import Flask
    from naked_mailing_list import NakedMailingList

    app = Flask(__name__)
    mailing_list = NakedMailingList(app)

    subscriber = mailing_list.subscribers.get_subscriber('jane@example.com')
"""

import logging
import os

__version__ = '0.1.0'

from .core import Config, Database, EventBus, TTLCache, LoggingService, DatabaseLogHandler
from .core.config import get_config_value
from .modules.subscribers import (
    subscribers_admin_bp,
    subscribers_bp,
    SubscriberStore,
    SubscriberMetaStore,
    SubscriberTermStore,
    SubscriberService,
)

logger = logging.getLogger(__name__)


class NakedMailingList:
    """
    Flask extension wiring the database, event bus, cache, stores and
    blueprints together. Everything is built once in init_app() and reached
    through ``app.extensions['naked_mailing_list']``.
    """

    def __init__(self, app=None, ip_resolver=None, clock=None):
        self.ip_resolver = ip_resolver
        self.clock = clock
        self.database = None
        self.events = None
        self.cache = None
        self.log_service = None
        self.log_handler = None
        self.subscriber_store = None
        self.meta_store = None
        self.term_store = None
        self.subscribers = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app, register_blueprints=True):
        with app.app_context():
            db_path = get_config_value('NML_DB', Config.NML_DB)
            table_prefix = get_config_value('NML_TABLE_PREFIX', '')
            cache_ttl = int(get_config_value('NML_SUBSCRIBER_CACHE_TTL', 3600))
            log_retention_days = int(get_config_value('NML_LOG_RETENTION_DAYS', 30))

        self._setup_database_dir(db_path)

        self.database = Database(db_path, table_prefix)
        self.events = EventBus()
        self.cache = TTLCache(default_ttl=cache_ttl, clock=self.clock)

        self.log_service = LoggingService(self.database)
        self.log_service.cleanup_old_logs(log_retention_days)
        self._attach_log_handler()

        self.subscriber_store = SubscriberStore(
            self.database,
            events=self.events,
            cache=self.cache,
            ip_resolver=self.ip_resolver,
            cache_ttl=cache_ttl,
        )
        self.meta_store = SubscriberMetaStore(self.database, events=self.events)
        self.term_store = SubscriberTermStore(self.database, events=self.events)
        self.subscribers = SubscriberService(self.subscriber_store, self.meta_store, self.term_store)

        self.database.init_options_table()
        self.subscribers.create_tables()

        if register_blueprints:
            app.register_blueprint(subscribers_admin_bp)
            app.register_blueprint(subscribers_bp)

        app.extensions['naked_mailing_list'] = self
        logger.info(f"Naked Mailing List initialised with database {db_path}")

    @staticmethod
    def _setup_database_dir(db_path):
        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    def _attach_log_handler(self):
        package_logger = logging.getLogger(__name__)
        for handler in list(package_logger.handlers):
            if isinstance(handler, DatabaseLogHandler):
                package_logger.removeHandler(handler)
        self.log_handler = DatabaseLogHandler(self.log_service)
        package_logger.addHandler(self.log_handler)
        if package_logger.level == logging.NOTSET or package_logger.level > logging.INFO:
            package_logger.setLevel(logging.INFO)


__all__ = ['NakedMailingList', 'Config', '__version__']
