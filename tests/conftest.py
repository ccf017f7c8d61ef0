import os
import sys
from pathlib import Path

import pytest

# Ensure project root on sys.path
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from naked_mailing_list.core import Database, EventBus, TTLCache
from naked_mailing_list.modules.subscribers import (
    SubscriberStore,
    SubscriberMetaStore,
    SubscriberTermStore,
    SubscriberService,
)


class FakeClock:
    """Monotonic clock the tests can move forward by hand"""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "databases" / "mailing_list.db")


@pytest.fixture
def database(db_path):
    db = Database(db_path)
    db.init_options_table()
    return db


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(default_ttl=3600, clock=clock)


@pytest.fixture
def store(database, events, cache):
    store = SubscriberStore(database, events=events, cache=cache, ip_resolver=lambda: '203.0.113.7')
    store.create_table()
    return store


@pytest.fixture
def meta_store(database, events):
    meta = SubscriberMetaStore(database, events=events)
    meta.create_table()
    return meta


@pytest.fixture
def term_store(database, events):
    terms = SubscriberTermStore(database, events=events)
    terms.create_table()
    return terms


@pytest.fixture
def service(store, meta_store, term_store):
    return SubscriberService(store, meta_store, term_store)


@pytest.fixture
def recorded(events):
    """Collect every fired lifecycle event as (name, payload) in order"""
    log = []
    names = [
        'pre_insert_subscriber',
        'post_insert_subscriber',
        'subscriber_pre_create',
        'subscriber_post_create',
        'subscriber_pre_update',
        'subscriber_post_update',
        'subscriber_pre_increase_email_count',
        'subscriber_post_increase_email_count',
    ]
    for name in names:
        events.connect(name, lambda sender, _name=name, **payload: log.append((_name, payload)))
    return log
