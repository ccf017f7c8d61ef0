"""
Subscriber service tests: saving from form data and cascading deletes.
"""

import pytest


def test_insert_subscriber_creates_with_extras(service, store):
    new_id = service.insert_subscriber({
        'email': 'form@example.com',
        'first_name': 'Form',
        'notes': 'Signed up at the stall',
        'lists': 'Newsletter, Events',
        'tags': ['vip', ' ', 'vip'],
    })

    assert new_id
    subscriber = service.get_subscriber(new_id)
    assert subscriber.first_name == 'Form'
    assert subscriber.notes == 'Signed up at the stall'
    assert subscriber.lists == ['Events', 'Newsletter']
    assert subscriber.tags == ['vip']


def test_insert_subscriber_updates_existing_email(service, store):
    first = service.insert_subscriber({'email': 'form@example.com', 'first_name': 'A'})
    second = service.insert_subscriber({'email': 'form@example.com', 'first_name': 'B'})

    assert first == second
    assert store.count() == 1
    assert store.get(first)['first_name'] == 'B'


def test_insert_subscriber_by_id(service):
    new_id = service.insert_subscriber({'email': 'form@example.com', 'lists': ['Old']})

    assert service.insert_subscriber({'ID': new_id, 'status': 'subscribed', 'lists': ['New']}) == new_id

    subscriber = service.get_subscriber(new_id)
    assert subscriber.status == 'subscribed'
    assert subscriber.lists == ['New']


def test_insert_subscriber_by_id_with_only_extras(service):
    new_id = service.insert_subscriber({'email': 'form@example.com'})

    assert service.insert_subscriber({'ID': str(new_id), 'notes': 'just a note'}) == new_id
    assert service.get_subscriber(new_id).notes == 'just a note'


@pytest.mark.parametrize("data", [
    {'ID': 999, 'status': 'subscribed'},
    {'email': 'not-an-email'},
    {},
])
def test_insert_subscriber_failures(service, data):
    assert service.insert_subscriber(data) is False


def test_delete_subscriber_cascades(service, store, meta_store, term_store):
    keep = service.insert_subscriber({'email': 'keep@example.com', 'notes': 'keep', 'tags': 'a'})
    gone = service.insert_subscriber({'email': 'gone@example.com', 'notes': 'bye', 'tags': 'a', 'lists': 'b'})

    assert service.delete_subscriber('gone@example.com') is True

    assert store.get(gone) is None
    assert meta_store.get_meta(gone) == {}
    assert term_store.get_terms(gone, 'tag') == []
    assert term_store.get_terms(gone, 'list') == []

    assert meta_store.get_meta(keep, 'notes') == 'keep'
    assert term_store.get_terms(keep, 'tag') == ['a']


def test_delete_unknown_subscriber(service):
    assert service.delete_subscriber('nobody@example.com') is False
    assert service.delete_subscriber(0) is False


def test_create_tables_is_repeatable(service, store):
    service.insert_subscriber({'email': 'a@example.com'})
    service.create_tables()
    assert store.count() == 1


@pytest.mark.parametrize("email", ['1', ' 1 ', 1, None])
def test_insert_subscriber_never_looks_up_an_email_as_an_id(service, store, email):
    existing_id = store.add({'email': 'first@example.com', 'first_name': 'First'})
    assert existing_id == 1

    assert service.insert_subscriber({'ID': 0, 'email': email, 'first_name': 'X'}) is False

    row = store.get(existing_id)
    assert row['email'] == 'first@example.com'
    assert row['first_name'] == 'First'
    assert store.count() == 1


def test_insert_subscriber_with_id_beyond_sqlite_range(service):
    assert service.insert_subscriber({'ID': 2 ** 63, 'status': 'subscribed'}) is False
