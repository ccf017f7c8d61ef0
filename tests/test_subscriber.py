"""
Subscriber object tests
=======================

Loading, create/update with lifecycle events, the email counter, and the
notes / lists / tags properties.
"""

import pytest

from naked_mailing_list.modules.subscribers import Subscriber


@pytest.fixture
def make_subscriber(store, meta_store, term_store):
    def _make(id_or_email):
        return Subscriber(id_or_email, store, meta_store, term_store)
    return _make


@pytest.fixture
def jane(store, make_subscriber):
    store.add({'email': 'jane@example.com', 'first_name': 'Jane', 'last_name': 'Doe'})
    return make_subscriber('jane@example.com')


# ---------------------------------------------------------------------------
# loading
# ---------------------------------------------------------------------------

def test_load_by_email_and_by_id(jane, make_subscriber):
    assert jane.ID > 0
    assert jane.first_name == 'Jane'
    assert jane.status == 'pending'

    by_id = make_subscriber(jane.ID)
    assert by_id.email == 'jane@example.com'

    by_numeric_string = make_subscriber(str(jane.ID))
    assert by_numeric_string.ID == jane.ID


@pytest.mark.parametrize("id_or_email", ['nobody@example.com', 0, -3, 'not an email', 999])
def test_unknown_subscriber_is_empty(store, make_subscriber, id_or_email):
    subscriber = make_subscriber(id_or_email)
    assert subscriber.ID == 0
    assert subscriber.email == ''
    assert subscriber.email_count == 0


def test_to_dict_has_every_column(jane, store):
    data = jane.to_dict()
    assert set(data) == set(store.get_columns())
    assert data['email'] == 'jane@example.com'


def test_unknown_attribute_raises(jane):
    with pytest.raises(AttributeError):
        jane.favourite_colour


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------

def test_create_sets_up_object_and_fires_events(make_subscriber, recorded):
    subscriber = make_subscriber('new@example.com')

    new_id = subscriber.create({'email': 'new@example.com', 'first_name': 'New', 'bogus': 'x'})

    assert new_id and new_id == subscriber.ID
    assert subscriber.first_name == 'New'
    assert subscriber.status == 'pending'

    names = [name for name, _ in recorded]
    assert names == [
        'subscriber_pre_create',
        'pre_insert_subscriber',
        'post_insert_subscriber',
        'subscriber_post_create',
    ]
    pre_args = recorded[0][1]['args']
    assert 'bogus' not in pre_args
    post_payload = recorded[-1][1]
    assert post_payload['created'] == new_id


def test_create_sanitizes_text(make_subscriber):
    subscriber = make_subscriber('x@example.com')
    subscriber.create({'email': '  x@example.com ', 'first_name': '<b>Bold</b>\n  Name'})

    assert subscriber.email == 'x@example.com'
    assert subscriber.first_name == 'Bold Name'


def test_create_ignores_primary_key(store, make_subscriber):
    store.add({'email': 'first@example.com'})
    subscriber = make_subscriber('second@example.com')

    new_id = subscriber.create({'ID': 1, 'email': 'second@example.com'})

    assert new_id == 2
    assert store.get(1)['email'] == 'first@example.com'


def test_create_refuses_loaded_subscriber_or_bad_input(jane, make_subscriber, recorded):
    assert jane.create({'email': 'other@example.com'}) is False

    empty = make_subscriber('nobody@example.com')
    assert empty.create({}) is False
    assert empty.create({'email': 'broken'}) is False
    assert recorded == []


def test_create_with_existing_email_updates_it(jane, store, make_subscriber):
    other = make_subscriber('jane@example.com')
    other.ID = 0  # stale object that never saw the row

    assert other.create({'email': 'jane@example.com', 'first_name': 'Janet'}) == jane.ID
    assert store.count() == 1
    assert store.get(jane.ID)['first_name'] == 'Janet'


# ---------------------------------------------------------------------------
# update
# ---------------------------------------------------------------------------

def test_update_refreshes_attributes_and_fires_events(jane, recorded):
    assert jane.update({'status': 'subscribed', 'unknown': 1}) is True
    assert jane.status == 'subscribed'

    assert [name for name, _ in recorded] == ['subscriber_pre_update', 'subscriber_post_update']
    pre = recorded[0][1]
    assert pre['subscriber_id'] == jane.ID
    assert pre['data'] == {'status': 'subscribed'}
    assert recorded[1][1]['updated'] is True


def test_update_without_data(jane, recorded):
    assert jane.update({}) is False
    assert jane.update(None) is False
    assert recorded == []


def test_update_on_empty_subscriber_fails(make_subscriber, recorded):
    subscriber = make_subscriber('ghost@example.com')
    assert subscriber.update({'first_name': 'Ghost'}) is False
    assert recorded[-1] == ('subscriber_post_update', {
        'updated': False,
        'subscriber_id': 0,
        'data': {'first_name': 'Ghost'},
    })


# ---------------------------------------------------------------------------
# email count
# ---------------------------------------------------------------------------

def test_increase_email_count(jane, store):
    assert jane.increase_email_count() == 1
    assert jane.increase_email_count(3) == 4
    assert jane.increase_email_count('2') == 6
    assert store.get(jane.ID)['email_count'] == 6


@pytest.mark.parametrize("count", [-1, 1.5, True, 'abc', None])
def test_increase_email_count_rejects_bad_counts(jane, count, recorded):
    assert jane.increase_email_count(count) is False
    assert jane.email_count == 0
    assert recorded == []


def test_increase_email_count_events(jane, recorded):
    jane.increase_email_count(2)

    names = [name for name, _ in recorded]
    assert names[0] == 'subscriber_pre_increase_email_count'
    assert names[-1] == 'subscriber_post_increase_email_count'
    assert recorded[0][1] == {'count': 2, 'subscriber_id': jane.ID}
    assert recorded[-1][1] == {'email_count': 2, 'count': 2, 'subscriber_id': jane.ID}


# ---------------------------------------------------------------------------
# notes, lists, tags
# ---------------------------------------------------------------------------

def test_notes_default_to_empty_string(jane):
    assert jane.notes == ''
    jane.update_meta('notes', 'Met at the conference')
    assert jane.notes == 'Met at the conference'


def test_lists_and_tags(jane):
    assert jane.lists == []
    assert jane.tags == []

    assert jane.add_to_list('Newsletter')
    assert jane.add_to_list('Announcements')
    assert jane.add_to_list('Newsletter')
    assert jane.tag('vip')

    assert jane.lists == ['Announcements', 'Newsletter']
    assert jane.tags == ['vip']
    assert jane.is_on_list('Newsletter')
    assert not jane.is_on_list('vip')
    assert jane.has_tag('vip')


def test_empty_subscriber_has_no_terms(make_subscriber):
    subscriber = make_subscriber('nobody@example.com')
    assert subscriber.lists == []
    assert subscriber.add_to_list('Newsletter') is False
    assert subscriber.tag('vip') is False


def test_meta_helpers(jane):
    assert jane.add_meta('source', 'landing-page')
    assert jane.add_meta('source', 'again', unique=True) is False
    assert jane.get_meta('source') == 'landing-page'
    assert jane.delete_meta('source')
    assert jane.get_meta('source') == ''


def test_without_meta_or_term_stores(store):
    store.add({'email': 'bare@example.com'})
    subscriber = Subscriber('bare@example.com', store)

    assert subscriber.ID > 0
    assert subscriber.notes == ''
    assert subscriber.lists == []
    assert subscriber.get_meta() == {}
    assert subscriber.add_meta('k', 'v') is False


@pytest.mark.parametrize("bad_email", ['not-an-email', '', '   ', '12'])
def test_update_never_blanks_the_email(jane, store, recorded, bad_email):
    assert jane.update({'email': bad_email}) is False
    assert recorded == []
    assert store.get(jane.ID)['email'] == 'jane@example.com'
    assert jane.email == 'jane@example.com'


def test_update_drops_invalid_email_but_keeps_other_fields(jane, store):
    assert jane.update({'email': 'broken', 'first_name': 'Janet'}) is True

    row = store.get(jane.ID)
    assert row['email'] == 'jane@example.com'
    assert row['first_name'] == 'Janet'
