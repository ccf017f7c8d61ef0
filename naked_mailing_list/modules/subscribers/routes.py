"""
Subscribers Routes
==================

Admin (session auth required):
- GET    /admin/subscribers            -- filtered, paginated listing + total
- GET    /admin/subscribers/<id>       -- one subscriber with notes, lists, tags
- POST   /admin/subscribers            -- save (create when subscriber_id is empty)
- DELETE /admin/subscribers/<id>       -- delete with meta and list/tag membership

Public:
- POST   /api/subscribers              -- signup (status 'pending')
"""

import logging
from functools import wraps

from flask import request, jsonify, session, current_app
from flask_cors import cross_origin

from ...core.utils import is_email
from . import subscribers_admin_bp, subscribers_bp

logger = logging.getLogger(__name__)

LIST_FILTERS = ('email', 'first_name', 'last_name', 'orderby', 'order', 'number', 'offset')


def _extension():
    return current_app.extensions['naked_mailing_list']


def require_admin(f):
    """Decorator to require admin login"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'admin_id' not in session:
            return jsonify({'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function


def _subscriber_payload(subscriber):
    data = subscriber.to_dict()
    data['notes'] = subscriber.notes
    data['lists'] = subscriber.lists
    data['tags'] = subscriber.tags
    return data


# ===================
# ADMIN API
# ===================

@subscribers_admin_bp.route('', methods=['GET'])
@require_admin
def list_subscribers():
    """List subscribers. ``status`` may be repeated to match several statuses."""
    args = {key: request.args[key] for key in LIST_FILTERS if request.args.get(key)}

    statuses = request.args.getlist('status')
    if statuses:
        args['status'] = statuses if len(statuses) > 1 else statuses[0]

    ids = request.args.getlist('ID')
    if ids:
        args['ID'] = ids

    store = _extension().subscriber_store
    subscribers = store.get_subscribers(args)

    return jsonify({
        'subscribers': subscribers,
        'total': store.count(args),
    }), 200


@subscribers_admin_bp.route('/<int:subscriber_id>', methods=['GET'])
@require_admin
def get_subscriber(subscriber_id):
    subscriber = _extension().subscribers.get_subscriber(subscriber_id)
    if not subscriber.ID:
        return jsonify({'error': 'Subscriber not found'}), 404
    return jsonify(_subscriber_payload(subscriber)), 200


@subscribers_admin_bp.route('', methods=['POST'])
@require_admin
def save_subscriber():
    """Create or update a subscriber from the admin edit form"""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'No data provided'}), 400

    subscriber_id = data.get('subscriber_id') or 0

    sub_data = {'ID': subscriber_id}
    for field in ('email', 'first_name', 'last_name', 'status', 'notes', 'lists', 'tags'):
        if field in data:
            sub_data[field] = data[field]

    # Omit IP address if manually adding the subscriber.
    if not subscriber_id:
        sub_data['ip'] = ''

    new_sub_id = _extension().subscribers.insert_subscriber(sub_data)

    if not new_sub_id:
        return jsonify({'error': 'An error occurred while inserting the subscriber.'}), 400

    logger.info(f"Subscriber {new_sub_id} saved from admin")
    return jsonify({
        'message': 'subscriber-updated',
        'ID': new_sub_id,
    }), 200 if subscriber_id else 201


@subscribers_admin_bp.route('/<int:subscriber_id>', methods=['DELETE'])
@require_admin
def delete_subscriber(subscriber_id):
    if not _extension().subscribers.delete_subscriber(subscriber_id):
        return jsonify({'error': 'Subscriber not found'}), 404
    return jsonify({'message': 'Subscriber deleted'}), 200


# ===================
# PUBLIC API
# ===================

@subscribers_bp.route('', methods=['POST', 'OPTIONS'])
@cross_origin()
def subscribe():
    """Handle new subscription requests"""
    data = request.get_json(silent=True)

    if not data or not data.get('email'):
        return jsonify({'error': 'Email address is required'}), 400

    email = str(data['email']).strip()
    if not is_email(email):
        return jsonify({'error': 'Please enter a valid email address'}), 400

    ext = _extension()
    existed = ext.subscriber_store.exists(email)

    sub_data = {'email': email}
    for field in ('first_name', 'last_name'):
        if data.get(field):
            sub_data[field] = data[field]

    subscriber_id = ext.subscribers.insert_subscriber(sub_data)
    if not subscriber_id:
        logger.error(f"Signup failed for {email}")
        return jsonify({'error': 'An unexpected error occurred'}), 500

    if existed:
        return jsonify({'message': 'You are already subscribed!', 'ID': subscriber_id}), 200

    logger.info(f"New subscription added: {email}")
    return jsonify({'message': 'Successfully subscribed!', 'ID': subscriber_id}), 201
