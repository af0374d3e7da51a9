"""
Notifications API Blueprint
Creating, reading and dismissing in-app notifications
"""
from flask import Blueprint, jsonify, current_app

from volunteer_scheduler.error_handlers import (
    ResourceNotFoundException,
    handle_errors,
    with_db_transaction,
)
from volunteer_scheduler.models import get_models
from volunteer_scheduler.services.notification_service import NotificationService
from volunteer_scheduler.utils.validators import FieldErrors, get_json_body

notifications_api_bp = Blueprint('notifications_api', __name__, url_prefix='/api/notifications')

NOTIFICATION_TYPES = ('conflict', 'swap_request', 'reminder')


def _service():
    db = current_app.extensions['sqlalchemy']
    return NotificationService(db.session, get_models())


def _get_notification(notification_id):
    db = current_app.extensions['sqlalchemy']
    notification = db.session.get(get_models()['Notification'], notification_id)
    if notification is None:
        raise ResourceNotFoundException(f"Notification {notification_id} not found")
    return notification


@notifications_api_bp.route('', methods=['POST'])
@handle_errors
@with_db_transaction
def create_notification():
    db = current_app.extensions['sqlalchemy']
    fields = FieldErrors(get_json_body())
    user_id = fields.integer('userId', required=True)
    type_ = fields.choice('type', NOTIFICATION_TYPES, required=True)
    title = fields.string('title', required=True, max_length=200)
    message = fields.string('message', required=True)
    related_id = fields.integer('relatedId')
    fields.raise_if_any()

    if db.session.get(get_models()['User'], user_id) is None:
        fields.add('userId', f'User {user_id} not found')
    fields.raise_if_any()

    notification = _service().notify(user_id, type_, title, message, related_id)
    db.session.flush()
    return jsonify(notification.to_dict()), 201


@notifications_api_bp.route('/<int:notification_id>/read', methods=['PATCH'])
@handle_errors
@with_db_transaction
def mark_notification_read(notification_id):
    _get_notification(notification_id)
    notification = _service().mark_read(notification_id)
    return jsonify(notification.to_dict())


@notifications_api_bp.route('/<int:notification_id>', methods=['DELETE'])
@handle_errors
@with_db_transaction
def delete_notification(notification_id):
    db = current_app.extensions['sqlalchemy']
    db.session.delete(_get_notification(notification_id))
    return '', 204
