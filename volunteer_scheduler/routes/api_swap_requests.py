"""
Swap Requests API Blueprint

PUT and PATCH share one handler: a body ``status`` of approved/rejected
resolves the request, anything else edits a pending request.
"""
from flask import Blueprint, jsonify, request

from volunteer_scheduler.error_handlers import handle_errors, with_db_transaction
from volunteer_scheduler.routes import swap_service
from volunteer_scheduler.utils.validators import get_json_body, optional_int_arg

swap_requests_api_bp = Blueprint('swap_requests_api', __name__, url_prefix='/api/swap-requests')


@swap_requests_api_bp.route('', methods=['GET'])
@handle_errors
def list_swap_requests():
    """List swap requests, newest first, filtered by ?requesterId=&status="""
    swaps = swap_service().list_swap_requests(
        requester_id=optional_int_arg('requesterId'),
        status=request.args.get('status'),
    )
    return jsonify([s.to_dict() for s in swaps])


@swap_requests_api_bp.route('', methods=['POST'])
@handle_errors
@with_db_transaction
def create_swap_request():
    swap = swap_service().create_swap_request(get_json_body())
    return jsonify(swap.to_dict()), 201


@swap_requests_api_bp.route('/<int:swap_id>', methods=['GET'])
@handle_errors
def get_swap_request(swap_id):
    return jsonify(swap_service().get_swap_request(swap_id).to_dict())


@swap_requests_api_bp.route('/<int:swap_id>', methods=['PUT', 'PATCH'])
@handle_errors
@with_db_transaction
def update_swap_request(swap_id):
    """
    Approve, reject or edit a swap request.

    Returns:
        200: Updated swap request
        400: Bad status or fields
        404: Unknown swap request
        409: Request already resolved (or replacement double-booked when
             approval conflict checks are enabled)
    """
    swap = swap_service().update_swap_request(swap_id, get_json_body())
    return jsonify(swap.to_dict())


@swap_requests_api_bp.route('/<int:swap_id>', methods=['DELETE'])
@handle_errors
@with_db_transaction
def delete_swap_request(swap_id):
    swap_service().delete_swap_request(swap_id)
    return '', 204
