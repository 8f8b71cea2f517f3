from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user, logout_user
import logging

from ..services.users import update_user, soft_delete_user

logger = logging.getLogger(__name__)

user_bp = Blueprint('user', __name__)

@user_bp.route('', methods=['GET'])
@login_required
def profile():
    return jsonify(current_user.to_dict())

@user_bp.route('', methods=['PUT'])
@login_required
def update_profile():
    data = request.get_json(silent=True) or {}
    # Only admins may change roles, their own included
    user = update_user(current_user, data, allow_role_change=current_user.is_admin)
    logger.info(f"User {user.id} updated their profile")
    return jsonify(user.to_dict())

@user_bp.route('/delete', methods=['POST'])
@login_required
def delete_account():
    """Soft-delete the signed-in account and end the session"""
    user_id = current_user.id
    soft_delete_user(current_user)
    logout_user()
    logger.info(f"User {user_id} deleted their account")
    return jsonify({'success': True})
