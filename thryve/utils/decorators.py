from functools import wraps
from flask import jsonify
from flask_login import current_user


def admin_required(view):
    """Allow only authenticated, non-deleted ADMIN users."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({'error': 'Unauthorized'}), 401
        if not current_user.is_admin:
            return jsonify({'error': 'Admin access required'}), 403
        return view(*args, **kwargs)
    return wrapper
