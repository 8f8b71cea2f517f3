from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
import logging

from ..services import cart as cart_service

logger = logging.getLogger(__name__)

cart_bp = Blueprint('cart', __name__)

@cart_bp.route('', methods=['GET'])
@login_required
def view():
    """Cart contents with courses and total"""
    cart = cart_service.get_cart(current_user)
    return jsonify(cart.to_dict())

@cart_bp.route('', methods=['POST'])
@login_required
def add():
    """Add a course to cart"""
    data = request.get_json(silent=True) or {}
    course_id = data.get('courseId')
    if not course_id:
        return jsonify({'error': 'Course ID is required'}), 400

    item = cart_service.add_item(current_user, course_id)
    return jsonify(item.to_dict())

@cart_bp.route('', methods=['PUT'])
@login_required
def update():
    """Change a line's quantity; 0 removes it"""
    data = request.get_json(silent=True) or {}
    cart_item_id = data.get('cartItemId')
    quantity = data.get('quantity')
    if not cart_item_id or quantity is None:
        return jsonify({'error': 'Cart item ID and quantity are required'}), 400

    item = cart_service.update_quantity(current_user, cart_item_id, quantity)
    if item is None:
        return jsonify({'success': True, 'removed': True})
    return jsonify(item.to_dict())

@cart_bp.route('', methods=['DELETE'])
@login_required
def remove():
    """Remove a course from cart"""
    data = request.get_json(silent=True) or {}
    cart_item_id = data.get('cartItemId') or request.args.get('cartItemId', type=int)
    if not cart_item_id:
        return jsonify({'error': 'Cart item ID is required'}), 400

    cart_service.remove_item(current_user, cart_item_id)
    return jsonify({'success': True})

@cart_bp.route('/clear', methods=['POST'])
@login_required
def clear():
    """Clear all items from cart"""
    cart_service.clear_cart(current_user)
    return jsonify({'success': True})

@cart_bp.route('/count', methods=['GET'])
def count():
    """Total quantity in the cart; 0 for anonymous visitors"""
    if not current_user.is_authenticated:
        return jsonify({'count': 0})
    try:
        return jsonify({'count': cart_service.get_count(current_user)})
    except Exception as e:
        logger.error(f"Error fetching cart count: {str(e)}")
        return jsonify({'count': 0}), 500
