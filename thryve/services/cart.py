"""
Cart operations scoped to the signed-in user.

Removing a cart line (explicitly, by setting its quantity to 0, or by
clearing the cart) also drops the user's PENDING enrollments for the same
course, in the same transaction, so an abandoned cart leaves no
half-finished enrollment behind.
"""

from sqlalchemy.exc import IntegrityError
import logging

from .. import db
from ..errors import InvalidArgument, NotFound
from ..models.cart import Cart, CartItem
from ..models.course import Course
from ..models.enrollment import Enrollment, PaymentStatus

logger = logging.getLogger(__name__)


def get_cart(user):
    """Return the user's cart, creating an empty one on first access."""
    cart = Cart.query.filter_by(user_id=user.id).first()
    if cart:
        return cart

    cart = Cart(user_id=user.id)
    db.session.add(cart)
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent request created it first
        db.session.rollback()
        cart = Cart.query.filter_by(user_id=user.id).one()
    else:
        logger.info(f"Created cart {cart.id} for user {user.id}")
    return cart


def get_total(cart):
    return sum(item.course.price * item.quantity for item in cart.items)


def get_count(user):
    cart = Cart.query.filter_by(user_id=user.id).first()
    if not cart:
        return 0
    return cart.count


def add_item(user, course_id):
    course = db.session.get(Course, course_id)
    if not course:
        raise NotFound('Course not found')
    if not course.is_active:
        raise InvalidArgument('Course is not available for purchase')

    cart = get_cart(user)
    item = cart.find_item(course.id)
    if item:
        item.quantity += 1
    else:
        item = CartItem(cart_id=cart.id, course_id=course.id, quantity=1)
        db.session.add(item)

    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent request inserted the same line first
        db.session.rollback()
        item = cart.find_item(course.id)
        item.quantity += 1
        db.session.commit()
    logger.info(f"Cart {cart.id}: course {course.id} quantity is now {item.quantity}")
    return item


def update_quantity(user, cart_item_id, quantity):
    """Set a line's quantity. Returns the item, or None when quantity 0 removed it."""
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidArgument('Quantity must be an integer')
    if quantity < 0:
        raise InvalidArgument('Quantity cannot be negative')
    if quantity == 0:
        remove_item(user, cart_item_id)
        return None

    item = _get_owned_item(user, cart_item_id)
    item.quantity = quantity
    db.session.commit()
    return item


def remove_item(user, cart_item_id):
    item = _get_owned_item(user, cart_item_id)
    course_id = item.course_id
    try:
        _delete_pending_enrollments(user, [course_id])
        db.session.delete(item)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"Removed cart item {cart_item_id} (course {course_id}) for user {user.id}")


def clear_cart(user):
    cart = Cart.query.filter_by(user_id=user.id).first()
    if not cart:
        return

    course_ids = cart.course_ids
    try:
        _delete_pending_enrollments(user, course_ids)
        CartItem.query.filter_by(cart_id=cart.id).delete(synchronize_session=False)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"Cleared cart {cart.id} for user {user.id}")


def delete_cart_items(user_id, course_ids):
    """Drop the user's cart lines for the given courses without touching enrollments.

    Does not commit; callers run it inside their own transaction.
    """
    cart = Cart.query.filter_by(user_id=user_id).first()
    if not cart or not course_ids:
        return 0
    deleted = (CartItem.query
               .filter(CartItem.cart_id == cart.id, CartItem.course_id.in_(course_ids))
               .delete(synchronize_session=False))
    db.session.expire(cart, ['items'])
    return deleted


def _get_owned_item(user, cart_item_id):
    item = (CartItem.query
            .join(Cart, CartItem.cart_id == Cart.id)
            .filter(CartItem.id == cart_item_id, Cart.user_id == user.id)
            .first())
    if not item:
        raise NotFound('Cart item not found')
    return item


def _delete_pending_enrollments(user, course_ids):
    if not course_ids:
        return 0
    deleted = (Enrollment.query
               .filter(Enrollment.user_id == user.id,
                       Enrollment.course_id.in_(course_ids),
                       Enrollment.payment_status == PaymentStatus.PENDING)
               .delete(synchronize_session=False))
    if deleted:
        logger.info(f"Deleted {deleted} pending enrollments for user {user.id}")
    return deleted
