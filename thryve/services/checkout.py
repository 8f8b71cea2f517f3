import json
from decimal import Decimal, ROUND_HALF_UP
import logging

import stripe
from flask import current_app

from ..errors import InternalError, InvalidState
from ..models.course import Course
from ..models.enrollment import Enrollment, PaymentStatus
from ..utils.stripe_api import StripeAPI
from .cart import get_cart

logger = logging.getLogger(__name__)


def to_minor_units(price):
    """Dollars to cents, halves rounded up."""
    cents = Decimal(str(price)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_line_items(cart, currency):
    line_items = []
    for item in cart.items:
        course = item.course
        line_items.append({
            'price_data': {
                'currency': currency,
                'product_data': {
                    'name': course.name,
                    'description': f"{course.duration} course" if course.duration else course.name,
                },
                'unit_amount': to_minor_units(course.price),
            },
            'quantity': item.quantity,
        })
    return line_items


def missing_enrollment_forms(user, course_ids):
    """Cart courses without a PENDING enrollment form from this user."""
    enrolled = {
        row.course_id for row in
        Enrollment.query.with_entities(Enrollment.course_id)
        .filter(Enrollment.user_id == user.id,
                Enrollment.course_id.in_(course_ids),
                Enrollment.payment_status == PaymentStatus.PENDING)
    }
    missing_ids = [course_id for course_id in course_ids if course_id not in enrolled]
    if not missing_ids:
        return []
    return Course.query.filter(Course.id.in_(missing_ids)).order_by(Course.id).all()


def create_checkout(user):
    """Create a hosted Stripe checkout for the user's cart and return its URL.

    Nothing is written locally; enrollments change only once Stripe
    reports the payment.
    """
    cart = get_cart(user)
    if not cart.items:
        raise InvalidState('Cart is empty')

    course_ids = cart.course_ids
    missing = missing_enrollment_forms(user, course_ids)
    if missing:
        names = ', '.join(course.name for course in missing)
        raise InvalidState('Enrollment forms required', details={
            'message': f"Please complete enrollment forms for: {names}",
            'missingCourseIds': [course.id for course in missing],
            'missingCourses': [{'id': course.id, 'name': course.name} for course in missing],
        })

    line_items = build_line_items(cart, current_app.config['STRIPE_CURRENCY'])
    metadata = {
        'userId': str(user.id),
        'cartId': str(cart.id),
        'courseIds': json.dumps(course_ids),
    }

    try:
        checkout_session = StripeAPI().create_checkout_session(
            line_items=line_items,
            metadata=metadata,
            customer_email=user.email,
            client_reference_id=user.id,
        )
    except stripe.StripeError as e:
        logger.error(f"Error creating checkout session: {str(e)}")
        raise InternalError(getattr(e, 'user_message', None) or 'Failed to create checkout session')

    logger.info(f"Checkout session {checkout_session.id} created for cart {cart.id}")
    return checkout_session.url
