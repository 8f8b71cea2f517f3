"""
Payment confirmation for Stripe Checkout sessions.

Both the webhook and the success-page verification call
``confirm_checkout``. Each enrollment moves out of PENDING through a
conditional UPDATE, so when the two paths race (or Stripe redelivers an
event) exactly one caller performs the transition and only that caller
sends the confirmation email.
"""

import json
import logging

import stripe

from .. import db
from ..errors import Forbidden, InternalError, InvalidArgument
from ..models.course import Course
from ..models.enrollment import Enrollment, PaymentStatus
from ..utils.dates import utcnow
from ..utils.mailer import EmailDeliveryError, send_payment_confirmation
from ..utils.stripe_api import StripeAPI, field
from .cart import delete_cart_items

logger = logging.getLogger(__name__)

COMPLETED_EVENTS = ('checkout.session.completed', 'checkout.session.async_payment_succeeded')
FAILED_EVENTS = ('checkout.session.async_payment_failed',)


class ConfirmationResult:
    def __init__(self, session_id):
        self.session_id = session_id
        self.completed = []
        self.already_completed = []
        self.skipped = []
        self.cart_items_deleted = 0

    def to_dict(self):
        return {
            'sessionId': self.session_id,
            'completed': [enrollment.id for enrollment in self.completed],
            'alreadyCompleted': self.already_completed,
            'skipped': self.skipped,
        }


def parse_session_metadata(checkout_session):
    """Return (user_id, course_ids) from a checkout session's metadata."""
    metadata = field(checkout_session, 'metadata')
    user_id = field(metadata, 'userId')
    raw_course_ids = field(metadata, 'courseIds')

    try:
        course_ids = json.loads(raw_course_ids) if raw_course_ids else []
        user_id = int(user_id) if user_id else None
        course_ids = [int(course_id) for course_id in course_ids]
    except (TypeError, ValueError):
        raise InvalidArgument('Invalid metadata')

    if not user_id or not course_ids:
        raise InvalidArgument('Missing metadata')
    return user_id, course_ids


def confirm_checkout(session_id, user_id, course_ids):
    """Mark the user's pending enrollments paid and empty their cart, atomically."""
    result = ConfirmationResult(session_id)

    try:
        for course_id in course_ids:
            _complete_enrollment(result, session_id, user_id, course_id)
        # Replays leave the cart alone; lines added after payment survive
        if result.completed:
            result.cart_items_deleted = delete_cart_items(user_id, course_ids)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error confirming checkout session {session_id}: {str(e)}")
        raise InternalError('Failed to process payment confirmation')

    logger.info(f"Checkout session {session_id}: completed {len(result.completed)}, "
                f"already completed {len(result.already_completed)}, "
                f"skipped {len(result.skipped)}, cart items cleared {result.cart_items_deleted}")

    for enrollment in result.completed:
        try:
            send_payment_confirmation(enrollment)
        except EmailDeliveryError as e:
            logger.error(f"Confirmation email for enrollment {enrollment.id} not sent: {str(e)}")

    return result


def _complete_enrollment(result, session_id, user_id, course_id):
    course = db.session.get(Course, course_id)
    if not course:
        logger.error(f"Course with ID {course_id} not found")
        result.skipped.append(course_id)
        return

    # This session already settled the course; a newer PENDING form is not its to take
    processed = _session_enrollment(session_id, user_id, course_id)
    if processed is not None:
        if processed.payment_status == PaymentStatus.COMPLETED:
            result.already_completed.append(processed.id)
        else:
            logger.warning(f"Enrollment {processed.id} for session {session_id} is "
                           f"{processed.payment_status.value}; not completing")
            result.skipped.append(course_id)
        return

    enrollment = _latest_pending(user_id, course_id)
    if enrollment is None:
        logger.error(f"No enrollment found for user {user_id} and course {course_id}")
        result.skipped.append(course_id)
        return

    updated = (Enrollment.query
               .filter_by(id=enrollment.id, payment_status=PaymentStatus.PENDING)
               .update({
                   Enrollment.payment_status: PaymentStatus.COMPLETED,
                   Enrollment.payment_id: session_id,
                   Enrollment.payment_amount: course.price,
                   Enrollment.payment_date: utcnow(),
               }, synchronize_session=False))

    if updated:
        db.session.refresh(enrollment)
        result.completed.append(enrollment)
    else:
        # Another request moved it out of PENDING between the read and the update
        result.already_completed.append(enrollment.id)


def _session_enrollment(session_id, user_id, course_id):
    return (Enrollment.query
            .filter_by(user_id=user_id, course_id=course_id, payment_id=session_id)
            .first())


def _latest_pending(user_id, course_id):
    return (Enrollment.query
            .filter_by(user_id=user_id, course_id=course_id,
                       payment_status=PaymentStatus.PENDING)
            .order_by(Enrollment.created_at.desc(), Enrollment.id.desc())
            .first())


def fail_checkout(session_id, user_id, course_ids):
    """Mark the user's pending enrollments for an unpaid session FAILED."""
    failed = 0
    try:
        for course_id in course_ids:
            if _session_enrollment(session_id, user_id, course_id) is not None:
                continue
            enrollment = _latest_pending(user_id, course_id)
            if enrollment is None:
                continue
            failed += (Enrollment.query
                       .filter_by(id=enrollment.id, payment_status=PaymentStatus.PENDING)
                       .update({
                           Enrollment.payment_status: PaymentStatus.FAILED,
                           Enrollment.payment_id: session_id,
                           Enrollment.payment_date: None,
                       }, synchronize_session=False))
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error failing checkout session {session_id}: {str(e)}")
        raise InternalError('Failed to process payment failure')

    logger.info(f"Checkout session {session_id}: marked {failed} enrollments FAILED")
    return failed


def handle_event(event):
    """Dispatch a verified Stripe event. Returns the response body."""
    event_type = field(event, 'type')
    checkout_session = field(field(event, 'data'), 'object')
    logger.info(f"Stripe event received: {event_type}")

    if event_type in COMPLETED_EVENTS:
        if field(checkout_session, 'payment_status') == 'unpaid':
            # Delayed payment method; async_payment_succeeded follows
            return {'received': True, 'awaitingPayment': True}
        user_id, course_ids = parse_session_metadata(checkout_session)
        result = confirm_checkout(field(checkout_session, 'id'), user_id, course_ids)
        return {'received': True, **result.to_dict()}

    if event_type in FAILED_EVENTS:
        user_id, course_ids = parse_session_metadata(checkout_session)
        failed = fail_checkout(field(checkout_session, 'id'), user_id, course_ids)
        return {'received': True, 'failed': failed}

    return {'received': True}


def verify_checkout_session(user, session_id):
    """Success-page check: confirm a paid session belonging to the signed-in user.

    Returns (verified, result); result is None when the session is not paid.
    """
    try:
        checkout_session = StripeAPI().retrieve_checkout_session(session_id)
    except stripe.StripeError as e:
        logger.error(f"Error retrieving checkout session {session_id}: {str(e)}")
        raise InternalError('Failed to verify payment')

    if field(checkout_session, 'payment_status') != 'paid':
        logger.info(f"Checkout session {session_id} is not paid yet")
        return False, None

    user_id, course_ids = parse_session_metadata(checkout_session)
    if user_id != user.id:
        raise Forbidden('Checkout session belongs to another user')

    return True, confirm_checkout(field(checkout_session, 'id', session_id), user_id, course_ids)
