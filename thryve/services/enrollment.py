from datetime import datetime
from sqlalchemy import or_
import logging

from .. import db
from ..errors import InvalidArgument, NotFound, Forbidden
from ..models.course import Course
from ..models.enrollment import Enrollment, PaymentStatus
from ..utils.dates import utcnow

logger = logging.getLogger(__name__)

# request key -> model attribute
FORM_FIELDS = {
    'studentName': 'student_name',
    'email': 'email',
    'dateOfBirth': 'date_of_birth',
    'address': 'address',
    'cityStateZip': 'city_state_zip',
    'phoneHome': 'phone_home',
    'phoneCell': 'phone_cell',
    'socialSecurity': 'social_security',
    'stateId': 'state_id',
    'emergencyContact': 'emergency_contact',
    'emergencyRelationship': 'emergency_relationship',
    'emergencyPhone': 'emergency_phone',
    'studentSignature': 'student_signature',
    'directorSignature': 'director_signature',
    'guardianSignature': 'guardian_signature',
}

DATE_FIELDS = {
    'studentSignatureDate': 'student_signature_date',
    'directorSignatureDate': 'director_signature_date',
    'guardianSignatureDate': 'guardian_signature_date',
}


def _parse_datetime(key, value):
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00')).replace(tzinfo=None)
    except ValueError:
        raise InvalidArgument(f"{key} must be an ISO 8601 date")


def create_enrollment(user, data):
    """Store an enrollment form submission as a PENDING enrollment."""
    if not isinstance(data, dict):
        raise InvalidArgument('Invalid enrollment data')

    course_id = data.get('courseId')
    if course_id is not None:
        course = db.session.get(Course, course_id)
        if not course:
            raise NotFound('Course not found')
        if not course.is_active:
            raise InvalidArgument('Course is not open for enrollment')

    enrollment = Enrollment(
        user_id=user.id if user else None,
        course_id=course_id,
        payment_status=PaymentStatus.PENDING,
    )
    for key, attribute in FORM_FIELDS.items():
        value = data.get(key)
        setattr(enrollment, attribute, value.strip() if isinstance(value, str) else value)
    for key, attribute in DATE_FIELDS.items():
        setattr(enrollment, attribute, _parse_datetime(key, data.get(key)))

    if user:
        enrollment.email = enrollment.email or user.email
        enrollment.student_signature = enrollment.student_signature or user.name or 'Electronic Signature'
    enrollment.student_signature_date = enrollment.student_signature_date or utcnow()
    enrollment.director_signature = enrollment.director_signature or 'Pending Review'
    enrollment.director_signature_date = enrollment.director_signature_date or utcnow()

    if not enrollment.student_name:
        raise InvalidArgument('Student name is required')
    if not enrollment.email:
        raise InvalidArgument('Email is required')

    db.session.add(enrollment)
    db.session.commit()
    logger.info(f"Enrollment {enrollment.id} created for course {course_id} (user {enrollment.user_id})")
    return enrollment


def get_enrollment(enrollment_id):
    enrollment = db.session.get(Enrollment, enrollment_id)
    if not enrollment:
        raise NotFound('Enrollment not found')
    return enrollment


def get_viewable_enrollment(user, enrollment_id):
    enrollment = get_enrollment(enrollment_id)
    if not user.is_admin and enrollment.user_id != user.id:
        raise Forbidden('You do not have access to this enrollment')
    return enrollment


def enrollment_status(user, course_id):
    """Whether the user has submitted an enrollment form for a course"""
    enrollment = (Enrollment.query
                  .filter_by(user_id=user.id, course_id=course_id)
                  .order_by(Enrollment.created_at.desc(), Enrollment.id.desc())
                  .first())
    return {
        'completed': enrollment is not None,
        'enrollmentId': enrollment.id if enrollment else None,
        'paymentStatus': enrollment.payment_status.value if enrollment else None,
    }


def get_user_enrollments(user):
    """Paid enrollments linked to the user by id or email"""
    return (Enrollment.query
            .filter(or_(Enrollment.user_id == user.id, Enrollment.email == user.email),
                    Enrollment.payment_status == PaymentStatus.COMPLETED)
            .order_by(Enrollment.created_at.desc())
            .all())


def get_enrolled_courses(user):
    # Only the direct course link is trusted; enrollments without one are left out.
    courses = []
    seen = set()
    for enrollment in get_user_enrollments(user):
        if enrollment.course and enrollment.course_id not in seen:
            seen.add(enrollment.course_id)
            courses.append(enrollment.course)
    return courses


def is_enrolled_in_course(user, course_id):
    return (Enrollment.query
            .filter(or_(Enrollment.user_id == user.id, Enrollment.email == user.email),
                    Enrollment.course_id == course_id,
                    Enrollment.payment_status == PaymentStatus.COMPLETED)
            .first()) is not None


def list_enrollments(payment_status=None):
    query = Enrollment.query
    if payment_status:
        try:
            query = query.filter(Enrollment.payment_status == PaymentStatus(payment_status))
        except ValueError:
            raise InvalidArgument(f"Unknown payment status: {payment_status}")
    return query.order_by(Enrollment.created_at.desc()).all()


def update_payment_status(enrollment_id, payment_status, payment_amount=None, payment_id=None):
    enrollment = get_enrollment(enrollment_id)
    try:
        status = PaymentStatus(payment_status)
    except ValueError:
        raise InvalidArgument(f"Unknown payment status: {payment_status}")
    if payment_amount is not None:
        if isinstance(payment_amount, bool) or not isinstance(payment_amount, (int, float)) \
                or payment_amount < 0:
            raise InvalidArgument('Payment amount must be a non-negative number')

    enrollment.transition_to(status, payment_id=payment_id, payment_amount=payment_amount)
    db.session.commit()
    logger.info(f"Enrollment {enrollment.id} payment status set to {status.value}")
    return enrollment


def delete_enrollment(enrollment_id):
    enrollment = get_enrollment(enrollment_id)
    db.session.delete(enrollment)
    db.session.commit()
    logger.info(f"Enrollment {enrollment_id} deleted")
