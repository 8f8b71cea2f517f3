import logging

from .. import db
from ..errors import InvalidArgument, NotFound
from ..models.cart import CartItem
from ..models.course import Course, CourseStatus

logger = logging.getLogger(__name__)

# request key -> model attribute
COURSE_FIELDS = {
    'name': 'name',
    'duration': 'duration',
    'price': 'price',
    'description': 'description',
    'classroom': 'classroom',
    'lab': 'lab',
    'clinic': 'clinic',
    'whoShouldAttend': 'who_should_attend',
    'programHighlights': 'program_highlights',
    'note': 'note',
    'status': 'status',
}


def list_active_courses():
    return (Course.query
            .filter(Course.status == CourseStatus.ACTIVE)
            .order_by(Course.created_at.desc(), Course.id.desc())
            .all())


def get_active_course(course_id):
    course = db.session.get(Course, course_id)
    if not course or not course.is_active:
        raise NotFound('Course not found')
    return course


def list_courses():
    return Course.query.order_by(Course.name.asc()).all()


def get_course(course_id):
    course = db.session.get(Course, course_id)
    if not course:
        raise NotFound('Course not found')
    return course


def _apply(course, data, partial):
    for key, attribute in COURSE_FIELDS.items():
        if key not in data:
            continue
        value = data[key]
        if key == 'price':
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise InvalidArgument('Price must be a non-negative number')
            value = float(value)
        elif key == 'status':
            try:
                value = CourseStatus(value)
            except ValueError:
                raise InvalidArgument(f"Unknown course status: {value}")
        setattr(course, attribute, value)

    if not partial or 'name' in data:
        if not course.name or not str(course.name).strip():
            raise InvalidArgument('Course name is required')


def create_course(data):
    course = Course(status=CourseStatus.DRAFT, price=0.0)
    _apply(course, data, partial=False)
    db.session.add(course)
    db.session.commit()
    logger.info(f"Course {course.id} created: {course.name}")
    return course


def update_course(course_id, data):
    course = get_course(course_id)
    _apply(course, data, partial=True)
    db.session.commit()
    logger.info(f"Course {course.id} updated")
    return course


def delete_course(course_id):
    course = get_course(course_id)
    if course.enrollments:
        # Keep payment history intact; hide the course instead
        course.status = CourseStatus.DRAFT
        db.session.commit()
        logger.info(f"Course {course.id} has enrollments; moved to DRAFT instead of deleting")
        return False

    CartItem.query.filter_by(course_id=course.id).delete(synchronize_session=False)
    db.session.delete(course)
    db.session.commit()
    logger.info(f"Course {course_id} deleted")
    return True
