from flask import Blueprint, jsonify
from flask_login import current_user
import logging

from ..services.courses import list_active_courses, get_active_course
from ..services.enrollment import is_enrolled_in_course

logger = logging.getLogger(__name__)

courses_bp = Blueprint('courses', __name__)

@courses_bp.route('', methods=['GET'])
def index():
    """Display the active course catalog"""
    courses = list_active_courses()
    logger.info(f"Successfully fetched {len(courses)} courses")
    return jsonify([course.to_dict() for course in courses])

@courses_bp.route('/<int:course_id>', methods=['GET'])
def detail(course_id):
    """Display course details, with enrollment state for signed-in users"""
    course = get_active_course(course_id)

    body = course.to_dict()
    body['isEnrolled'] = False
    if current_user.is_authenticated:
        body['isEnrolled'] = is_enrolled_in_course(current_user, course.id)
        logger.info(f"User {current_user.id} enrollment status for {course.id}: {body['isEnrolled']}")
    return jsonify(body)
