from flask import Blueprint, request, jsonify, make_response
from flask_login import login_required, current_user
import logging

from ..services import enrollment as enrollment_service
from ..utils.pdf import generate_enrollment_pdf, enrollment_pdf_filename

logger = logging.getLogger(__name__)

enrollment_bp = Blueprint('enrollment', __name__)

@enrollment_bp.route('/enrollments', methods=['POST'])
@login_required
def create():
    """Submit an enrollment form for a course"""
    data = request.get_json(silent=True)
    enrollment = enrollment_service.create_enrollment(current_user, data)
    return jsonify(enrollment.to_dict()), 201

@enrollment_bp.route('/enrollments', methods=['GET'])
@login_required
def my_enrollments():
    enrollments = enrollment_service.get_user_enrollments(current_user)
    return jsonify([enrollment.to_dict() for enrollment in enrollments])

@enrollment_bp.route('/enrollments/courses', methods=['GET'])
@login_required
def my_courses():
    courses = enrollment_service.get_enrolled_courses(current_user)
    return jsonify([course.to_dict() for course in courses])

@enrollment_bp.route('/enrollment/status', methods=['GET'])
@login_required
def status():
    """Has the signed-in user filled the form for this course?"""
    course_id = request.args.get('courseId', type=int)
    if not course_id:
        return jsonify({'error': 'Course ID is required'}), 400
    return jsonify(enrollment_service.enrollment_status(current_user, course_id))

@enrollment_bp.route('/view-pdf/<int:enrollment_id>', methods=['GET'])
@login_required
def view_pdf(enrollment_id):
    """Stream the filled enrollment agreement"""
    enrollment = enrollment_service.get_viewable_enrollment(current_user, enrollment_id)

    try:
        pdf_bytes = generate_enrollment_pdf(enrollment)
    except FileNotFoundError as e:
        logger.error(f"Error generating PDF for enrollment {enrollment_id}: {str(e)}")
        return jsonify({'error': 'Enrollment form template is unavailable'}), 500

    response = make_response(pdf_bytes)
    response.headers['Content-Type'] = 'application/pdf'
    response.headers['Content-Disposition'] = f'inline; filename="{enrollment_pdf_filename(enrollment)}"'
    response.headers['Cache-Control'] = 'no-store, no-cache, must-revalidate, max-age=0'
    response.headers['Pragma'] = 'no-cache'
    response.headers['Expires'] = '0'
    return response
