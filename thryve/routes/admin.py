from flask import Blueprint, request, jsonify
from flask_login import current_user
import logging

from ..errors import InvalidArgument
from ..services import courses as course_service
from ..services import enrollment as enrollment_service
from ..services import users as user_service
from ..services.dashboard import get_dashboard_data, get_revenue_by_month
from ..utils.decorators import admin_required
from ..utils.mailer import get_mailer, render_broadcast, EmailDeliveryError

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)

@admin_bp.route('/dashboard', methods=['GET'])
@admin_required
def dashboard():
    return jsonify(get_dashboard_data())

@admin_bp.route('/revenue', methods=['GET'])
@admin_required
def revenue():
    year = request.args.get('year', type=int)
    return jsonify(get_revenue_by_month(year))

# Courses

@admin_bp.route('/courses', methods=['GET'])
@admin_required
def list_courses():
    return jsonify([course.to_dict() for course in course_service.list_courses()])

@admin_bp.route('/courses', methods=['POST'])
@admin_required
def create_course():
    course = course_service.create_course(request.get_json(silent=True) or {})
    return jsonify(course.to_dict()), 201

@admin_bp.route('/courses/<int:course_id>', methods=['PUT'])
@admin_required
def update_course(course_id):
    course = course_service.update_course(course_id, request.get_json(silent=True) or {})
    return jsonify(course.to_dict())

@admin_bp.route('/courses/<int:course_id>', methods=['DELETE'])
@admin_required
def delete_course(course_id):
    deleted = course_service.delete_course(course_id)
    return jsonify({'success': True, 'deleted': deleted})

# Users

@admin_bp.route('/users', methods=['GET'])
@admin_required
def list_users():
    include_deleted = request.args.get('includeDeleted', 'false').lower() == 'true'
    users = user_service.list_users(role=request.args.get('role'), include_deleted=include_deleted)
    return jsonify([user.to_dict() for user in users])

@admin_bp.route('/users', methods=['POST'])
@admin_required
def create_user():
    user = user_service.create_user(request.get_json(silent=True) or {})
    return jsonify(user.to_dict()), 201

@admin_bp.route('/users/<int:user_id>', methods=['PUT'])
@admin_required
def update_user(user_id):
    user = user_service.get_user(user_id)
    user = user_service.update_user(user, request.get_json(silent=True) or {}, allow_role_change=True)
    return jsonify(user.to_dict())

@admin_bp.route('/users/<int:user_id>', methods=['DELETE'])
@admin_required
def delete_user(user_id):
    if user_id == current_user.id:
        raise InvalidArgument('You cannot delete your own account from the admin area')
    user_service.soft_delete_user(user_service.get_user(user_id))
    return jsonify({'success': True})

# Enrollments

@admin_bp.route('/enrollments', methods=['GET'])
@admin_required
def list_enrollments():
    enrollments = enrollment_service.list_enrollments(request.args.get('status'))
    return jsonify([enrollment.to_dict() for enrollment in enrollments])

@admin_bp.route('/enrollments/<int:enrollment_id>', methods=['GET'])
@admin_required
def get_enrollment(enrollment_id):
    return jsonify(enrollment_service.get_enrollment(enrollment_id).to_dict())

@admin_bp.route('/enrollments/<int:enrollment_id>', methods=['DELETE'])
@admin_required
def delete_enrollment(enrollment_id):
    enrollment_service.delete_enrollment(enrollment_id)
    return jsonify({'success': True})

@admin_bp.route('/enrollments/<int:enrollment_id>/payment-status', methods=['PUT'])
@admin_required
def update_payment_status(enrollment_id):
    data = request.get_json(silent=True) or {}
    if not data.get('paymentStatus'):
        return jsonify({'error': 'Payment status is required'}), 400

    enrollment = enrollment_service.update_payment_status(
        enrollment_id,
        data['paymentStatus'],
        payment_amount=data.get('paymentAmount'),
        payment_id=data.get('paymentId'),
    )
    return jsonify(enrollment.to_dict())

# Broadcast email

@admin_bp.route('/send-email', methods=['POST'])
@admin_required
def send_email():
    """Send one message to each address; report per-recipient results"""
    data = request.get_json(silent=True) or {}
    addresses = data.get('emailAddresses')
    subject = data.get('subject')
    content = data.get('content')

    if not addresses or not isinstance(addresses, list):
        return jsonify({'error': 'Email addresses are required'}), 400
    if not subject or not content:
        return jsonify({'error': 'Subject and content are required'}), 400

    html = render_broadcast(subject, content)
    mailer = get_mailer()
    sent = []
    failures = []
    for address in addresses:
        try:
            mailer.send(address, subject, html, content)
            sent.append(address)
        except EmailDeliveryError as e:
            failures.append({'email': address, 'error': str(e)})

    logger.info(f"Broadcast '{subject}': {len(sent)}/{len(addresses)} sent")
    body = {
        'success': not failures,
        'totalAttempted': len(addresses),
        'sent': sent,
        'failures': failures,
    }
    if not sent:
        body['error'] = 'All emails failed to send'
        return jsonify(body), 500
    if failures:
        return jsonify(body), 207
    return jsonify(body)
