import hashlib
import hmac
import json
import time

import pytest

from thryve import create_app, db
from thryve.config import TestingConfig
from thryve.models.course import Course, CourseStatus
from thryve.models.enrollment import Enrollment, PaymentStatus
from thryve.models.user import User, UserRole

PASSWORD = 'Password123'


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def outbox(app):
    return app.extensions['mailer'].outbox


@pytest.fixture
def create_user(app):
    def _create_user(email='user@example.com', name='Test User', password=PASSWORD,
                     role=UserRole.USER, **kwargs):
        with app.app_context():
            user = User(email=email, name=name, role=role, **kwargs)
            if password:
                user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id
    return _create_user


@pytest.fixture
def create_course(app):
    def _create_course(name='Phlebotomy Technician', price=500.0, status=CourseStatus.ACTIVE,
                       duration='8 weeks', **kwargs):
        with app.app_context():
            course = Course(name=name, price=price, status=status, duration=duration, **kwargs)
            db.session.add(course)
            db.session.commit()
            return course.id
    return _create_course


@pytest.fixture
def create_enrollment(app):
    def _create_enrollment(user_id, course_id, status=PaymentStatus.PENDING,
                           student_name='Jane Doe', email='user@example.com', **kwargs):
        with app.app_context():
            enrollment = Enrollment(user_id=user_id, course_id=course_id, payment_status=status,
                                    student_name=student_name, email=email, **kwargs)
            db.session.add(enrollment)
            db.session.commit()
            return enrollment.id
    return _create_enrollment


@pytest.fixture
def login(client):
    def _login(email='user@example.com', password=PASSWORD):
        response = client.post('/api/auth/login', json={'email': email, 'password': password})
        assert response.status_code == 200, response.get_json()
        return response
    return _login


@pytest.fixture
def admin(create_user, login):
    create_user(email='admin@example.com', name='Admin', role=UserRole.ADMIN)
    login('admin@example.com')


def sign_payload(payload, secret=TestingConfig.STRIPE_WEBHOOK_SECRET, timestamp=None):
    """Stripe-Signature header value for a payload, computed as Stripe does."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload}".encode('utf-8')
    signature = hmac.new(secret.encode('utf-8'), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def checkout_event(session_id, user_id, course_ids, event_type='checkout.session.completed',
                   payment_status='paid'):
    return json.dumps({
        'id': f"evt_{session_id}",
        'object': 'event',
        'type': event_type,
        'data': {
            'object': {
                'id': session_id,
                'object': 'checkout.session',
                'payment_status': payment_status,
                'metadata': {
                    'userId': str(user_id),
                    'courseIds': json.dumps(course_ids),
                },
            },
        },
    })


@pytest.fixture
def post_webhook(client):
    def _post_webhook(payload, signature=None):
        headers = {'Stripe-Signature': signature if signature is not None else sign_payload(payload)}
        return client.post('/api/webhooks/stripe', data=payload, headers=headers,
                           content_type='application/json')
    return _post_webhook


@pytest.fixture
def event_payload():
    return checkout_event


@pytest.fixture
def sign():
    return sign_payload
