import pytest

from thryve import db
from thryve.models.course import Course, CourseStatus
from thryve.models.enrollment import PaymentStatus
from thryve.models.user import User
from thryve.utils.mailer import EmailDeliveryError, Mailer


def test_admin_routes_require_admin(client, create_user, login):
    assert client.get('/api/admin/dashboard').status_code == 401

    create_user()
    login()
    response = client.get('/api/admin/dashboard')
    assert response.status_code == 403
    assert response.get_json() == {'error': 'Admin access required'}


def test_dashboard(client, admin, create_user, create_course, create_enrollment):
    user_id = create_user()
    a = create_course(name='Course A', price=500.0)
    b = create_course(name='Course B', price=300.0)
    create_enrollment(user_id, a, status=PaymentStatus.COMPLETED, payment_id='cs_1',
                      payment_amount=500.0)
    create_enrollment(user_id, b, status=PaymentStatus.COMPLETED, payment_id='cs_1',
                      payment_amount=300.0)
    create_enrollment(user_id, b)

    body = client.get('/api/admin/dashboard').get_json()
    assert body['counts']['users'] == 2
    assert body['counts']['courses'] == 2
    assert body['counts']['enrollments'] == 3
    assert body['usersByRole'] == {'ADMIN': 1, 'USER': 1}
    assert body['payments'] == {'completed': 2, 'pending': 1, 'failed': 0}
    assert body['totalRevenue'] == 800.0
    assert len(body['recentTransactions']) == 2


def test_revenue_by_month(app, client, admin, create_user, create_course, create_enrollment):
    from datetime import datetime

    user_id = create_user()
    course_id = create_course()
    create_enrollment(user_id, course_id, status=PaymentStatus.COMPLETED, payment_id='cs_1',
                      payment_amount=500.0, payment_date=datetime(2024, 3, 15))

    months = client.get('/api/admin/revenue?year=2024').get_json()
    assert len(months) == 12
    assert months[2] == {'month': 'Mar', 'revenue': 500.0}
    assert sum(month['revenue'] for month in months) == 500.0


def test_course_crud(app, client, admin):
    response = client.post('/api/admin/courses', json={'name': 'CNA', 'price': 1200, 'duration': '6 weeks'})
    assert response.status_code == 201
    course = response.get_json()
    assert course['status'] == 'DRAFT'

    response = client.put(f"/api/admin/courses/{course['id']}", json={'status': 'ACTIVE'})
    assert response.get_json()['status'] == 'ACTIVE'
    assert [c['name'] for c in client.get('/api/courses').get_json()] == ['CNA']

    assert client.post('/api/admin/courses', json={'price': 10}).status_code == 400
    assert client.post('/api/admin/courses', json={'name': 'X', 'price': -1}).status_code == 400
    assert client.put(f"/api/admin/courses/{course['id']}", json={'status': 'ARCHIVED'}).status_code == 400

    response = client.delete(f"/api/admin/courses/{course['id']}")
    assert response.get_json() == {'success': True, 'deleted': True}
    with app.app_context():
        assert Course.query.count() == 0


def test_deleting_course_with_enrollments_hides_it(app, client, admin, create_user, create_course,
                                                   create_enrollment):
    course_id = create_course()
    create_enrollment(create_user(), course_id)

    response = client.delete(f'/api/admin/courses/{course_id}')
    assert response.get_json() == {'success': True, 'deleted': False}
    with app.app_context():
        assert db.session.get(Course, course_id).status == CourseStatus.DRAFT


def test_user_crud(app, client, admin):
    response = client.post('/api/admin/users', json={
        'name': 'Staff', 'email': 'staff@example.com', 'password': 'Password123', 'role': 'ADMIN'})
    assert response.status_code == 201
    staff = response.get_json()
    assert staff['role'] == 'ADMIN'

    response = client.put(f"/api/admin/users/{staff['id']}", json={'role': 'USER'})
    assert response.get_json()['role'] == 'USER'

    assert client.post('/api/admin/users', json={
        'email': 'staff@example.com', 'password': 'Password123'}).status_code == 409

    assert client.delete(f"/api/admin/users/{staff['id']}").get_json() == {'success': True}
    with app.app_context():
        assert db.session.get(User, staff['id']).is_deleted is True

    emails = [user['email'] for user in client.get('/api/admin/users').get_json()]
    assert 'staff@example.com' not in emails
    emails = [user['email'] for user in client.get('/api/admin/users?includeDeleted=true').get_json()]
    assert 'staff@example.com' in emails


def test_admin_cannot_delete_self(app, client, admin):
    with app.app_context():
        admin_id = User.query.filter_by(email='admin@example.com').one().id
    assert client.delete(f'/api/admin/users/{admin_id}').status_code == 400


def test_enrollment_management(client, admin, create_user, create_course, create_enrollment):
    user_id = create_user()
    enrollment_id = create_enrollment(user_id, create_course())

    listed = client.get('/api/admin/enrollments?status=PENDING').get_json()
    assert [e['id'] for e in listed] == [enrollment_id]
    assert client.get('/api/admin/enrollments?status=BOGUS').status_code == 400

    response = client.put(f'/api/admin/enrollments/{enrollment_id}/payment-status',
                          json={'paymentStatus': 'COMPLETED', 'paymentAmount': 500.0})
    assert response.status_code == 200
    body = response.get_json()
    assert body['paymentStatus'] == 'COMPLETED'
    assert body['paymentDate'] is not None

    response = client.put(f'/api/admin/enrollments/{enrollment_id}/payment-status',
                          json={'paymentStatus': 'PENDING'})
    assert response.status_code == 400

    assert client.get(f'/api/admin/enrollments/{enrollment_id}').status_code == 200
    assert client.delete(f'/api/admin/enrollments/{enrollment_id}').get_json() == {'success': True}
    assert client.get(f'/api/admin/enrollments/{enrollment_id}').status_code == 404


def test_failed_payment_has_no_date(client, admin, create_user, create_course, create_enrollment):
    enrollment_id = create_enrollment(create_user(), create_course())

    response = client.put(f'/api/admin/enrollments/{enrollment_id}/payment-status',
                          json={'paymentStatus': 'FAILED'})
    assert response.get_json()['paymentStatus'] == 'FAILED'
    assert response.get_json()['paymentDate'] is None


def test_send_email(client, admin, outbox):
    response = client.post('/api/admin/send-email', json={
        'emailAddresses': ['a@example.com', 'b@example.com'],
        'subject': 'Schedule update',
        'content': 'Class starts **Monday**.',
    })
    assert response.status_code == 200
    assert response.get_json()['sent'] == ['a@example.com', 'b@example.com']
    assert len(outbox) == 2
    assert '<strong>Monday</strong>' in outbox[0]['htmlContent']


def test_send_email_validation(client, admin):
    response = client.post('/api/admin/send-email', json={'subject': 'Hi', 'content': 'x'})
    assert response.status_code == 400
    assert response.get_json() == {'error': 'Email addresses are required'}

    response = client.post('/api/admin/send-email', json={'emailAddresses': ['a@example.com']})
    assert response.status_code == 400
    assert response.get_json() == {'error': 'Subject and content are required'}


@pytest.mark.parametrize('failing, status', [({'b@example.com'}, 207),
                                             ({'a@example.com', 'b@example.com'}, 500)])
def test_send_email_partial_failure(client, admin, monkeypatch, failing, status):
    original_send = Mailer.send

    def flaky_send(self, to, subject, html, text=None):
        if to in failing:
            raise EmailDeliveryError(f"Failed to send email to {to}")
        return original_send(self, to, subject, html, text)

    monkeypatch.setattr(Mailer, 'send', flaky_send)

    response = client.post('/api/admin/send-email', json={
        'emailAddresses': ['a@example.com', 'b@example.com'], 'subject': 'Hi', 'content': 'x'})
    assert response.status_code == status
    assert len(response.get_json()['failures']) == len(failing)
