from thryve import db
from thryve.models.cart import Cart
from thryve.models.course import CourseStatus
from thryve.models.enrollment import Enrollment, PaymentStatus
from thryve.models.user import User
from thryve.services import cart as cart_service


def test_cart_requires_login(client):
    response = client.get('/api/cart')
    assert response.status_code == 401
    assert response.get_json() == {'error': 'Unauthorized'}


def test_count_is_zero_for_anonymous(client):
    response = client.get('/api/cart/count')
    assert response.status_code == 200
    assert response.get_json() == {'count': 0}


def test_empty_cart(client, create_user, login):
    create_user()
    login()

    response = client.get('/api/cart')
    assert response.status_code == 200
    body = response.get_json()
    assert body['items'] == []
    assert body['total'] == 0


def test_adding_same_course_twice_increments_quantity(client, create_user, create_course, login):
    create_user()
    course_id = create_course(price=500.0)
    login()

    first = client.post('/api/cart', json={'courseId': course_id}).get_json()
    second = client.post('/api/cart', json={'courseId': course_id}).get_json()

    assert first['id'] == second['id']
    assert second['quantity'] == 2
    assert second['course']['name'] == 'Phlebotomy Technician'

    body = client.get('/api/cart').get_json()
    assert len(body['items']) == 1
    assert body['total'] == 1000.0
    assert client.get('/api/cart/count').get_json() == {'count': 2}


def test_add_validation(client, create_user, create_course, login):
    create_user()
    draft_id = create_course(name='Coming Soon', status=CourseStatus.DRAFT)
    login()

    response = client.post('/api/cart', json={})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Course ID is required'

    response = client.post('/api/cart', json={'courseId': 9999})
    assert response.status_code == 404

    response = client.post('/api/cart', json={'courseId': draft_id})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Course is not available for purchase'


def test_total_sums_price_times_quantity(client, create_user, create_course, login):
    create_user()
    a = create_course(name='Course A', price=500.0)
    b = create_course(name='Course B', price=300.0)
    login()

    client.post('/api/cart', json={'courseId': a})
    item_b = client.post('/api/cart', json={'courseId': b}).get_json()
    response = client.put('/api/cart', json={'cartItemId': item_b['id'], 'quantity': 2})
    assert response.status_code == 200
    assert response.get_json()['quantity'] == 2

    assert client.get('/api/cart').get_json()['total'] == 1100.0


def test_update_validation(client, create_user, create_course, login):
    create_user()
    course_id = create_course()
    login()
    item = client.post('/api/cart', json={'courseId': course_id}).get_json()

    response = client.put('/api/cart', json={'cartItemId': item['id']})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Cart item ID and quantity are required'

    response = client.put('/api/cart', json={'cartItemId': item['id'], 'quantity': -1})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Quantity cannot be negative'

    response = client.put('/api/cart', json={'cartItemId': item['id'], 'quantity': 'two'})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Quantity must be an integer'


def test_quantity_zero_and_remove_converge(app, client, create_user, create_course,
                                           create_enrollment, login):
    user_id = create_user()
    a = create_course(name='Course A')
    b = create_course(name='Course B')
    create_enrollment(user_id, a)
    create_enrollment(user_id, b)
    login()

    item_a = client.post('/api/cart', json={'courseId': a}).get_json()
    item_b = client.post('/api/cart', json={'courseId': b}).get_json()

    response = client.put('/api/cart', json={'cartItemId': item_a['id'], 'quantity': 0})
    assert response.get_json() == {'success': True, 'removed': True}

    response = client.delete('/api/cart', json={'cartItemId': item_b['id']})
    assert response.get_json() == {'success': True}

    assert client.get('/api/cart').get_json()['items'] == []
    with app.app_context():
        assert Enrollment.query.filter_by(user_id=user_id).count() == 0


def test_remove_keeps_completed_enrollments(app, client, create_user, create_course,
                                            create_enrollment, login):
    user_id = create_user()
    course_id = create_course()
    completed_id = create_enrollment(user_id, course_id, status=PaymentStatus.COMPLETED,
                                     payment_id='cs_old', payment_amount=500.0)
    login()

    item = client.post('/api/cart', json={'courseId': course_id}).get_json()
    client.delete('/api/cart', json={'cartItemId': item['id']})

    with app.app_context():
        assert db.session.get(Enrollment, completed_id) is not None


def test_delete_requires_item_id(client, create_user, login):
    create_user()
    login()
    response = client.delete('/api/cart', json={})
    assert response.status_code == 400


def test_cannot_touch_another_users_cart_item(client, create_user, create_course, login):
    create_user()
    create_user(email='other@example.com')
    course_id = create_course()

    login('other@example.com')
    item = client.post('/api/cart', json={'courseId': course_id}).get_json()
    client.post('/api/auth/logout')

    login()
    response = client.put('/api/cart', json={'cartItemId': item['id'], 'quantity': 3})
    assert response.status_code == 404
    response = client.delete('/api/cart', json={'cartItemId': item['id']})
    assert response.status_code == 404


def test_clear_cart_drops_items_and_pending_enrollments(app, client, create_user, create_course,
                                                       create_enrollment, login):
    user_id = create_user()
    course_id = create_course()
    create_enrollment(user_id, course_id)
    login()
    client.post('/api/cart', json={'courseId': course_id})

    response = client.post('/api/cart/clear')
    assert response.get_json() == {'success': True}
    assert client.get('/api/cart/count').get_json() == {'count': 0}
    with app.app_context():
        assert Enrollment.query.filter_by(user_id=user_id).count() == 0


def test_get_cart_never_creates_a_second_cart(app, create_user):
    user_id = create_user()
    with app.app_context():
        user = db.session.get(User, user_id)
        first = cart_service.get_cart(user)
        second = cart_service.get_cart(user)
        assert first.id == second.id
        assert Cart.query.filter_by(user_id=user_id).count() == 1
        assert cart_service.get_total(first) == 0


def test_add_recovers_from_concurrent_insert(app, client, create_user, create_course, login,
                                             monkeypatch):
    create_user()
    course_id = create_course()
    login()
    client.post('/api/cart', json={'courseId': course_id})

    # Miss the existing line once, as a request racing the first insert would
    original_find = Cart.find_item
    calls = []

    def racing_find(self, course_id):
        calls.append(course_id)
        if len(calls) == 1:
            return None
        return original_find(self, course_id)

    monkeypatch.setattr(Cart, 'find_item', racing_find)

    response = client.post('/api/cart', json={'courseId': course_id})
    assert response.status_code == 200
    assert response.get_json()['quantity'] == 2
    assert len(client.get('/api/cart').get_json()['items']) == 1
