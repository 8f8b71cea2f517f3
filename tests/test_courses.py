from thryve.models.course import CourseStatus


def test_catalog_lists_active_courses_only(client, create_course):
    create_course(name='Phlebotomy Technician', price=500.0, classroom='40 hours')
    create_course(name='EKG Technician', status=CourseStatus.DRAFT)

    response = client.get('/api/courses')
    assert response.status_code == 200
    courses = response.get_json()
    assert [course['name'] for course in courses] == ['Phlebotomy Technician']
    assert courses[0]['price'] == 500.0
    assert courses[0]['classroom'] == '40 hours'
    assert courses[0]['status'] == 'ACTIVE'


def test_course_detail(client, create_course):
    course_id = create_course(description='Blood draw fundamentals')

    response = client.get(f'/api/courses/{course_id}')
    assert response.status_code == 200
    body = response.get_json()
    assert body['id'] == course_id
    assert body['description'] == 'Blood draw fundamentals'
    assert body['isEnrolled'] is False


def test_draft_and_missing_courses_are_not_found(client, create_course):
    draft_id = create_course(status=CourseStatus.DRAFT)
    assert client.get(f'/api/courses/{draft_id}').status_code == 404
    assert client.get('/api/courses/9999').status_code == 404


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json() == {'status': 'ok', 'database': 'ok'}
