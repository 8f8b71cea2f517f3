from sqlalchemy import func
import logging

from .. import db
from ..models.cart import CartItem
from ..models.course import Course
from ..models.enrollment import Enrollment, PaymentStatus
from ..models.user import User, UserRole
from ..utils.dates import isoformat, utcnow

logger = logging.getLogger(__name__)

MONTHS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
          'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']


def get_dashboard_data():
    users_by_role = {role.value: 0 for role in UserRole}
    for role, count in db.session.query(User.role, func.count(User.id)).group_by(User.role):
        users_by_role[role.value] = count

    enrollments_by_status = {status.value: 0 for status in PaymentStatus}
    for status, count in (db.session.query(Enrollment.payment_status, func.count(Enrollment.id))
                          .group_by(Enrollment.payment_status)):
        enrollments_by_status[status.value] = count

    total_revenue = (db.session.query(func.coalesce(func.sum(Enrollment.payment_amount), 0.0))
                     .filter(Enrollment.payment_status == PaymentStatus.COMPLETED)
                     .scalar())

    recent = (Enrollment.query
              .filter(Enrollment.payment_status == PaymentStatus.COMPLETED,
                      Enrollment.payment_amount.isnot(None))
              .order_by(Enrollment.payment_date.desc())
              .limit(5)
              .all())

    return {
        'counts': {
            'enrollments': Enrollment.query.count(),
            'courses': Course.query.count(),
            'cartItems': CartItem.query.count(),
            'users': User.query.count(),
        },
        'usersByRole': users_by_role,
        'enrollmentsByStatus': enrollments_by_status,
        'payments': {
            'completed': enrollments_by_status[PaymentStatus.COMPLETED.value],
            'pending': enrollments_by_status[PaymentStatus.PENDING.value],
            'failed': enrollments_by_status[PaymentStatus.FAILED.value],
        },
        'totalRevenue': float(total_revenue or 0),
        'recentTransactions': [
            {
                'id': enrollment.id,
                'studentName': enrollment.student_name,
                'email': enrollment.email,
                'courseName': enrollment.course.name if enrollment.course else None,
                'paymentAmount': enrollment.payment_amount,
                'paymentDate': isoformat(enrollment.payment_date),
            }
            for enrollment in recent
        ],
    }


def get_revenue_by_month(year=None):
    """Completed revenue per calendar month of the given year."""
    year = year or utcnow().year
    totals = [0.0] * 12
    rows = (db.session.query(Enrollment.payment_date, Enrollment.payment_amount)
            .filter(Enrollment.payment_status == PaymentStatus.COMPLETED,
                    Enrollment.payment_date.isnot(None)))
    for payment_date, amount in rows:
        if payment_date.year == year:
            totals[payment_date.month - 1] += amount or 0.0

    return [{'month': MONTHS[index], 'revenue': round(total, 2)}
            for index, total in enumerate(totals)]
