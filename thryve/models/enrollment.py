from .. import db
from ..errors import InvalidState
from ..utils.dates import utcnow, isoformat
import enum


class PaymentStatus(str, enum.Enum):
    PENDING = 'PENDING'
    COMPLETED = 'COMPLETED'
    FAILED = 'FAILED'


# PENDING is the only state that may move; COMPLETED and FAILED are terminal.
ALLOWED_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.COMPLETED: set(),
    PaymentStatus.FAILED: set(),
}


class Enrollment(db.Model):
    """Enrollment form submission and the payment state of the seat it reserves"""
    __tablename__ = 'enrollments'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), index=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), index=True)

    # Form fields
    student_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, index=True)
    date_of_birth = db.Column(db.String(32))
    address = db.Column(db.String(255))
    city_state_zip = db.Column(db.String(255))
    phone_home = db.Column(db.String(32))
    phone_cell = db.Column(db.String(32))
    social_security = db.Column(db.String(32))
    state_id = db.Column(db.String(64))
    emergency_contact = db.Column(db.String(255))
    emergency_relationship = db.Column(db.String(120))
    emergency_phone = db.Column(db.String(32))
    student_signature = db.Column(db.String(255))
    student_signature_date = db.Column(db.DateTime)
    director_signature = db.Column(db.String(255))
    director_signature_date = db.Column(db.DateTime)
    guardian_signature = db.Column(db.String(255))
    guardian_signature_date = db.Column(db.DateTime)

    # Payment
    payment_status = db.Column(db.Enum(PaymentStatus, name='payment_status'), nullable=False,
                               default=PaymentStatus.PENDING, index=True)
    payment_id = db.Column(db.String(255))
    payment_amount = db.Column(db.Float)
    payment_date = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        db.UniqueConstraint('payment_id', 'course_id', name='uq_enrollments_payment_course'),
    )

    # Relationships
    user = db.relationship('User', back_populates='enrollments')
    course = db.relationship('Course', back_populates='enrollments')

    def __repr__(self):
        return f'<Enrollment {self.id} {self.student_name} {self.payment_status.value}>'

    def transition_to(self, status, payment_id=None, payment_amount=None):
        """Move the payment status, keeping payment_date set iff COMPLETED."""
        status = PaymentStatus(status)
        if status == self.payment_status:
            return
        if status not in ALLOWED_TRANSITIONS[self.payment_status]:
            raise InvalidState(
                f"Cannot change payment status from {self.payment_status.value} to {status.value}")

        self.payment_status = status
        if payment_id:
            self.payment_id = payment_id
        if payment_amount is not None:
            self.payment_amount = payment_amount
        self.payment_date = utcnow() if status == PaymentStatus.COMPLETED else None

    def to_dict(self):
        """Convert enrollment to dictionary"""
        return {
            'id': self.id,
            'userId': self.user_id,
            'courseId': self.course_id,
            'courseName': self.course.name if self.course else None,
            'studentName': self.student_name,
            'email': self.email,
            'dateOfBirth': self.date_of_birth,
            'address': self.address,
            'cityStateZip': self.city_state_zip,
            'phoneHome': self.phone_home,
            'phoneCell': self.phone_cell,
            'stateId': self.state_id,
            'emergencyContact': self.emergency_contact,
            'emergencyRelationship': self.emergency_relationship,
            'emergencyPhone': self.emergency_phone,
            'studentSignature': self.student_signature,
            'studentSignatureDate': isoformat(self.student_signature_date),
            'directorSignature': self.director_signature,
            'directorSignatureDate': isoformat(self.director_signature_date),
            'guardianSignature': self.guardian_signature,
            'guardianSignatureDate': isoformat(self.guardian_signature_date),
            'paymentStatus': self.payment_status.value,
            'paymentId': self.payment_id,
            'paymentAmount': self.payment_amount,
            'paymentDate': isoformat(self.payment_date),
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }
