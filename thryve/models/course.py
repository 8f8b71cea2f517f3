from .. import db
from ..utils.dates import utcnow, isoformat
import enum


class CourseStatus(str, enum.Enum):
    DRAFT = 'DRAFT'
    ACTIVE = 'ACTIVE'


class Course(db.Model):
    """Course model for storing course information"""
    __tablename__ = 'courses'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    duration = db.Column(db.String(120))
    price = db.Column(db.Float, nullable=False, default=0.0)
    description = db.Column(db.Text)
    classroom = db.Column(db.String(255))
    lab = db.Column(db.String(255))
    clinic = db.Column(db.String(255))
    who_should_attend = db.Column(db.Text)
    program_highlights = db.Column(db.Text)
    note = db.Column(db.Text)
    status = db.Column(db.Enum(CourseStatus, name='course_status'), nullable=False,
                       default=CourseStatus.DRAFT)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        db.CheckConstraint('price >= 0', name='ck_courses_price_non_negative'),
    )

    # Relationships
    enrollments = db.relationship('Enrollment', back_populates='course', lazy=True)

    @property
    def is_active(self):
        return self.status == CourseStatus.ACTIVE

    def __repr__(self):
        return f'<Course {self.name}>'

    def to_dict(self):
        """Convert course to dictionary"""
        return {
            'id': self.id,
            'name': self.name,
            'duration': self.duration,
            'price': self.price,
            'description': self.description,
            'classroom': self.classroom,
            'lab': self.lab,
            'clinic': self.clinic,
            'whoShouldAttend': self.who_should_attend,
            'programHighlights': self.program_highlights,
            'note': self.note,
            'status': self.status.value,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }
