from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from .. import db, login_manager
from ..utils.dates import utcnow, isoformat
import enum


class UserRole(str, enum.Enum):
    ADMIN = 'ADMIN'
    USER = 'USER'


@login_manager.user_loader
def load_user(user_id):
    user = db.session.get(User, int(user_id))
    if user is None or user.is_deleted:
        return None
    return user


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120))
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    telephone = db.Column(db.String(32))
    image = db.Column(db.String(512))
    password_hash = db.Column(db.String(256))
    oauth_provider = db.Column(db.String(32))
    role = db.Column(db.Enum(UserRole, name='user_role'), nullable=False, default=UserRole.USER)
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    enrollments = db.relationship('Enrollment', back_populates='user', lazy=True)
    shopping_cart = db.relationship('Cart', back_populates='user', uselist=False,
                                    cascade='all, delete-orphan')

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    @property
    def is_oauth_only(self):
        """Accounts created through Google sign-in have no local password."""
        return bool(self.oauth_provider) and not self.password_hash

    @property
    def is_active(self):
        return not self.is_deleted

    def get_id(self):
        return str(self.id)

    def __repr__(self):
        return f'<User {self.email}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'telephone': self.telephone,
            'image': self.image,
            'role': self.role.value,
            'isDeleted': self.is_deleted,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }
