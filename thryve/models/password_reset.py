from werkzeug.security import generate_password_hash, check_password_hash
from .. import db
from ..utils.dates import utcnow


class PasswordReset(db.Model):
    """Outstanding password reset request, one per email address"""
    __tablename__ = 'password_resets'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    otp_hash = db.Column(db.String(256), nullable=False)
    reset_token = db.Column(db.String(128), nullable=False, unique=True)
    expires_at = db.Column(db.DateTime, nullable=False)
    verified_at = db.Column(db.DateTime)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=utcnow)

    def set_otp(self, otp):
        self.otp_hash = generate_password_hash(otp)

    def check_otp(self, otp):
        return check_password_hash(self.otp_hash, otp)

    @property
    def is_expired(self):
        return utcnow() > self.expires_at

    def __repr__(self):
        return f'<PasswordReset {self.email}>'
