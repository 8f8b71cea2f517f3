"""
Password reset by emailed one-time code.

Requests live in the ``password_resets`` table so every application
instance sees the same state and a restart does not lose it. A request
expires PASSWORD_RESET_TTL after it is issued; the reset token is only
accepted once the code has been verified.
"""

import secrets
import logging

from flask import current_app

from .. import db
from ..errors import InvalidArgument, NotFound, InternalError
from ..models.password_reset import PasswordReset
from ..models.user import User
from ..utils.dates import utcnow
from ..utils.mailer import EmailDeliveryError, send_otp_email

logger = logging.getLogger(__name__)


def generate_otp():
    return f"{secrets.randbelow(900000) + 100000}"


def normalize_email(email):
    return email.strip().lower() if isinstance(email, str) else email


def request_reset(email):
    email = normalize_email(email)
    if not email:
        raise InvalidArgument('Email is required')

    user = User.query.filter_by(email=email).first()
    if not user or user.is_deleted:
        raise NotFound('User not found')
    if user.is_oauth_only:
        raise InvalidArgument('Please sign in with Google for this account')

    otp = generate_otp()
    reset = PasswordReset.query.filter_by(email=email).first() or PasswordReset(email=email)
    reset.set_otp(otp)
    reset.reset_token = secrets.token_hex(32)
    reset.expires_at = utcnow() + current_app.config['PASSWORD_RESET_TTL']
    reset.verified_at = None
    reset.attempts = 0
    db.session.add(reset)
    db.session.commit()

    try:
        send_otp_email(email, otp)
    except EmailDeliveryError as e:
        logger.error(f"Error sending OTP to {email}: {str(e)}")
        raise InternalError('Failed to process request')

    logger.info(f"Password reset OTP issued for {email}")
    return reset


def verify_otp(email, otp):
    """Check the emailed code and hand back the reset token."""
    email = normalize_email(email)
    if not email or not otp:
        raise InvalidArgument('Email and OTP are required')

    reset = PasswordReset.query.filter_by(email=email).first()
    if not reset:
        raise InvalidArgument('No OTP request found')
    if reset.is_expired:
        raise InvalidArgument('OTP has expired')
    if not reset.check_otp(str(otp)):
        attempts = (reset.attempts or 0) + 1
        if attempts >= current_app.config['PASSWORD_RESET_MAX_ATTEMPTS']:
            db.session.delete(reset)
            db.session.commit()
            logger.warning(f"Password reset for {email} cancelled after {attempts} invalid OTPs")
            raise InvalidArgument('Too many invalid attempts. Please request a new OTP')
        reset.attempts = attempts
        db.session.commit()
        raise InvalidArgument('Invalid OTP')

    reset.verified_at = utcnow()
    db.session.commit()
    return reset.reset_token


def reset_password(email, token, password):
    email = normalize_email(email)
    if not email or not token or not password:
        raise InvalidArgument('Email, token, and password are required')

    reset = PasswordReset.query.filter_by(email=email).first()
    if not reset:
        raise InvalidArgument('Invalid or expired reset token')
    if not reset.verified_at or not secrets.compare_digest(reset.reset_token, token):
        raise InvalidArgument('Invalid reset token')
    if reset.is_expired:
        db.session.delete(reset)
        db.session.commit()
        raise InvalidArgument('Reset token has expired')

    user = User.query.filter_by(email=email).first()
    if not user or user.is_deleted:
        raise NotFound('User not found')

    user.set_password(password)
    db.session.delete(reset)
    db.session.commit()
    logger.info(f"Password reset for {email}")
    return user
