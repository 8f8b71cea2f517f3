import re
import logging

from .. import db
from ..errors import Conflict, Forbidden, InvalidArgument, NotFound, Unauthorized
from ..models.user import User, UserRole

logger = logging.getLogger(__name__)


def validate_email(email):
    """Validate email format"""
    if not email or not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', email):
        return "Please enter a valid email address."
    return None


def validate_password(password):
    """Validate password requirements"""
    if not password or len(password) < 8:
        return "Password must be at least 8 characters long."
    return None


def _parse_role(role):
    try:
        return UserRole(role)
    except ValueError:
        raise InvalidArgument(f"Unknown role: {role}")


def register_user(name, email, password, telephone=None):
    if not name or not email or not password:
        raise InvalidArgument('Missing required fields')
    email = email.strip().lower()
    error = validate_email(email) or validate_password(password)
    if error:
        raise InvalidArgument(error)

    existing = User.query.filter_by(email=email).first()
    if existing:
        if existing.is_deleted:
            raise Forbidden('User with this account is permanently deleted')
        raise Conflict('User with this email already exists')

    user = User(name=name.strip(), email=email, telephone=telephone, role=UserRole.USER)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    logger.info(f"Successfully created user: {email}")
    return user


def authenticate(email, password):
    if not email or not password:
        raise InvalidArgument('Please enter both email and password')

    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user or user.is_deleted:
        raise Unauthorized('Invalid email or password')
    if user.is_oauth_only:
        raise Unauthorized('Please sign in with Google for this account')
    if not user.check_password(password):
        raise Unauthorized('Invalid email or password')
    return user


def find_or_create_oauth_user(provider, profile):
    """Sign-in callback for OAuth profiles: link by email, create on first visit."""
    email = profile['email'].strip().lower()
    user = User.query.filter_by(email=email).first()

    if user is None:
        user = User(email=email, name=profile.get('name') or '', image=profile.get('picture'),
                    oauth_provider=provider, role=UserRole.USER)
        db.session.add(user)
        logger.info(f"Created {provider} user: {email}")
    elif user.is_deleted:
        raise Forbidden('User with this account is permanently deleted')
    else:
        if profile.get('picture') and user.image != profile['picture']:
            user.image = profile['picture']
        if not user.oauth_provider:
            user.oauth_provider = provider

    db.session.commit()
    return user


def get_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound('User not found')
    return user


def list_users(role=None, include_deleted=False):
    query = User.query
    if role:
        query = query.filter(User.role == _parse_role(role))
    if not include_deleted:
        query = query.filter(User.is_deleted.is_(False))
    return query.order_by(User.created_at.desc()).all()


def create_user(data):
    """Admin-side account creation"""
    email = (data.get('email') or '').strip().lower()
    password = data.get('password')
    error = validate_email(email) or validate_password(password)
    if error:
        raise InvalidArgument(error)
    if User.query.filter_by(email=email).first():
        raise Conflict('User with this email already exists')

    user = User(name=data.get('name'), email=email, telephone=data.get('telephone'),
                role=_parse_role(data.get('role') or UserRole.USER.value))
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    logger.info(f"Admin created user: {email}")
    return user


def update_user(user, data, allow_role_change=False):
    if 'name' in data:
        user.name = data['name']
    if 'telephone' in data:
        user.telephone = data['telephone']
    if data.get('email') and data['email'].strip().lower() != user.email:
        email = data['email'].strip().lower()
        error = validate_email(email)
        if error:
            raise InvalidArgument(error)
        if User.query.filter(User.email == email, User.id != user.id).first():
            raise Conflict('User with this email already exists')
        user.email = email
    if data.get('password'):
        error = validate_password(data['password'])
        if error:
            raise InvalidArgument(error)
        user.set_password(data['password'])
    if allow_role_change and data.get('role'):
        user.role = _parse_role(data['role'])

    db.session.commit()
    return user


def soft_delete_user(user):
    user.is_deleted = True
    db.session.commit()
    logger.info(f"User {user.id} marked deleted")
    return user
