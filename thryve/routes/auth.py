from flask import Blueprint, redirect, request, jsonify, session, current_app
from flask_login import login_user, logout_user, login_required, current_user
import secrets
import logging

from ..services import password_reset
from ..services.users import register_user, authenticate, find_or_create_oauth_user
from ..utils.google_oauth import GoogleOAuthAPI, GoogleOAuthError

logger = logging.getLogger(__name__)
auth_bp = Blueprint('auth', __name__)

@auth_bp.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip()

    logger.info(f"Received registration data - Email: {email}, Name: {data.get('name')}")

    user = register_user(
        name=data.get('name'),
        email=email,
        password=data.get('password'),
        telephone=data.get('telephone'),
    )
    return jsonify(user.to_dict()), 201

@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    user = authenticate(data.get('email'), data.get('password'))

    login_user(user, remember=True)
    logger.info(f"User {user.id} logged in")
    return jsonify({'user': user.to_dict()})

@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})

@auth_bp.route('/session', methods=['GET'])
def current_session():
    """Who is signed in, if anyone"""
    if not current_user.is_authenticated:
        return jsonify({'authenticated': False, 'user': None})
    return jsonify({'authenticated': True, 'user': current_user.to_dict()})

@auth_bp.route('/google', methods=['GET'])
def google_login():
    google = GoogleOAuthAPI()
    if not google.configured:
        return jsonify({'error': 'Google sign-in is not configured'}), 503

    state = secrets.token_urlsafe(24)
    session['oauth_state'] = state
    return redirect(google.authorization_url(state))

@auth_bp.route('/google/callback', methods=['GET'])
def google_callback():
    expected_state = session.pop('oauth_state', None)
    if not expected_state or request.args.get('state') != expected_state:
        logger.warning("Google callback with missing or mismatched state")
        return jsonify({'error': 'Invalid OAuth state'}), 400

    if request.args.get('error'):
        logger.warning(f"Google sign-in was declined: {request.args.get('error')}")
        return redirect(f"{current_app.config['BASE_URL']}/signin?error=oauth")

    code = request.args.get('code')
    if not code:
        return jsonify({'error': 'Authorization code is required'}), 400

    try:
        google = GoogleOAuthAPI()
        access_token = google.exchange_code(code)
        profile = google.get_user_info(access_token)
    except GoogleOAuthError as e:
        logger.error(f"Google sign-in failed: {str(e)}")
        return jsonify({'error': 'Google sign-in failed'}), 502

    user = find_or_create_oauth_user('google', profile)
    login_user(user, remember=True)
    logger.info(f"User {user.id} signed in with Google")
    return redirect(current_app.config['BASE_URL'])

@auth_bp.route('/forgot-password', methods=['POST'])
def forgot_password():
    data = request.get_json(silent=True) or {}
    password_reset.request_reset(data.get('email'))
    return jsonify({'success': True, 'message': 'OTP sent to email'})

@auth_bp.route('/verify-otp', methods=['POST'])
def verify_otp():
    data = request.get_json(silent=True) or {}
    reset_token = password_reset.verify_otp(data.get('email'), data.get('otp'))
    return jsonify({'success': True, 'message': 'OTP verified', 'resetToken': reset_token})

@auth_bp.route('/reset-password', methods=['POST'])
def reset_password():
    data = request.get_json(silent=True) or {}
    password_reset.reset_password(data.get('email'), data.get('resetToken'), data.get('password'))
    return jsonify({'success': True, 'message': 'Password reset successfully'})
