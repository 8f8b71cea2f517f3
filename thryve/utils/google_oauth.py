import requests
from flask import current_app
from urllib.parse import urlencode
import logging

logger = logging.getLogger(__name__)


class GoogleOAuthError(Exception):
    pass


class GoogleOAuthAPI:
    def __init__(self):
        """Initialize GoogleOAuthAPI with configuration from Flask app"""
        self.client_id = current_app.config['GOOGLE_CLIENT_ID']
        self.client_secret = current_app.config['GOOGLE_CLIENT_SECRET']
        self.auth_url = current_app.config['GOOGLE_AUTH_URL']
        self.token_url = current_app.config['GOOGLE_TOKEN_URL']
        self.userinfo_url = current_app.config['GOOGLE_USERINFO_URL']
        self.redirect_uri = f"{current_app.config['BASE_URL']}/api/auth/google/callback"
        self.session = requests.Session()

        logger.info(f"Client ID set: {bool(self.client_id)}")
        logger.info(f"Client Secret set: {bool(self.client_secret)}")

    @property
    def configured(self):
        return bool(self.client_id and self.client_secret)

    def authorization_url(self, state):
        params = {
            'client_id': self.client_id,
            'redirect_uri': self.redirect_uri,
            'response_type': 'code',
            'scope': 'openid email profile',
            'state': state,
            'prompt': 'select_account',
        }
        return f"{self.auth_url}?{urlencode(params)}"

    def exchange_code(self, code):
        """Exchange an authorization code for an access token"""
        data = {
            'grant_type': 'authorization_code',
            'code': code,
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'redirect_uri': self.redirect_uri,
        }
        headers = {
            'Accept': 'application/json',
            'Content-Type': 'application/x-www-form-urlencoded',
        }

        logger.info(f"Requesting access token from {self.token_url}")
        try:
            response = self.session.post(self.token_url, data=data, headers=headers, timeout=10)
        except requests.exceptions.RequestException as e:
            raise GoogleOAuthError(f"Token request failed: {str(e)}") from e

        logger.info(f"Token request status: {response.status_code}")
        if response.status_code != 200:
            raise GoogleOAuthError(f"Token request failed: {response.text}")

        access_token = response.json().get('access_token')
        if not access_token:
            raise GoogleOAuthError('Access token not found in response')
        return access_token

    def get_user_info(self, access_token):
        """Fetch the signed-in Google profile (email, name, picture)"""
        headers = {
            'Accept': 'application/json',
            'Authorization': f'Bearer {access_token}',
        }
        try:
            response = self.session.get(self.userinfo_url, headers=headers, timeout=10)
        except requests.exceptions.RequestException as e:
            raise GoogleOAuthError(f"Userinfo request failed: {str(e)}") from e

        if response.status_code != 200:
            raise GoogleOAuthError(f"Userinfo request failed: {response.status_code}")

        profile = response.json()
        if not profile.get('email') or not profile.get('email_verified', True):
            raise GoogleOAuthError('Google account has no verified email')
        return profile
