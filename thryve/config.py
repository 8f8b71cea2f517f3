import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()

class Config:
    # Flask Configuration
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///thryve_store.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
    }

    # Debug Configuration
    DEBUG = os.getenv('FLASK_ENV') == 'development'
    TESTING = False

    # Public URL used for Stripe redirects and OAuth callbacks
    BASE_URL = os.getenv('BASE_URL', 'http://localhost:5000').rstrip('/')

    # Stripe Configuration
    STRIPE_PUBLIC_KEY = os.getenv('STRIPE_PUBLIC_KEY')
    STRIPE_SECRET_KEY = os.getenv('STRIPE_SECRET_KEY')
    STRIPE_WEBHOOK_SECRET = os.getenv('STRIPE_WEBHOOK_SECRET')
    STRIPE_CURRENCY = os.getenv('STRIPE_CURRENCY', 'usd')
    STRIPE_PAYMENT_METHOD_TYPES = os.getenv(
        'STRIPE_PAYMENT_METHOD_TYPES', 'card,klarna,afterpay_clearpay').split(',')
    STRIPE_TIMEOUT = int(os.getenv('STRIPE_TIMEOUT', '10'))
    STRIPE_MAX_NETWORK_RETRIES = int(os.getenv('STRIPE_MAX_NETWORK_RETRIES', '3'))

    # Google OAuth Configuration
    GOOGLE_CLIENT_ID = os.getenv('GOOGLE_CLIENT_ID')
    GOOGLE_CLIENT_SECRET = os.getenv('GOOGLE_CLIENT_SECRET')
    GOOGLE_AUTH_URL = 'https://accounts.google.com/o/oauth2/v2/auth'
    GOOGLE_TOKEN_URL = 'https://oauth2.googleapis.com/token'
    GOOGLE_USERINFO_URL = 'https://openidconnect.googleapis.com/v1/userinfo'

    # Mail Configuration
    MAIL_API_URL = os.getenv('MAIL_API_URL', 'https://api.brevo.com/v3/smtp/email')
    MAIL_API_KEY = os.getenv('MAIL_API_KEY')
    MAIL_SENDER_EMAIL = os.getenv('MAIL_SENDER_EMAIL', 'no-reply@thryve.today')
    MAIL_SENDER_NAME = os.getenv('MAIL_SENDER_NAME', 'Thryve.Today')
    MAIL_TIMEOUT = int(os.getenv('MAIL_TIMEOUT', '10'))
    MAIL_SUPPRESS_SEND = os.getenv('MAIL_SUPPRESS_SEND', 'False').lower() == 'true'

    # Enrollment form template (fillable PDF); a generated summary is used when unset
    ENROLLMENT_FORM_TEMPLATE = os.getenv('ENROLLMENT_FORM_TEMPLATE')

    # Password reset
    PASSWORD_RESET_TTL = timedelta(minutes=10)
    PASSWORD_RESET_MAX_ATTEMPTS = int(os.getenv('PASSWORD_RESET_MAX_ATTEMPTS', '5'))

    # Logging Configuration
    LOGGING = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'standard'
            }
        },
        'root': {
            'level': os.getenv('LOG_LEVEL', 'INFO'),
            'handlers': ['console']
        }
    }

    # Session Configuration
    PERMANENT_SESSION_LIFETIME = timedelta(days=30)
    REMEMBER_COOKIE_DURATION = timedelta(days=30)


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'test'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    BASE_URL = 'http://testserver'
    STRIPE_SECRET_KEY = 'sk_test_dummy'
    STRIPE_WEBHOOK_SECRET = 'whsec_test_secret'
    STRIPE_CURRENCY = 'usd'
    GOOGLE_CLIENT_ID = 'google-client-id'
    GOOGLE_CLIENT_SECRET = 'google-client-secret'
    MAIL_SUPPRESS_SEND = True
    ENROLLMENT_FORM_TEMPLATE = None
