from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException
from .config import Config
from .errors import StoreError
import logging
import logging.config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()

logger = logging.getLogger(__name__)

def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize logging
    logging.config.dictConfig(app.config['LOGGING'])

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)

    from .utils.mailer import Mailer
    from .utils.stripe_api import configure_stripe

    Mailer(app)
    configure_stripe(app)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Unauthorized'}), 401

    register_error_handlers(app)

    # Register blueprints
    from .routes.main import main_bp
    from .routes.auth import auth_bp
    from .routes.courses import courses_bp
    from .routes.cart import cart_bp
    from .routes.payment import payment_bp
    from .routes.enrollment import enrollment_bp
    from .routes.user import user_bp
    from .routes.admin import admin_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(courses_bp, url_prefix='/api/courses')
    app.register_blueprint(cart_bp, url_prefix='/api/cart')
    app.register_blueprint(payment_bp, url_prefix='/api')
    app.register_blueprint(enrollment_bp, url_prefix='/api')
    app.register_blueprint(user_bp, url_prefix='/api/user')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')

    # Create database tables
    with app.app_context():
        from .models import user, course, cart, enrollment, password_reset  # noqa: F401
        db.create_all()

    return app


def register_error_handlers(app):
    @app.errorhandler(StoreError)
    def handle_store_error(error):
        if error.status_code >= 500:
            logger.error(f"{type(error).__name__}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({'error': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        logger.exception(f"Unhandled error: {str(error)}")
        return jsonify({'error': 'Internal server error'}), 500
