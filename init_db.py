import os
import logging

from thryve import create_app, db
from thryve.models.user import User, UserRole
from thryve.models.course import Course
from thryve.models.enrollment import Enrollment
from thryve.models.cart import Cart, CartItem
from thryve.models.password_reset import PasswordReset

logger = logging.getLogger(__name__)

app = create_app()

with app.app_context():
    # Drop all tables
    db.drop_all()

    # Create all tables
    db.create_all()

    # Optional bootstrap admin
    admin_email = os.getenv('ADMIN_EMAIL')
    admin_password = os.getenv('ADMIN_PASSWORD')
    if admin_email and admin_password:
        admin = User(name=os.getenv('ADMIN_NAME', 'Administrator'),
                     email=admin_email.strip().lower(), role=UserRole.ADMIN)
        admin.set_password(admin_password)
        db.session.add(admin)
        db.session.commit()
        logger.info(f"Created admin user: {admin.email}")

    logger.info(f"Tables: {', '.join(sorted(db.metadata.tables))}")
    print("Database initialized successfully!")
