from flask import Blueprint, jsonify
from sqlalchemy import text
import logging
from .. import db

logger = logging.getLogger(__name__)

main_bp = Blueprint('main', __name__)

@main_bp.route('/')
def index():
    """API root"""
    return jsonify({'name': 'Thryve.Today Training Store', 'status': 'ok'})

@main_bp.route('/health')
def health():
    """Liveness plus a database round trip"""
    try:
        db.session.execute(text('SELECT 1'))
        return jsonify({'status': 'ok', 'database': 'ok'})
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return jsonify({'status': 'error', 'database': 'unavailable'}), 503
