from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
import stripe
import logging

from ..services.checkout import create_checkout
from ..services.payments import handle_event, verify_checkout_session
from ..utils.stripe_api import StripeAPI

logger = logging.getLogger(__name__)

payment_bp = Blueprint('payment', __name__)

@payment_bp.route('/checkout', methods=['POST'])
@login_required
def checkout():
    """Create a Stripe checkout session for the cart"""
    checkout_url = create_checkout(current_user)
    return jsonify({'checkoutUrl': checkout_url})

@payment_bp.route('/webhooks/stripe', methods=['POST'])
def webhook():
    """Handle Stripe webhooks"""
    # Get the webhook data
    payload = request.get_data()
    sig_header = request.headers.get('Stripe-Signature')

    try:
        # Verify webhook signature
        event = StripeAPI().construct_event(payload, sig_header)
    except ValueError as e:
        logger.error(f"Invalid payload: {str(e)}")
        return jsonify({'error': 'Invalid payload'}), 400
    except stripe.SignatureVerificationError as e:
        logger.error(f"Webhook signature verification failed: {str(e)}")
        return jsonify({'error': 'Webhook signature verification failed'}), 400

    # Bad metadata (400) and database failures (500) propagate to the app error handler
    return jsonify(handle_event(event))

@payment_bp.route('/verify-payment', methods=['GET'])
@login_required
def verify_payment():
    """Success-page verification of a checkout session"""
    session_id = request.args.get('session_id')
    if not session_id:
        return jsonify({'error': 'Session ID is required'}), 400

    verified, result = verify_checkout_session(current_user, session_id)
    body = {'verified': verified}
    if result is not None:
        body.update(result.to_dict())
    return jsonify(body)
