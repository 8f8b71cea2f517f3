import stripe
from flask import current_app
import logging

logger = logging.getLogger(__name__)


def configure_stripe(app):
    """Configure the process-wide Stripe client once, at application start-up."""
    stripe.api_key = app.config['STRIPE_SECRET_KEY']
    stripe.max_network_retries = app.config['STRIPE_MAX_NETWORK_RETRIES']
    stripe.default_http_client = stripe.RequestsClient(timeout=app.config['STRIPE_TIMEOUT'])

    if not app.config['STRIPE_SECRET_KEY']:
        logger.warning("STRIPE_SECRET_KEY is not set; checkout will fail")
    if not app.config['STRIPE_WEBHOOK_SECRET']:
        logger.warning("STRIPE_WEBHOOK_SECRET is not set; webhooks will be rejected")


def field(obj, key, default=None):
    """Read a key from a Stripe object or a plain dict."""
    if obj is None:
        return default
    try:
        value = obj[key]
    except (KeyError, TypeError):
        return default
    return default if value is None else value


class StripeAPI:
    def __init__(self):
        """Initialize StripeAPI with configuration from Flask app"""
        self.currency = current_app.config['STRIPE_CURRENCY']
        self.payment_method_types = current_app.config['STRIPE_PAYMENT_METHOD_TYPES']
        self.webhook_secret = current_app.config['STRIPE_WEBHOOK_SECRET']
        self.base_url = current_app.config['BASE_URL']

    def create_checkout_session(self, line_items, metadata, customer_email, client_reference_id):
        """Create a hosted Checkout Session and return it"""
        logger.info(f"Creating checkout session for user {client_reference_id} "
                    f"with {len(line_items)} line items")
        return stripe.checkout.Session.create(
            payment_method_types=self.payment_method_types,
            line_items=line_items,
            mode='payment',
            success_url=f"{self.base_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self.base_url}/cart",
            customer_email=customer_email or None,
            client_reference_id=str(client_reference_id),
            metadata=metadata,
        )

    def retrieve_checkout_session(self, session_id):
        logger.info(f"Retrieving checkout session {session_id}")
        return stripe.checkout.Session.retrieve(session_id)

    def construct_event(self, payload, sig_header):
        """Verify the webhook signature and parse the event.

        Raises ValueError for an unparseable payload and
        stripe.SignatureVerificationError for a bad or missing signature.
        """
        if not self.webhook_secret:
            raise stripe.SignatureVerificationError('Webhook secret is not configured', sig_header)
        if not sig_header:
            raise stripe.SignatureVerificationError('Missing Stripe signature', sig_header)
        return stripe.Webhook.construct_event(payload, sig_header, self.webhook_secret)
