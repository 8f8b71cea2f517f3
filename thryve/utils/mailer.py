import re
import requests
from flask import current_app
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    pass


class Mailer:
    """Transactional email over an HTTP mail API (Brevo-compatible payload).

    With MAIL_SUPPRESS_SEND enabled nothing leaves the process; messages are
    appended to ``outbox`` instead.
    """

    def __init__(self, app=None):
        self.outbox = []
        self.session = requests.Session()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        app.extensions['mailer'] = self
        if not app.config['MAIL_API_KEY'] and not app.config['MAIL_SUPPRESS_SEND']:
            logger.warning("MAIL_API_KEY is not set; outgoing email will fail")

    def send(self, to, subject, html, text=None):
        config = current_app.config
        message = {
            'sender': {
                'email': config['MAIL_SENDER_EMAIL'],
                'name': config['MAIL_SENDER_NAME'],
            },
            'to': [{'email': to}],
            'subject': subject,
            'htmlContent': html,
        }
        if text:
            message['textContent'] = text

        if config['MAIL_SUPPRESS_SEND']:
            self.outbox.append(message)
            logger.info(f"Suppressed email to {to}: {subject}")
            return None

        if not config['MAIL_API_KEY']:
            raise EmailDeliveryError('Mail API key is not configured')

        headers = {
            'accept': 'application/json',
            'api-key': config['MAIL_API_KEY'],
            'content-type': 'application/json',
        }
        try:
            response = self.session.post(config['MAIL_API_URL'], headers=headers, json=message,
                                         timeout=config['MAIL_TIMEOUT'])
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Error sending email to {to}: {str(e)}")
            raise EmailDeliveryError(f"Failed to send email to {to}") from e

        message_id = response.json().get('messageId') if response.content else None
        logger.info(f"Email sent to {to}: {message_id}")
        return message_id


def get_mailer():
    return current_app.extensions['mailer']


def send_otp_email(email, otp):
    html = (
        "<div style=\"font-family: Arial, sans-serif; max-width: 600px; margin: auto;\">"
        "<h1>Password Reset</h1>"
        "<p>We received a request to reset your password. Use the verification code below "
        "to complete the process:</p>"
        f"<h2 style=\"letter-spacing: 10px;\">{otp}</h2>"
        "<p>This code will expire in 10 minutes.</p>"
        "<p>Never share this code with anyone, including Thryve.Today staff.</p>"
        f"<p>&copy; {datetime.now().year} Thryve.Today</p>"
        "</div>"
    )
    text = f"Your password reset code is {otp}. It expires in 10 minutes."
    return get_mailer().send(email, 'Password Reset OTP - Thryve.Today', html, text)


def send_payment_confirmation(enrollment):
    course_name = enrollment.course.name if enrollment.course else 'your course'
    html = (
        "<div style=\"font-family: Arial, sans-serif; max-width: 600px; margin: auto;\">"
        f"<p>Dear {enrollment.student_name},</p>"
        f"<p>Your payment of ${enrollment.payment_amount:,.2f} for {course_name} has been received.</p>"
        "<p>Welcome to the Thryve.Today Training Center!</p>"
        "</div>"
    )
    text = f"Your payment for {course_name} has been received. Welcome to Thryve.Today!"
    return get_mailer().send(enrollment.email, f'Enrollment confirmed: {course_name}', html, text)


def render_broadcast(subject, content):
    """Light markdown (bold, italics, line breaks) to HTML for admin broadcasts."""
    body = re.sub(r'\*\*(.*?)\*\*', r'<strong>\1</strong>', content)
    body = re.sub(r'\*(.*?)\*', r'<em>\1</em>', body)
    body = body.replace('\n', '<br>')
    return (
        "<div style=\"font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;\">"
        f"<h1 style=\"font-size: 24px;\">{subject}</h1>"
        f"<div style=\"line-height: 1.6;\">{body}</div>"
        "</div>"
    )
