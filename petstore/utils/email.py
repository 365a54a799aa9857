import logging

from flask import render_template
from flask_mail import Message

from petstore import mail

logger = logging.getLogger(__name__)


def send_email(recipient, subject, template, **context):
    """Render ``templates/email/<template>.txt`` and send it.

    Delivery is best-effort: a failure is logged and reported as ``False``,
    it never propagates into the request that triggered the notification.
    """
    if not recipient:
        logger.warning(f"Email '{subject}' skipped: no recipient")
        return False
    try:
        body = render_template(f'email/{template}.txt', **context)
        mail.send(Message(subject=subject, recipients=[recipient], body=body))
        logger.info(f"Email '{subject}' sent to {recipient}")
        return True
    except Exception:
        logger.exception(f"Failed to send email '{subject}' to {recipient}")
        return False
