from flask_mail import Message
from only4u.extensions import mail


def send_email(subject, recipients, body):
    """Send a plain UTF-8 text e-mail from MAIL_DEFAULT_SENDER."""
    if isinstance(recipients, str):
        recipients = [recipients]

    msg = Message(subject=subject or "", recipients=list(recipients or []), body=body or "")
    msg.charset = "utf-8"
    mail.send(msg)
    return msg
