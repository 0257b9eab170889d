# Overview: Service-layer operations for outgoing mail; delivers report attachments over SMTP.

import smtplib
from email.message import EmailMessage

from flask import current_app


class MailError(Exception):
    """Raised when a report cannot be delivered."""
    pass


def build_message(recipient: str, subject: str, body: str, filename: str, content: bytes,
                  mimetype: str = "application/octet-stream") -> EmailMessage:
    sender = current_app.config.get("MAIL_DEFAULT_SENDER") or current_app.config.get("MAIL_USERNAME")
    if not sender:
        raise MailError("MAIL_DEFAULT_SENDER is not configured")

    maintype, _, subtype = mimetype.partition("/")
    message = EmailMessage()
    message["From"] = sender
    message["To"] = recipient
    message["Subject"] = subject
    message.set_content(body)
    message.add_attachment(content, maintype=maintype, subtype=subtype or "octet-stream", filename=filename)
    return message


def send_report(recipient: str, subject: str, body: str, filename: str, content: bytes,
                mimetype: str = "application/octet-stream") -> None:
    """
    Send a report file as an attachment.

    Raises MailError when SMTP is not configured or delivery fails.
    """
    config = current_app.config
    server = config.get("MAIL_SERVER")
    if not server:
        raise MailError("MAIL_SERVER is not configured")

    message = build_message(recipient, subject, body, filename, content, mimetype)

    try:
        with smtplib.SMTP(server, config.get("MAIL_PORT", 587), timeout=30) as smtp:
            if config.get("MAIL_USE_TLS"):
                smtp.starttls()
            if config.get("MAIL_USERNAME"):
                smtp.login(config["MAIL_USERNAME"], config.get("MAIL_PASSWORD") or "")
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        raise MailError(f"Failed to send report: {exc}") from exc

    current_app.logger.info("Report %s sent to %s", filename, recipient)
