"""
Email service for sending quotes to clients.
Uses Flask-Mail for SMTP integration with UTF-8 support.
"""
import logging
import smtplib

from flask import current_app
from flask_mail import Mail, Message
from markupsafe import escape

from rebath.exceptions import BackendUnavailable
from rebath.utils.formatters import format_currency, format_date

logger = logging.getLogger(__name__)

mail = Mail()


def init_mail(app):
    """Initialize Flask-Mail with app."""
    mail.init_app(app)


def _mail_enabled() -> bool:
    """
    Check if mail is configured. With MAIL_SUPPRESS_SEND, Flask-Mail records
    the message (``mail.record_messages``) without opening an SMTP connection.
    """
    cfg = current_app.config
    if cfg.get("MAIL_SUPPRESS_SEND", False):
        return True
    return bool(cfg.get("MAIL_SERVER") and cfg.get("MAIL_USERNAME"))


def send_quote_email(to_email: str, quote, project, business_info: dict, attachment=None) -> bool:
    """
    Send a quote to a client.

    Args:
        to_email: Recipient address
        quote: Quote being sent
        project: The quote's project (client name for the greeting)
        business_info: Letterhead (name, phone, email)
        attachment: Optional ``(filename, pdf_bytes)``

    Returns:
        True if sent (or recorded), False if mail is not configured

    Raises:
        BackendUnavailable: the SMTP server refused or could not be reached
    """
    if not _mail_enabled():
        logger.warning(f"[MAIL DISABLED] Quote email skipped for {to_email}")
        return False

    business_name = business_info.get('name') or 'ReBath Pro'
    subject = f"Your remodeling quote {quote.quote_number} from {business_name}"

    contact_lines = [business_info.get(key) for key in ('phone', 'email') if business_info.get(key)]

    text_body = f"""Hello {project.client_name},

Please find attached quote {quote.quote_number} for your project at {project.address}.

Total: {format_currency(quote.total)}
Valid until: {format_date(quote.valid_until)}

If you have any questions, just reply to this email.

{business_name}
{chr(10).join(contact_lines)}
"""

    safe_name = escape(business_name)
    safe_client = escape(project.client_name or '')
    safe_address = escape(project.address or '')
    safe_contact = escape(' | '.join(contact_lines))

    html_body = f"""
    <!DOCTYPE html>
    <html>
    <head><meta charset="UTF-8"></head>
    <body style="font-family: Arial, sans-serif; color: #333;">
        <div style="max-width: 600px; margin: auto; padding: 20px;">
            <h2 style="color: #1F4E79;">{safe_name}</h2>
            <p>Hello <strong>{safe_client}</strong>,</p>
            <p>Please find attached quote <strong>{quote.quote_number}</strong>
               for your project at {safe_address}.</p>
            <table cellpadding="6">
                <tr><td>Total:</td><td><strong>{format_currency(quote.total)}</strong></td></tr>
                <tr><td>Valid until:</td><td>{format_date(quote.valid_until)}</td></tr>
            </table>
            <p style="font-size: 13px; color: #666;">{safe_contact}</p>
        </div>
    </body>
    </html>
    """

    msg = Message(
        subject=subject,
        recipients=[to_email],
        body=text_body,
        html=html_body,
    )
    if attachment:
        filename, data = attachment
        msg.attach(filename, 'application/pdf', data)

    try:
        mail.send(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.exception(f"[EMAIL] Error sending quote {quote.quote_number} to {to_email}: {e}")
        raise BackendUnavailable('Email could not be sent') from e

    logger.info(f"[EMAIL] Quote {quote.quote_number} sent to {to_email}")
    return True
