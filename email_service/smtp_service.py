import html
import logging
import os
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_EMAIL_TO = "codivrasolution@gmail.com"


class EmailNotConfiguredError(RuntimeError):
    """SMTP_USER / SMTP_PASS are missing, nothing can be delivered."""


def is_email_configured() -> bool:
    return bool(os.getenv("SMTP_USER") and os.getenv("SMTP_PASS"))


def _sender() -> str:
    return os.getenv("EMAIL_FROM") or os.getenv("SMTP_USER") or "no-reply@example.com"


def _staff_recipient() -> str:
    return os.getenv("EMAIL_TO") or DEFAULT_EMAIL_TO


def _brand() -> dict:
    return {
        "name": os.getenv("BRAND_NAME", "Codivra"),
        "primary": os.getenv("BRAND_PRIMARY_COLOR", "#4f46e5"),
        "website": os.getenv("BRAND_WEBSITE_URL") or os.getenv("SITE_URL", ""),
    }


# --- HTML LAYOUT ---

BASE_HTML_TEMPLATE = """\
<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>{brand_name}</title>
  </head>
  <body style="margin:0;padding:0;background-color:#f3f4f6;">
    <div style="display:none;max-height:0;overflow:hidden;opacity:0;color:transparent">{preheader}</div>
    <table role="presentation" width="100%" cellspacing="0" cellpadding="0" border="0" style="background-color:#f3f4f6;padding:24px 12px">
      <tr><td align="center">
        <table role="presentation" width="600" cellspacing="0" cellpadding="0" border="0" style="width:100%;max-width:600px;background:#ffffff;border-radius:14px;border:1px solid #e5e7eb">
          <tr><td style="padding:20px 24px;border-bottom:1px solid #f3f4f6;font-family:Arial,Helvetica,sans-serif;font-weight:700;font-size:18px;color:#111827">{brand_name}</td></tr>
          <tr><td style="padding:24px 24px 8px 24px;font-family:Arial,Helvetica,sans-serif;font-size:14px;line-height:22px;color:#374151">
            {title_html}
            {body_html}
            {cta_html}
          </td></tr>
          <tr><td style="padding:20px 24px;background:#f9fafb;border-top:1px solid #f3f4f6;font-family:Arial,Helvetica,sans-serif;font-size:12px;color:#6b7280">
            You're receiving this email because you interacted with {brand_name}. If this wasn't you, you can safely ignore this email.
          </td></tr>
        </table>
      </td></tr>
    </table>
  </body>
</html>
"""


def render_base_email(title: str, body_html: str, preheader: str = "", cta: Optional[dict] = None) -> str:
    """Wrap an already escaped body fragment into the branded layout.

    ``cta`` is an optional ``{"label": ..., "url": ...}`` button.
    """
    brand = _brand()
    title_html = (
        f'<h1 style="margin:0 0 8px 0;font-size:22px;line-height:28px;color:#111827">{html.escape(title)}</h1>'
        if title
        else ""
    )
    cta_html = ""
    if cta and cta.get("url") and cta.get("label"):
        cta_html = (
            f'<p style="margin:24px 0 0 0"><a href="{html.escape(cta["url"], quote=True)}" '
            f'style="display:inline-block;padding:12px 20px;background:{brand["primary"]};color:#ffffff;'
            f'text-decoration:none;border-radius:8px" target="_blank" rel="noopener noreferrer">'
            f'{html.escape(cta["label"])}</a></p>'
        )
    return BASE_HTML_TEMPLATE.format(
        brand_name=html.escape(brand["name"]),
        preheader=html.escape(preheader),
        title_html=title_html,
        body_html=body_html,
        cta_html=cta_html,
    )


def _field_rows(fields: list) -> str:
    return "\n".join(
        f'<p style="margin:0 0 8px 0"><strong>{label}:</strong> {html.escape(value or "N/A")}</p>'
        for label, value in fields
    )


def _message_html(message: str) -> str:
    return html.escape(message).replace("\n", "<br/>")


def _website_cta(label: str) -> Optional[dict]:
    website = _brand()["website"]
    return {"label": label, "url": website} if website else None


# --- DELIVERY ---

def _deliver(email_message: MIMEMultipart, recipient: str) -> None:
    host = os.getenv("SMTP_HOST", "smtp.gmail.com")
    port = int(os.getenv("SMTP_PORT", "587"))
    secure = os.getenv("SMTP_SECURE", "false").lower() == "true"
    user = os.getenv("SMTP_USER")
    password = os.getenv("SMTP_PASS")
    context = ssl.create_default_context()

    if secure:
        with smtplib.SMTP_SSL(host, port, context=context, timeout=30) as server:
            server.login(user, password)
            server.sendmail(email_message["From"], [recipient], email_message.as_string())
        return

    with smtplib.SMTP(host, port, timeout=30) as server:
        server.ehlo()
        if server.has_extn("starttls"):
            server.starttls(context=context)
            server.ehlo()
        server.login(user, password)
        server.sendmail(email_message["From"], [recipient], email_message.as_string())


def send_email(to: str, subject: str, text: str, html_body: str) -> str:
    """Send a multipart (plain + HTML) email and return its Message-ID.

    Raises EmailNotConfiguredError when SMTP credentials are missing; SMTP and
    network errors propagate to the caller.
    """
    if not is_email_configured():
        raise EmailNotConfiguredError("SMTP is not configured. Set SMTP_USER and SMTP_PASS.")

    message_id = make_msgid()
    email_message = MIMEMultipart("alternative")
    email_message["Subject"] = subject
    email_message["From"] = _sender()
    email_message["To"] = to
    email_message["Message-ID"] = message_id
    email_message.attach(MIMEText(text, "plain", "utf-8"))
    email_message.attach(MIMEText(html_body, "html", "utf-8"))

    _deliver(email_message, to)
    logger.info("Email %s sent to %s", message_id, to)
    return message_id


def _send_if_configured(kind: str, to: str, subject: str, text: str, html_body: str) -> Optional[str]:
    if not is_email_configured():
        logger.info("SMTP not configured, skipping %s email to %s", kind, to)
        return None
    return send_email(to, subject, text, html_body)


# --- MESSAGES ---

def send_contact_email(name: str, email: str, service: str, message: str, phone: Optional[str] = None) -> Optional[str]:
    """Notify staff about a contact form submission."""
    body = _field_rows([("Name", name), ("Email", email), ("Phone", phone), ("Service", service)])
    body += f'\n<p style="margin:12px 0 0 0"><strong>Message:</strong></p>\n<div>{_message_html(message)}</div>'
    text = f"Name: {name}\nEmail: {email}\nPhone: {phone or 'N/A'}\nService: {service}\n\nMessage:\n{message}"
    html_body = render_base_email(
        title=f"New contact request - {service}",
        body_html=body,
        preheader=f"New contact request via website - {service}",
        cta=_website_cta("Open Dashboard"),
    )
    return _send_if_configured("contact", _staff_recipient(), f"New contact request from {name} - {service}", text, html_body)


def send_contact_confirmation_email(name: str, email: str, message: str) -> Optional[str]:
    brand_name = _brand()["name"]
    body = (
        f"<p>Hi <strong>{html.escape(name)}</strong>,</p>"
        f"<p>Thank you for reaching out to <strong>{html.escape(brand_name)}</strong>! "
        "We have received your message and will get back to you soon.</p>"
        f'<p style="margin:12px 0 0 0"><strong>Your message:</strong></p><div>{_message_html(message)}</div>'
        f'<p style="margin-top:18px">Best regards,<br/>{html.escape(brand_name)} Team</p>'
    )
    text = (
        f"Hi {name},\n\nThank you for reaching out to {brand_name}! We have received your message "
        f"and will get back to you soon.\n\nYour message:\n{message}\n\nBest regards,\n{brand_name} Team"
    )
    html_body = render_base_email(
        title=f"Thank you, {name}!",
        body_html=body,
        preheader=f"Thank you for contacting {brand_name}",
        cta=_website_cta(f"Visit {brand_name}"),
    )
    return _send_if_configured("contact confirmation", email, f"Thank you for contacting {brand_name}", text, html_body)


def send_inquiry_email(inquiry: dict) -> Optional[str]:
    """Notify staff about an inquiry submission."""
    fields = [
        ("Name", inquiry["name"]),
        ("Email", inquiry["email"]),
        ("Phone", inquiry.get("phone")),
        ("Company", inquiry.get("company")),
        ("Subject", inquiry["subject"]),
        ("Service", inquiry.get("service")),
    ]
    body = _field_rows(fields)
    body += f'\n<p style="margin:12px 0 0 0"><strong>Message:</strong></p>\n<div>{_message_html(inquiry["message"])}</div>'
    text = "\n".join(f"{label}: {value or 'N/A'}" for label, value in fields) + f"\n\nMessage:\n{inquiry['message']}"
    html_body = render_base_email(
        title=f"New inquiry - {inquiry['subject']}",
        body_html=body,
        preheader=f"New inquiry via website - {inquiry['subject']}",
        cta=_website_cta("Open Dashboard"),
    )
    return _send_if_configured(
        "inquiry", _staff_recipient(), f"New inquiry from {inquiry['name']} - {inquiry['subject']}", text, html_body
    )


def send_inquiry_confirmation_email(inquiry: dict) -> Optional[str]:
    brand_name = _brand()["name"]
    name = inquiry["name"]
    body = (
        f"<p>Hi <strong>{html.escape(name)}</strong>,</p>"
        f"<p>Thank you for your inquiry to <strong>{html.escape(brand_name)}</strong>! "
        "We have received your message and will get back to you soon.</p>"
        f'<p style="margin:12px 0 0 0"><strong>Subject:</strong> {html.escape(inquiry["subject"])}</p>'
        f'<p style="margin:12px 0 0 0"><strong>Your message:</strong></p><div>{_message_html(inquiry["message"])}</div>'
        f'<p style="margin-top:18px">Best regards,<br/>{html.escape(brand_name)} Team</p>'
    )
    text = (
        f"Hi {name},\n\nThank you for your inquiry to {brand_name}! We have received your message "
        f"and will get back to you soon.\n\nSubject: {inquiry['subject']}\n\nYour message:\n{inquiry['message']}"
        f"\n\nBest regards,\n{brand_name} Team"
    )
    html_body = render_base_email(
        title=f"Thank you, {name}!",
        body_html=body,
        preheader=f"Thank you for your inquiry to {brand_name}",
        cta=_website_cta(f"Visit {brand_name}"),
    )
    return _send_if_configured(
        "inquiry confirmation", inquiry["email"], f"Thank you for your inquiry - {brand_name}", text, html_body
    )


def send_job_application_email(application: dict) -> Optional[str]:
    """Notify staff about a new career application."""
    fields = [
        ("Position", application["job_title"]),
        ("Name", application["name"]),
        ("Email", application["email"]),
        ("Phone", application.get("phone")),
        ("LinkedIn", application.get("linkedin_url")),
        ("Portfolio", application.get("portfolio_url")),
    ]
    body = _field_rows(fields)
    cover_letter = application.get("cover_letter")
    if cover_letter:
        body += f'\n<p style="margin:12px 0 0 0"><strong>Cover letter:</strong></p>\n<div>{_message_html(cover_letter)}</div>'
    text = "\n".join(f"{label}: {value or 'N/A'}" for label, value in fields)
    if cover_letter:
        text += f"\n\nCover letter:\n{cover_letter}"
    html_body = render_base_email(
        title=f"New application - {application['job_title']}",
        body_html=body,
        preheader=f"New job application for {application['job_title']}",
    )
    return _send_if_configured(
        "job application",
        _staff_recipient(),
        f"New application from {application['name']} - {application['job_title']}",
        text,
        html_body,
    )


def send_otp_email(to: str, code: str, ttl_minutes: int) -> str:
    """Email a one-time code to the address being verified. Never skipped."""
    body = (
        "<p>Use the code below to confirm this address for your admin account.</p>"
        f'<p style="font-size:28px;font-weight:bold;letter-spacing:6px;margin:20px 0">{html.escape(code)}</p>'
        f"<p>The code expires in {ttl_minutes} minutes. If you did not request it, ignore this email.</p>"
    )
    text = f"Your OTP code is: {code}\n\nIt expires in {ttl_minutes} minutes."
    html_body = render_base_email(
        title="Confirm your new email",
        body_html=body,
        preheader="Your verification code",
    )
    return send_email(to, "Your OTP for Email Update", text, html_body)


def send_test_email() -> str:
    to = os.getenv("EMAIL_TO") or os.getenv("SMTP_USER") or "recipient@example.com"
    html_body = render_base_email(
        title="Email Test Successful",
        body_html=(
            "<p>This is a <strong>test</strong> message from the <code>/test-email</code> endpoint.</p>"
            "<p>If you can see this, SMTP is working correctly.</p>"
        ),
        preheader="Testing your email configuration",
        cta=_website_cta("Visit Website"),
    )
    return send_email(
        to,
        f"Test email from {_brand()['name']} Backend",
        "This is a test message from the /test-email endpoint.",
        html_body,
    )
