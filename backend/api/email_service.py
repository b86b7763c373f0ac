"""
Transactional auth e-mails (sign-up confirmation, password reset, magic link)
sent through the Resend HTTP API.
"""
import logging
from typing import Dict, Optional

import requests

from core import config
from core.errors import UpstreamError, ValidationError

logger = logging.getLogger("email-service")

_LAYOUT = """<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <div style="background: linear-gradient(135deg, #3B82F6, #1E40AF); padding: 40px; text-align: center;">
    <h1 style="color: white; margin: 0; font-size: 28px;">{heading}</h1>
    <p style="color: #E5E7EB; margin: 10px 0 0 0;">{subheading}</p>
  </div>
  <div style="padding: 40px; background: white;">
    <h2 style="color: #1F2937; margin-bottom: 20px;">{title}</h2>
    <p style="color: #6B7280; line-height: 1.6; margin-bottom: 30px;">{body}</p>
    <div style="text-align: center; margin: 40px 0;">
      <a href="{link}" style="background: #3B82F6; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; font-weight: 600; display: inline-block;">{button}</a>
    </div>
    <p style="color: #9CA3AF; font-size: 14px; margin-top: 30px;">{footer}</p>
  </div>
</div>"""

EMAIL_TEMPLATES: Dict[str, Dict[str, str]] = {
    "signup": {
        "subject": "Confirm your email - TranscriptIQ",
        "heading": "Welcome to TranscriptIQ!",
        "subheading": "Interview Analysis Platform",
        "title": "Confirm your email address",
        "body": "Thank you for signing up! Please click the button below to confirm your email address and complete your registration.",
        "button": "Confirm Email Address",
        "footer": "If you didn't create an account with TranscriptIQ, you can safely ignore this email.",
        "path": "/auth/confirm?token={token}&type=signup",
    },
    "recovery": {
        "subject": "Reset your password - TranscriptIQ",
        "heading": "Password Reset",
        "subheading": "TranscriptIQ",
        "title": "Reset your password",
        "body": "You requested a password reset for your TranscriptIQ account. Click the button below to set a new password.",
        "button": "Reset Password",
        "footer": "If you didn't request a password reset, you can safely ignore this email.",
        "path": "/auth/reset-password?token={token}",
    },
    "magic_link": {
        "subject": "Sign in to TranscriptIQ",
        "heading": "Sign In",
        "subheading": "TranscriptIQ",
        "title": "Sign in to your account",
        "body": "Click the button below to sign in to your TranscriptIQ account.",
        "button": "Sign In",
        "footer": "This link will expire in 1 hour for security reasons.",
        "path": "/auth/confirm?token={token}&type=magiclink",
    },
}


def render_auth_email(email_type: str, token: str, redirect_to: Optional[str] = None) -> Dict[str, str]:
    """
    Build subject and HTML for an auth e-mail.

    Raises:
        ValidationError: unsupported e-mail type
    """
    template = EMAIL_TEMPLATES.get(email_type)
    if template is None:
        raise ValidationError(f"Unsupported email type: {email_type}")

    base_url = (redirect_to or config.APP_BASE_URL).rstrip("/")
    link = base_url + template["path"].format(token=token)
    html = _LAYOUT.format(link=link, **{k: v for k, v in template.items() if k not in ("subject", "path")})
    return {"subject": template["subject"], "html": html}


def send_auth_email(email: str, email_type: str, token: str, redirect_to: Optional[str] = None) -> Optional[str]:
    """
    Send an auth e-mail.

    Returns:
        str: Provider message id

    Raises:
        ValidationError: missing address or unsupported type
        UpstreamError: provider not configured or returned non-2xx
    """
    if not email:
        raise ValidationError("Email address is required")

    message = render_auth_email(email_type, token, redirect_to)

    if not config.RESEND_API_KEY:
        raise UpstreamError("RESEND_API_KEY not configured")

    logger.info(f"📧 Sending {email_type} email to {email}")

    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {config.RESEND_API_KEY}"
    }
    payload = {
        "from": config.EMAIL_FROM,
        "to": [email],
        "subject": message["subject"],
        "html": message["html"]
    }

    try:
        response = requests.post(config.RESEND_API_URL, headers=headers, json=payload, timeout=30)
    except requests.RequestException as e:
        logger.error(f"❌ Email provider unreachable: {e}")
        raise UpstreamError(f"Email provider error: {e}") from e

    if not response.ok:
        logger.error(f"❌ Email provider error {response.status_code}: {response.text}")
        raise UpstreamError(f"Email provider error: {response.status_code} {response.text}")

    try:
        message_id = response.json().get("id")
    except ValueError:
        message_id = None
    logger.info(f"✅ Email sent successfully: {message_id}")
    return message_id
