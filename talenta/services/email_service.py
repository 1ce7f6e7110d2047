"""Transactional email delivery over SMTP with an HTTP (Mailgun) fallback."""
from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Callable

import requests

from ..config import Settings, get_settings
from ..security.secrets import MissingSecretError, has_secret, require_secret

logger = logging.getLogger(__name__)

MAILGUN_API_BASE = "https://api.mailgun.net/v3"

Transport = Callable[[Settings, str, str, str], None]


class EmailDeliveryError(RuntimeError):
    """Raised when no configured transport could deliver a message."""


def _secret(name: str) -> str:
    try:
        return require_secret(name)
    except MissingSecretError as exc:
        raise EmailDeliveryError(str(exc)) from exc


def _smtp_transport(settings: Settings, to_address: str, subject: str, body: str) -> None:
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = str(settings.email_from_address)
    message["To"] = to_address
    message.set_content(body)

    username = (settings.email_username or "").strip()
    try:
        with smtplib.SMTP(settings.email_host, settings.email_port, timeout=20) as smtp:
            if settings.email_use_tls:
                smtp.starttls()
            if username:
                smtp.login(username, _secret("EMAIL_PASSWORD"))
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:  # pragma: no cover - network interactions
        raise EmailDeliveryError(f"SMTP delivery failed: {exc}") from exc


def _mailgun_transport(settings: Settings, to_address: str, subject: str, body: str) -> None:
    try:
        response = requests.post(
            f"{MAILGUN_API_BASE}/{settings.mailgun_domain}/messages",
            auth=("api", _secret("MAILGUN_API_KEY")),
            data={
                "from": str(settings.email_from_address),
                "to": to_address,
                "subject": subject,
                "text": body,
            },
            timeout=20,
        )
    except requests.RequestException as exc:  # pragma: no cover - network interactions
        raise EmailDeliveryError(f"Mailgun request failed: {exc}") from exc

    if response.status_code >= 400:
        logger.error("Mailgun returned %s: %s", response.status_code, response.text)
        raise EmailDeliveryError(f"Mailgun delivery failed with status {response.status_code}")


def configured_transports(settings: Settings | None = None) -> list[tuple[str, Transport]]:
    """Return the transports usable with the current settings, in preference order."""

    settings = settings or get_settings()
    if not settings.email_from_address:
        return []

    transports: list[tuple[str, Transport]] = []
    smtp_login_ready = not (settings.email_username or "").strip() or has_secret("EMAIL_PASSWORD")
    if settings.email_host and smtp_login_ready:
        transports.append(("smtp", _smtp_transport))
    if settings.mailgun_domain and has_secret("MAILGUN_API_KEY"):
        transports.append(("mailgun", _mailgun_transport))
    return transports


def send_email(to_address: str, subject: str, body: str) -> str:
    """Deliver a plaintext email and return the name of the transport that sent it.

    Transports are tried in order; the first success wins. Raises
    ``EmailDeliveryError`` when nothing is configured or every transport fails.
    """

    if not to_address or not subject or not body:
        raise EmailDeliveryError("Email payload is incomplete")

    settings = get_settings()
    transports = configured_transports(settings)
    if not transports:
        raise EmailDeliveryError("Email delivery is not configured. Provide SMTP settings or Mailgun credentials.")

    failures: list[str] = []
    for name, transport in transports:
        try:
            transport(settings, to_address, subject, body)
        except EmailDeliveryError as exc:
            logger.warning("%s transport failed for %s: %s", name, to_address, exc)
            failures.append(str(exc))
            continue
        return name

    raise EmailDeliveryError("; ".join(failures) or "All email transports failed")


def send_password_reset_email(to_address: str, code: str, *, ttl_minutes: int) -> str:
    settings = get_settings()
    base_url = settings.public_base_url.rstrip("/")
    body = (
        f"Your {settings.app_name} password reset code is {code}.\n\n"
        f"The code expires in {ttl_minutes} minutes. Enter it at {base_url}/reset-password "
        "to choose a new password.\n\n"
        "If you did not request a reset you can ignore this email."
    )
    return send_email(to_address, "Reset your Talenta password", body)


__all__ = [
    "EmailDeliveryError",
    "configured_transports",
    "send_email",
    "send_password_reset_email",
]
