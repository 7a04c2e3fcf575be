"""Outbound email through the Resend HTTP API."""

from __future__ import annotations

import html
import os

import requests
from flask import current_app
from requests import exceptions as requests_exceptions

RESEND_ENDPOINT = "https://api.resend.com/emails"
RESEND_DEFAULT_SENDER = "HRMS <no-reply@hrms.local>"


class EmailDeliveryError(RuntimeError):
    """Raised when an email could not be handed to the email service."""

    def __init__(self, user_message: str, original: Exception | None = None) -> None:
        super().__init__(user_message)
        self.user_message = user_message
        self.original = original


def _resolve_sender() -> str:
    sender = current_app.config.get("RESEND_DEFAULT_SENDER")
    if isinstance(sender, str) and sender.strip():
        return sender.strip()
    return RESEND_DEFAULT_SENDER


def _resend_api_key() -> str:
    api_key = current_app.config.get("RESEND_API_KEY")
    if isinstance(api_key, str):
        api_key = api_key.strip()
    if not api_key:
        api_key = os.environ.get("RESEND_API_KEY", "").strip()
    if not api_key:
        raise KeyError("RESEND_API_KEY")
    return api_key


def _post_to_resend(data: dict) -> None:
    headers = {
        "Authorization": f"Bearer {_resend_api_key()}",
        "Content-Type": "application/json",
    }
    response = requests.post(
        RESEND_ENDPOINT,
        headers=headers,
        json=data,
        timeout=current_app.config.get("RESEND_TIMEOUT", 15),
    )
    response.raise_for_status()


def send_email(*, subject: str, recipient: str, body: str, context: str) -> None:
    """Send a plain-text email and raise :class:`EmailDeliveryError` on failure."""

    cleaned_recipient = (recipient or "").strip()
    if not cleaned_recipient:
        raise EmailDeliveryError("No recipient email address was provided.")

    data = {
        "from": _resolve_sender(),
        "to": [cleaned_recipient],
        "subject": subject,
        "html": html.escape(body).replace("\n", "<br>"),
        "text": body,
    }

    try:
        _post_to_resend(data)
    except KeyError as exc:
        current_app.logger.warning("RESEND_API_KEY is not configured for %s emails.", context)
        raise EmailDeliveryError(
            f"Failed to send the {context} email: email service is not configured.", exc
        ) from exc
    except requests_exceptions.Timeout as exc:
        current_app.logger.warning("Failed to send %s email due to timeout: %s", context, exc)
        raise EmailDeliveryError(
            f"Failed to send the {context} email: the email service timed out.", exc
        ) from exc
    except requests_exceptions.HTTPError as exc:
        status_code = getattr(getattr(exc, "response", None), "status_code", None)
        current_app.logger.warning(
            "Failed to send %s email (status %s): %s", context, status_code, exc
        )
        if status_code in {401, 403}:
            message = f"Failed to send the {context} email: authentication failed."
        else:
            message = f"Failed to send the {context} email: the email service returned an error."
        raise EmailDeliveryError(message, exc) from exc
    except requests_exceptions.RequestException as exc:
        current_app.logger.warning("Failed to send %s email: %s", context, exc, exc_info=exc)
        raise EmailDeliveryError(f"Failed to send the {context} email.", exc) from exc
