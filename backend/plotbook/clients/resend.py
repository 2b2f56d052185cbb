from __future__ import annotations

import logging
from html import escape
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..config import settings
from ..errors import UpstreamFailure

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SentEmail:
    id: Optional[str]
    raw: dict[str, Any]


class ResendClient:
    def __init__(self) -> None:
        self.base = settings.resend_base_url.rstrip("/")
        self.api_key = settings.resend_api_key
        self.sender = settings.email_from

    def enabled(self) -> bool:
        return bool(self.api_key)

    def send_email(self, *, to: str, subject: str, html: str) -> SentEmail:
        if not self.api_key:
            raise UpstreamFailure("resend_api_key not set")

        url = f"{self.base}/emails"
        payload: dict[str, Any] = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            with httpx.Client(timeout=float(settings.email_timeout_seconds)) as client:
                r = client.post(url, json=payload, headers=headers)
                r.raise_for_status()
                data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning("email_send_failed", extra={"email": to, "error": str(e)})
            raise UpstreamFailure(f"email delivery failed: {e}")

        return SentEmail(id=data.get("id") if isinstance(data, dict) else None, raw=data if isinstance(data, dict) else {})


def invitation_email_html(*, inviter_name: str, invitation_url: str, ttl_days: int) -> str:
    return (
        "<h1>You've been invited to join Plotbook</h1>"
        f"<p>You've been invited to join Plotbook by {escape(inviter_name)}.</p>"
        "<p>Click the link below to create your account:</p>"
        f'<a href="{escape(invitation_url)}">Accept Invitation</a>'
        f"<p>This invitation expires in {ttl_days} days.</p>"
    )
