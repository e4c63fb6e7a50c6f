import logging
from typing import List

import httpx

from app.core.errors import EmailDeliveryError

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class EmailSender:
    """Sends transactional mail through the Resend HTTP API."""

    def __init__(self, api_key: str, sender: str, reply_to: str = "", timeout: float = 10.0):
        self.api_key = api_key
        self.sender = sender
        self.reply_to = reply_to
        self.timeout = timeout

    def send(self, to: List[str], subject: str, html: str) -> str:
        if not self.api_key:
            logger.error("RESEND_API_KEY is not set, cannot send email")
            raise EmailDeliveryError()

        payload = {"from": self.sender, "to": to, "subject": subject, "html": html}
        if self.reply_to:
            payload["reply_to"] = self.reply_to

        try:
            response = httpx.post(
                RESEND_API_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Email delivery failed subject={subject!r} error={e}")
            raise EmailDeliveryError() from e

        message_id = response.json().get("id", "")
        logger.info(f"Email sent id={message_id} subject={subject!r}")
        return message_id
