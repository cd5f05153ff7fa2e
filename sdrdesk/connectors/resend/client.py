"""SDR Desk — Resend Email Client.

Single-attempt delivery: a failed send is reported to the caller, who decides
whether it matters. Nothing here retries.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from sdrdesk.config import settings
from sdrdesk.core.errors import NotifierError
from sdrdesk.core.logging import get_logger

logger = get_logger("resend.client")


@dataclass
class EmailDelivery:
    id: str


def _json_object(resp: httpx.Response) -> Dict[str, Any]:
    """Response body as a dict; {} when it is not a JSON object."""
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class ResendClient:
    """Async HTTP client for the Resend email API."""

    def __init__(
        self,
        api_key: str | None = None,
        sender: str | None = None,
        recipients: List[str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.sender = sender or settings.report_email_from
        self.recipients = recipients if recipients is not None else settings.report_email_to
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def is_available(self) -> bool:
        return bool(self.api_key and self.recipients)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=settings.resend_base_url,
                timeout=settings.notifier_timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def send(self, subject: str, html: str, text: str | None = None) -> EmailDelivery:
        """Send one message to the configured recipients."""
        if not self.is_available():
            raise NotifierError("Email delivery is not configured")

        body: Dict[str, Any] = {
            "from": self.sender,
            "to": self.recipients,
            "subject": subject,
            "html": html,
        }
        if text:
            body["text"] = text

        client = await self._get_client()
        try:
            resp = await client.post(
                "/emails",
                json=body,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.RequestError as e:
            raise NotifierError(f"Email request failed: {e}") from e

        data = _json_object(resp)
        if resp.status_code >= 400:
            message = data.get("message") or resp.text
            raise NotifierError(
                f"Email provider error ({resp.status_code}): {message}",
                status_code=resp.status_code,
            )

        delivery_id = data.get("id")
        if not isinstance(delivery_id, str) or not delivery_id:
            raise NotifierError(
                f"Email provider returned no message id ({resp.status_code})",
                status_code=resp.status_code,
            )
        logger.info(f"📧 Email accepted by provider: {delivery_id}")
        return EmailDelivery(id=delivery_id)
