import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from needled.core.settings import NotificationConfig
from needled.services.reminders import PushTemplate

logger = logging.getLogger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


@dataclass(frozen=True)
class PushResult:
    success: bool
    error: Optional[str] = None

    @property
    def device_not_registered(self) -> bool:
        return self.error == "DeviceNotRegistered"


class NotificationSender:
    """Delivers reminders through the Expo push service and SendGrid.

    Failures are logged and reported through the return value; a reminder
    pass keeps going when one user's delivery fails.
    """

    def __init__(
        self,
        config: NotificationConfig,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config
        self.client = client or httpx.AsyncClient(timeout=config.timeout_seconds)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "NotificationSender":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def send_push(self, token: str, template: PushTemplate) -> PushResult:
        message = {
            "to": token,
            "title": template.title,
            "body": template.body,
            "data": template.data,
            "sound": "default",
            "priority": template.priority,
            "channelId": template.channel_id,
        }
        try:
            response = await self.client.post(
                self.config.expo_push_url,
                json=message,
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error("Expo push API error: %s", exc.response.status_code)
            return PushResult(success=False, error=f"HTTP {exc.response.status_code}")
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Failed to send push notification: %s", exc)
            return PushResult(success=False, error=str(exc))

        data = payload.get("data")
        ticket = data[0] if isinstance(data, list) and data else data or {}
        if ticket.get("status") == "error":
            error = (ticket.get("details") or {}).get("error") or ticket.get("message")
            logger.warning("Expo push ticket error: %s", error)
            return PushResult(success=False, error=error)
        return PushResult(success=True)

    async def send_email(self, to: str, subject: str, html: str) -> bool:
        if not self.config.sendgrid_api_key:
            logger.error("SendGrid API key is not configured")
            return False
        if not self.config.sendgrid_from_email:
            logger.error("SendGrid sender address is not configured")
            return False

        body = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.config.sendgrid_from_email},
            "subject": subject,
            "content": [{"type": "text/html", "value": html}],
        }
        try:
            response = await self.client.post(
                SENDGRID_SEND_URL,
                json=body,
                headers={"Authorization": f"Bearer {self.config.sendgrid_api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "SendGrid error",
                extra={"status_code": exc.response.status_code, "body": exc.response.text},
            )
            return False
        except httpx.HTTPError as exc:
            logger.error("Failed to send email: %s", exc)
            return False
        return True
