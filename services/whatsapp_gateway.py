"""WhatsApp messaging through the Green API HTTP gateway."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from core import get_logger
from core.constants import GreenApiDefaults
from core.exceptions import CampaignNotFoundError, ConfigurationError, MessagingError
from services.campaigns import CampaignService
from utils.share_links import international_phone, short_campaign_url

logger = get_logger(__name__)

_START_RE = re.compile(GreenApiDefaults.START_PATTERN, re.IGNORECASE)

WELCOME_TEXT = "ברוך הבא להגרלה! 🎉\n{title}"
SHARE_TEXT = "כדי לשתף את ההגרלה עם חברים ולקבל עוד כרטיסים, שלח להם את הקישור הזה:\n{link}"


@dataclass(slots=True)
class StartRequest:
    """An incoming ``START_<campaign>`` message."""
    phone: str
    campaign_token: str


def parse_start_message(payload: Any) -> Optional[StartRequest]:
    """Extract a start request from a Green API webhook body.

    Only ``incomingMessageReceived`` text messages containing
    ``START_<id>`` are recognized; everything else yields None.
    """
    if not isinstance(payload, dict):
        return None
    if payload.get("typeWebhook") != "incomingMessageReceived":
        return None

    sender_data = payload.get("senderData") or {}
    message_data = payload.get("messageData") or {}
    sender = sender_data.get("sender") or sender_data.get("chatId") or ""
    phone = sender.split("@")[0]
    text = (
        (message_data.get("textMessageData") or {}).get("textMessage")
        or (message_data.get("extendedTextMessageData") or {}).get("textMessage")
        or ""
    )
    if not phone or not text:
        return None

    match = _START_RE.search(text)
    if not match:
        return None
    return StartRequest(phone=phone, campaign_token=match.group(1))


class GreenApiClient:
    """Minimal async client for the Green API ``waInstance`` endpoints."""

    def __init__(
        self,
        api_url: str,
        instance_id: str,
        token: str,
        timeout: int = GreenApiDefaults.TIMEOUT,
    ) -> None:
        if not api_url or not instance_id or not token:
            raise ConfigurationError(
                "Green API is not configured: set GREEN_API_URL, GREEN_API_INSTANCE_ID, GREEN_API_TOKEN"
            )
        self.api_url = api_url.rstrip("/")
        self.instance_id = instance_id
        self.token = token
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    @classmethod
    def from_config(cls, config) -> "GreenApiClient":
        if not config.whatsapp_configured:
            raise ConfigurationError("WhatsApp gateway is disabled or missing credentials")
        return cls(config.green_api_url, config.green_api_instance_id, config.green_api_token)

    def method_url(self, method: str) -> str:
        return f"{self.api_url}/waInstance{self.instance_id}/{method}/{self.token}"

    async def _post(self, method: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.method_url(method), json=body) as response:
                    if response.status >= 400:
                        text = await response.text()
                        raise MessagingError(f"Green API {method} failed: {response.status} {text}")
                    return await response.json()
        except aiohttp.ClientError as e:
            raise MessagingError(f"Green API {method} request failed: {e}") from e

    @staticmethod
    def _chat_id(phone: str) -> str:
        if not phone:
            raise MessagingError("phone is required")
        return f"{international_phone(phone)}{GreenApiDefaults.CHAT_SUFFIX}"

    async def send_text(self, phone: str, message: str) -> Dict[str, Any]:
        if not message:
            raise MessagingError("message is required")
        return await self._post("sendMessage", {"chatId": self._chat_id(phone), "message": message})

    async def send_file_by_url(
        self, phone: str, file_url: str, file_name: str, caption: str = ""
    ) -> Dict[str, Any]:
        if not file_url:
            raise MessagingError("file url is required")
        return await self._post(
            "sendFileByUrl",
            {
                "chatId": self._chat_id(phone),
                "urlFile": file_url,
                "fileName": file_name,
                "caption": caption,
            },
        )

    async def send_image(self, phone: str, image_url: str, caption: str = "") -> Dict[str, Any]:
        return await self.send_file_by_url(phone, image_url, "image.jpg", caption)

    async def send_video(self, phone: str, video_url: str, caption: str = "") -> Dict[str, Any]:
        return await self.send_file_by_url(phone, video_url, "video.mp4", caption)


class WhatsAppGateway:
    """Answers ``START_<campaign>`` messages with a welcome and a share link."""

    def __init__(self, client: GreenApiClient, campaigns: CampaignService, base_url: str) -> None:
        self.client = client
        self.campaigns = campaigns
        self.base_url = base_url

    async def handle_webhook(self, payload: Any) -> Dict[str, Any]:
        start = parse_start_message(payload)
        if start is None:
            return {"ok": True, "ignored": True}

        try:
            campaign = await self.campaigns.get_campaign(start.campaign_token)
        except CampaignNotFoundError:
            logger.warning(f"START message from {start.phone} for unknown campaign {start.campaign_token}")
            return {"ok": True, "ignored": True, "reason": "unknown_campaign"}

        link = short_campaign_url(self.base_url, campaign.id)
        await self.client.send_text(start.phone, WELCOME_TEXT.format(title=campaign.title))
        if campaign.share_image_url:
            await self.client.send_image(start.phone, campaign.share_image_url, campaign.title)
        if campaign.share_video_url:
            await self.client.send_video(start.phone, campaign.share_video_url, campaign.title)
        await self.client.send_text(start.phone, SHARE_TEXT.format(link=link))

        logger.info(f"Welcomed {start.phone} to campaign {campaign.id} over WhatsApp")
        return {"ok": True, "handled": True, "phone": start.phone, "campaign_id": campaign.id}
