import logging
from dataclasses import dataclass
from typing import Optional

import requests

from apps.api.app.core.config import settings

logger = logging.getLogger("notifier")


@dataclass(frozen=True)
class Notification:
    user_id: str
    title: str
    body: str
    url: str = "/dashboard?tab=overview"
    account_id: Optional[str] = None
    kind: str = "info"


class Notifier:
    """
    Best-effort delivery: web-push gateway first, Telegram as a broadcast copy.
    ``send`` never raises; it returns whether at least one channel accepted.
    """

    def __init__(
        self,
        push_url: str = "",
        push_token: str = "",
        telegram_token: str = "",
        telegram_chat_id: str = "",
        timeout: float = 8.0,
        session: Optional[requests.Session] = None,
    ):
        self.push_url = push_url
        self.push_token = push_token
        self.telegram_token = telegram_token
        self.telegram_chat_id = telegram_chat_id
        self.timeout = timeout
        self.http = session or requests.Session()

    @classmethod
    def from_settings(cls) -> "Notifier":
        return cls(
            push_url=settings.PUSH_GATEWAY_URL,
            push_token=settings.PUSH_GATEWAY_TOKEN,
            telegram_token=settings.TELEGRAM_BOT_TOKEN,
            telegram_chat_id=settings.TELEGRAM_CHAT_ID,
            timeout=settings.NOTIFY_TIMEOUT_SECONDS,
        )

    def send(self, notification: Notification) -> bool:
        delivered = False
        if self.push_url:
            delivered = self._send_push(notification) or delivered
        if self.telegram_token and self.telegram_chat_id:
            delivered = self._send_telegram(notification) or delivered
        if not self.push_url and not (self.telegram_token and self.telegram_chat_id):
            logger.debug("No notification channel configured, dropping %r", notification.title)
        return delivered

    def _send_push(self, notification: Notification) -> bool:
        headers = {}
        if self.push_token:
            headers["Authorization"] = f"Bearer {self.push_token}"
        payload = {
            "user_id": notification.user_id,
            "title": notification.title,
            "body": notification.body,
            "url": notification.url,
            "type": notification.kind,
            "account_id": notification.account_id,
        }
        try:
            response = self.http.post(self.push_url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Push notification failed for user %s: %s", notification.user_id, exc)
            return False
        return True

    def _send_telegram(self, notification: Notification) -> bool:
        url = f"https://api.telegram.org/bot{self.telegram_token}/sendMessage"
        payload = {
            "chat_id": self.telegram_chat_id,
            "text": f"<b>{notification.title}</b>\n{notification.body}",
            "parse_mode": "HTML",
            "disable_web_page_preview": True
        }
        try:
            response = self.http.post(url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Telegram notification failed: %s", exc)
            return False
        return True
