"""Sending notifications to Slack and Telegram."""

from __future__ import annotations

import os
import re

import requests

TELEGRAM_API_BASE = "https://api.telegram.org"
_TIMEOUT = 30

_ENV_REF = re.compile(r"\$(?:\{([^}]*)\}|([A-Za-z0-9_]+))")


def _expand_env(text: str) -> str:
    return _ENV_REF.sub(
        lambda m: os.environ.get(m.group(1) if m.group(1) is not None else m.group(2), ""),
        text,
    )


class SlackNotification:
    """Posts messages to Slack channels through an incoming webhook."""

    def __init__(self, webhook_url: str, *channel_ids: str):
        self.webhook_url = webhook_url
        self.channel_ids = list(channel_ids)

    def send(self, title: str, message: str) -> None:
        """Post `message` to every channel; delivery failures are ignored."""
        for channel_id in self.channel_ids:
            try:
                requests.post(
                    self.webhook_url,
                    json={"channel": channel_id, "text": message},
                    timeout=_TIMEOUT,
                )
            except requests.RequestException:
                continue


class TelegramNotification:
    """Sends messages to Telegram chats through a bot."""

    def __init__(self, api_token: str, *chat_ids: int, api_base: str = TELEGRAM_API_BASE):
        self.api_token = api_token
        self.chat_ids = list(chat_ids)
        self.api_base = api_base.rstrip("/")
        self._token = _expand_env(api_token)

    def send(self, title: str, message: str) -> None:
        """Send the title and message to every chat; raises on a failed request."""
        endpoint = f"{self.api_base}/bot{self._token}/sendMessage"
        text = title + "\n" + message
        for chat_id in self.chat_ids:
            response = requests.post(
                endpoint,
                json={"chat_id": chat_id, "text": text, "parse_mode": "HTML"},
                timeout=_TIMEOUT,
            )
            response.raise_for_status()