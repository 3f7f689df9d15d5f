#!/usr/bin/env python3
"""
ntfy integration for benchmark completion notifications.

Publishes a short plain-text message to an ntfy topic over HTTP. Delivery is
best-effort: a failed notification never fails the benchmark run.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict

import requests

from core.config import NotificationSettings
from core.exceptions import NotificationChannelError

logger = logging.getLogger(__name__)

CHANNEL_NAME = "ntfy"
VALID_PRIORITIES = ("min", "low", "default", "high", "urgent", "1", "2", "3", "4", "5")


@dataclass(frozen=True)
class NtfyRequest:
    """Fully built ntfy publish request."""
    url: str
    topic: str
    body: str
    headers: Dict[str, str] = field(default_factory=dict)


class NtfyNotifier:
    """Handles sending notifications to an ntfy server."""

    def __init__(self, settings: NotificationSettings):
        """
        Initialize ntfy notifier.

        Args:
            settings: Notification settings (URL, topic, token, enabled flag)
        """
        self.settings = settings
        self.timeout = settings.timeout

    @property
    def enabled(self) -> bool:
        return self.settings.is_active()

    def build_request(self, title: str, message: str, priority: str = "default") -> NtfyRequest:
        """
        Build the publish request.

        Args:
            title: Notification title (sent as the Title header)
            message: Notification body
            priority: ntfy priority name or number

        Returns:
            NtfyRequest with URL, headers and body
        """
        if priority not in VALID_PRIORITIES:
            logger.warning(f"Unknown ntfy priority '{priority}', using 'default'")
            priority = "default"

        headers = {
            "Title": title,
            "Priority": priority,
        }
        if self.settings.token:
            headers["Authorization"] = f"Bearer {self.settings.token}"

        base_url = (self.settings.url or "").rstrip('/')
        return NtfyRequest(
            url=f"{base_url}/{self.settings.topic}",
            topic=self.settings.topic,
            body=message,
            headers=headers
        )

    def notify(self, title: str, message: str, priority: str = "default") -> bool:
        """
        Send a notification.

        Args:
            title: Notification title
            message: Notification body
            priority: ntfy priority

        Returns:
            True if sent successfully, False if disabled or delivery failed
        """
        if not self.enabled:
            logger.debug("ntfy notifications disabled, skipping")
            return False

        ntfy_request = self.build_request(title, message, priority)
        try:
            self._send(ntfy_request)
        except NotificationChannelError as e:
            logger.warning(f"{e.message}: {e.context['original_error']}")
            return False

        logger.info(f"Notification sent to {ntfy_request.url}")
        return True

    def _send(self, ntfy_request: NtfyRequest) -> None:
        """
        POST the request to the ntfy server.

        Raises:
            NotificationChannelError: On transport failure, unencodable headers
                or non-2xx status
        """
        try:
            response = requests.post(
                ntfy_request.url,
                data=ntfy_request.body.encode('utf-8'),
                headers=ntfy_request.headers,
                timeout=self.timeout
            )
        except (requests.RequestException, UnicodeError, ValueError) as e:
            raise NotificationChannelError(CHANNEL_NAME, "publish", e)

        if not 200 <= response.status_code < 300:
            error = RuntimeError(f"HTTP {response.status_code}: {response.text[:200]}")
            raise NotificationChannelError(CHANNEL_NAME, "publish", error)
