"""
report_module/slack.py

Posts the report to a Slack channel through the Web API (chat.postMessage).

Delivery is best effort: failures are logged and reported as False, they
never abort the run (the checkpoint has already been written by then).
"""
from __future__ import annotations

import asyncio
from typing import Optional

import aiohttp

from scan_module.logger import get_child_logger

log = get_child_logger("slack")

SLACK_POST_URL = "https://slack.com/api/chat.postMessage"


class SlackNotifier:
    def __init__(
        self,
        token: str,
        channel_id: str,
        http_timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
        url: str = SLACK_POST_URL,
    ):
        self.token = token
        self.channel_id = channel_id
        self.http_timeout = http_timeout
        self.url = url
        self._session = session

    async def _post(self, s: aiohttp.ClientSession, text: str) -> bool:
        headers = {"Authorization": f"Bearer {self.token}"}
        payload = {"channel": self.channel_id, "text": text}
        async with s.post(self.url, json=payload, headers=headers) as r:
            body = await r.json(content_type=None)
        if r.status != 200 or not isinstance(body, dict) or not body.get("ok"):
            error = body.get("error") if isinstance(body, dict) else body
            log.error("Slack rejected the message (HTTP {}): {}", r.status, error)
            return False
        log.info("Results posted to Slack channel {}", self.channel_id)
        return True

    async def post(self, text: str) -> bool:
        if not text:
            log.info("Nothing to send to Slack")
            return False
        try:
            if self._session is not None:
                return await self._post(self._session, text)
            timeout = aiohttp.ClientTimeout(total=self.http_timeout)
            async with aiohttp.ClientSession(timeout=timeout) as s:
                return await self._post(s, text)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.error("Could not post to Slack: {}", e)
            return False
