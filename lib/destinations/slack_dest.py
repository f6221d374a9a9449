import logging
import os
import requests
import time

from ..errors import DestinationConfigError, DispatchFailure
from ..formatter import AlertPayload
from .base import Destination


class SlackDestination(Destination):
    def __init__(self):
        self.webhook = os.getenv("SLACK_WEBHOOK_URL")
        self.token = os.getenv("SLACK_TOKEN")
        self.channel = os.getenv("SLACK_CHANNEL")

        if not self.webhook and not (self.token and self.channel):
            raise DestinationConfigError(
                "Slack selected but missing config. Provide SLACK_WEBHOOK_URL "
                "or both SLACK_TOKEN and SLACK_CHANNEL."
            )

    def send(self, p: AlertPayload) -> None:
        text = f":rotating_light: *{p.subject}*\n```{p.body}```"

        payload = {
            "channel": self.channel,
            "text": text,
            "username": "Cross-Account Access",
            "unfurl_links": False,
            "unfurl_media": False,
            "icon_emoji": ":warning:",
        }

        # retry up to 3 times with exponential backoff
        for attempt in range(3):
            try:
                if self.webhook:
                    resp = requests.post(self.webhook, json={"text": text}, timeout=(3, 10))
                else:  # token+channel
                    resp = requests.post(
                        "https://slack.com/api/chat.postMessage",
                        headers={"Authorization": f"Bearer {self.token}"},
                        json=payload,
                        timeout=(3, 10),
                    )
            except requests.RequestException as e:
                logging.warning("Slack request error (attempt %s): %s", attempt + 1, e)
                if attempt == 2:
                    raise DispatchFailure(f"SlackDestination: giving up after 3 attempts: {e}") from e
                time.sleep(2 ** attempt)
                continue

            # handle rate limit / transient server errors
            if resp.status_code == 200 and (self.webhook or resp.json().get("ok", False)):
                return
            if resp.status_code in (429, 500, 502, 503, 504) and attempt < 2:
                retry_after = int(resp.headers.get("Retry-After", "0"))
                sleep_for = max(retry_after, 2 ** attempt)
                logging.warning("SlackDestination: retrying after %s seconds (status %s)", sleep_for, resp.status_code)
                time.sleep(sleep_for)
                continue

            raise DispatchFailure(f"SlackDestination: failure [{resp.status_code}]: {resp.text}")
