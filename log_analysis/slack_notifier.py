# log_analysis/slack_notifier.py
import logging
from typing import Optional

import requests

from .errors import ConfigError, UpstreamError
from .formatter import format_analysis_reply, format_error_alert
from .models import AppSettings, LogRecord

logger = logging.getLogger(__name__)

SLACK_POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"


class SlackNotifier:
    """
    Posts the error announcement and the threaded analysis reply to one
    preconfigured Slack channel through chat.postMessage.
    """

    def __init__(self, settings: AppSettings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()

    def post_error_alert(self, record: LogRecord) -> str:
        """
        Announces the log record in the channel.

        Returns:
            The `ts` Slack assigned to the message, used as the thread anchor.
        """
        return self._post_message(format_error_alert(record))

    def post_thread_reply(self, thread_ts: str, analysis: str) -> None:
        """Replies to the announcement identified by `thread_ts` with the analysis."""
        self._post_message(format_analysis_reply(analysis), thread_ts=thread_ts)

    def _post_message(self, text: str, thread_ts: Optional[str] = None) -> str:
        token = self.settings.slack_bot_token
        channel = self.settings.slack_channel
        if not token or not channel:
            raise ConfigError("SLACK_BOT_TOKEN or SLACK_CHANNEL not set")

        payload = {"channel": channel, "text": text}
        if thread_ts:
            payload["thread_ts"] = thread_ts

        try:
            response = self.session.post(
                SLACK_POST_MESSAGE_URL,
                json=payload,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.settings.http_timeout_seconds,
            )
            body = response.json()
        except requests.exceptions.RequestException as e:
            raise UpstreamError(f"slack request failed: {e}") from e
        except ValueError as e:
            raise UpstreamError(f"slack returned a non-JSON response: {e}") from e

        if not isinstance(body, dict):
            raise UpstreamError(f"unexpected slack response: {body!r}")
        # Slack reports failures with HTTP 200 and ok=false
        if not body.get("ok"):
            raise UpstreamError(f"slack API error: {body.get('error', 'unknown_error')}")

        return body.get("ts", "")
