# log_analysis/claude_analyzer.py
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from .errors import ConfigError, UpstreamError
from .models import AppSettings, LogRecord

logger = logging.getLogger(__name__)

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"

PROMPT_PATH = Path(__file__).parent / "analysis_prompt.txt"


class ClaudeAnalyzer:
    """
    Uses the Anthropic Messages API to explain an error log against a
    snapshot of the repository that produced it.

    The reply is returned verbatim: no parsing, no truncation, and no
    fallback text when the call fails.
    """

    def __init__(self, settings: AppSettings, session: Optional[requests.Session] = None):
        """Loads the prompt template shipped next to this module."""
        self.settings = settings
        self.session = session or requests.Session()
        try:
            self.prompt_template = PROMPT_PATH.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ConfigError(f"Prompt file '{PROMPT_PATH.name}' not found.") from e

    def analyze(self, record: LogRecord, snapshot: str) -> str:
        """
        Asks Claude for the root cause, the responsible code and a suggested fix.

        Raises:
            ConfigError: If ANTHROPIC_API_KEY is not set.
            UpstreamError: If the request fails, Claude answers with a non-200
                status, or the response carries no content.
        """
        api_key = self.settings.anthropic_api_key
        if not api_key:
            raise ConfigError("ANTHROPIC_API_KEY not set")

        user_prompt = self.build_prompt(record, snapshot)
        request_body = self._build_request_body(user_prompt)
        logger.info(f"Sending {len(user_prompt)}-character prompt to {self.settings.anthropic_model}")

        try:
            response = self.session.post(
                ANTHROPIC_MESSAGES_URL,
                json=request_body,
                headers={
                    "x-api-key": api_key,
                    "anthropic-version": ANTHROPIC_VERSION,
                    "content-type": "application/json",
                },
                timeout=self.settings.http_timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            raise UpstreamError(f"claude request failed: {e}") from e

        if response.status_code != 200:
            raise UpstreamError(f"claude API error: {response.text}")

        try:
            response_body = response.json()
        except ValueError as e:
            raise UpstreamError(f"claude returned a non-JSON response: {e}") from e

        return self._extract_text_from_response(response_body)

    def build_prompt(self, record: LogRecord, snapshot: str) -> str:
        return self.prompt_template.format(
            severity=record.severity,
            timestamp=record.timestamp,
            message=record.text_payload,
            repo_code=snapshot,
        )

    def _build_request_body(self, user_prompt: str) -> Dict[str, Any]:
        return {
            "model": self.settings.anthropic_model,
            "max_tokens": self.settings.anthropic_max_tokens,
            "messages": [{"role": "user", "content": user_prompt}],
        }

    @staticmethod
    def _extract_text_from_response(body: Any) -> str:
        """Returns the first content block's text."""
        content = body.get("content") if isinstance(body, dict) else None
        if not content or not isinstance(content, list):
            raise UpstreamError("no content in Claude response")
        first = content[0]
        if not isinstance(first, dict):
            raise UpstreamError(f"unexpected content block in Claude response: {first!r}")
        return first.get("text", "")
