"""HTTP client for the external scoring oracle."""

import logging
import threading
import time
from typing import Any, Dict, Optional

import requests

from ..config import OracleSettings, Settings
from ..exceptions import OracleResponseError, OracleTransportError, PipelineCancelled

logger = logging.getLogger(__name__)


class ScoringOracle:
    """Chat-completions client that returns the raw assistant message.

    Each request is retried with a linearly increasing delay on transport
    errors and 5xx responses. 2xx and 4xx responses are returned on the
    first attempt.
    """

    def __init__(
        self,
        settings: OracleSettings,
        session: Optional[requests.Session] = None,
        cancel_event: Optional[threading.Event] = None
    ):
        self.settings = settings
        self.session = session or requests.Session()
        self.cancel_event = cancel_event

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> 'ScoringOracle':
        """Build a client, failing fast when no API key is configured."""
        settings.require_api_key()
        return cls(settings.oracle, **kwargs)

    def _headers(self) -> Dict[str, str]:
        return {
            'Authorization': f"Bearer {self.settings.api_key}",
            'Content-Type': 'application/json',
        }

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _backoff(self, seconds: float):
        # Wakes early when the run is cancelled
        if self.cancel_event is not None:
            self.cancel_event.wait(seconds)
        else:
            time.sleep(seconds)

    def post_with_retry(self, payload: Dict[str, Any]) -> requests.Response:
        """POST the payload, retrying transport failures and server errors."""
        retries = max(1, self.settings.max_retries)
        delay = self.settings.base_delay
        last_error: Optional[Exception] = None

        for attempt in range(retries):
            if self._cancelled():
                raise PipelineCancelled("Run cancelled while waiting for the oracle")
            try:
                response = self.session.post(
                    self.settings.api_url,
                    headers=self._headers(),
                    json=payload,
                    timeout=self.settings.timeout
                )
                if response.status_code < 500:
                    return response
                last_error = OracleResponseError(
                    f"Oracle server error {response.status_code}",
                    status_code=response.status_code,
                    body=response.text
                )
                logger.warning(
                    "Oracle returned %s (attempt %d/%d)", response.status_code, attempt + 1, retries
                )
            except requests.exceptions.RequestException as e:
                last_error = e
                logger.warning("Oracle request failed (attempt %d/%d): %s", attempt + 1, retries, e)

            if attempt < retries - 1:
                self._backoff(delay * (attempt + 1))

        raise OracleTransportError(f"Max retries ({retries}) exceeded: {last_error}")

    def complete(self, system_prompt: str, user_prompt: str, max_tokens: Optional[int] = None) -> str:
        """Send one prompt and return the assistant's message content.

        Raises:
            OracleTransportError: If every attempt failed.
            OracleResponseError: On a non-success status or empty content.
        """
        payload = {
            'model': self.settings.model,
            'messages': [
                {'role': 'system', 'content': system_prompt},
                {'role': 'user', 'content': user_prompt},
            ],
            'temperature': self.settings.temperature,
            'max_tokens': max_tokens or self.settings.single_max_tokens,
        }

        start_time = time.time()
        response = self.post_with_retry(payload)

        if not response.ok:
            logger.error("Oracle error %s: %s", response.status_code, response.text[:500])
            raise OracleResponseError(
                f"AI service error ({response.status_code})",
                status_code=response.status_code,
                body=response.text
            )

        try:
            data = response.json()
        except ValueError as e:
            raise OracleResponseError(f"Oracle returned non-JSON body: {e}", body=response.text) from e

        try:
            content = data['choices'][0]['message']['content'] or ''
        except (KeyError, IndexError, TypeError):
            content = ''
        if not content:
            raise OracleResponseError("Empty response from AI", status_code=response.status_code)

        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug("Oracle call completed in %dms (%d chars)", duration_ms, len(content))
        return content
