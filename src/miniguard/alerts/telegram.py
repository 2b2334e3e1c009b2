"""
Telegram Alert Dispatcher
=========================

Sends motion alerts through the Telegram Bot API.

Request Shape:
    GET {base}/bot{token}/sendMessage?chat_id={chatId}&text={urlEncodedMessage}

Design Rules:
    - Exactly one request per AlertEvent, no retries, no queue
    - Delivery is best-effort: transport errors and non-2xx responses
      are logged and reported as False, never raised
    - The bot token never appears in log output
"""

import logging
from typing import Optional, Protocol
from urllib.parse import quote, quote_plus

import requests

from miniguard.models.alert import AlertEvent
from miniguard.models.credentials import Credentials


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.telegram.org"
DEFAULT_TIMEOUT_SECONDS = 10.0


class AlertDispatcher(Protocol):
    """
    Protocol for alert transports.

    Implemented by TelegramDispatcher; the test suite substitutes
    recording and failing fakes.
    """

    def dispatch(self, event: AlertEvent, credentials: Credentials) -> bool:
        """
        Deliver one alert.

        Returns:
            True if the transport accepted the alert
        """
        ...


def build_url(base_url: str, credentials: Credentials, text: str) -> str:
    """
    Build the sendMessage URL with every dynamic value percent-encoded.

    Args:
        base_url: API root, e.g. https://api.telegram.org
        credentials: Token and chat id
        text: Message text (UTF-8)

    Returns:
        Fully encoded request URL
    """
    return (
        f"{base_url.rstrip('/')}/bot{quote(credentials.bot_token, safe=':')}"
        f"/sendMessage?chat_id={quote_plus(credentials.chat_id)}"
        f"&text={quote_plus(text)}"
    )


class TelegramDispatcher:
    """
    Alert dispatcher backed by a ``requests.Session``.

    Attributes:
        base_url: Telegram Bot API root
        timeout: Per-request timeout in seconds

    Example:
        dispatcher = TelegramDispatcher()
        dispatcher.dispatch(AlertEvent.from_score(7200), creds)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._owns_session = session is None
        self._session = session or requests.Session()

        self.sent_count: int = 0
        self.failure_count: int = 0

    def dispatch(self, event: AlertEvent, credentials: Credentials) -> bool:
        url = build_url(self.base_url, credentials, event.message)

        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            self.failure_count += 1
            # Exception text can embed the URL, so only the type is logged
            logger.error(
                f"Telegram alert failed (score={event.score}): {type(e).__name__}"
            )
            return False

        if not response.ok:
            self.failure_count += 1
            logger.warning(
                f"Telegram alert rejected (score={event.score}): "
                f"HTTP {response.status_code}"
            )
            return False

        self.sent_count += 1
        logger.debug(f"Telegram alert delivered (score={event.score})")
        return True

    def close(self) -> None:
        """Close the HTTP session if this dispatcher created it."""
        if self._owns_session:
            self._session.close()

    def get_metrics(self) -> dict:
        return {
            "sent_count": self.sent_count,
            "failure_count": self.failure_count,
        }
