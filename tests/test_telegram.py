"""
Telegram Dispatcher Tests
=========================

HTTP is faked with a mocked requests.Session; no network access.
"""

import logging
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlsplit

import pytest
import requests

from miniguard.alerts.telegram import TelegramDispatcher, build_url
from miniguard.models.alert import AlertEvent
from miniguard.models.credentials import Credentials


@pytest.fixture
def session():
    session = MagicMock(spec=requests.Session)
    session.get.return_value = MagicMock(ok=True, status_code=200)
    return session


class TestBuildUrl:
    """Tests for sendMessage URL construction."""

    def test_template(self, credentials):
        url = build_url("https://api.telegram.org", credentials, "hello")
        assert url == (
            "https://api.telegram.org/bot123456:ABC-DEF"
            "/sendMessage?chat_id=987654321&text=hello"
        )

    def test_message_is_percent_encoded(self, credentials):
        message = AlertEvent.from_score(7321).message
        url = build_url("https://api.telegram.org", credentials, message)

        query = urlsplit(url).query
        assert " " not in query
        assert "⚠" not in url
        assert parse_qs(query)["text"] == [message]

    def test_reserved_characters_in_ids_are_encoded(self):
        creds = Credentials(bot_token="1:a/b", chat_id="@my channel&x=1")
        url = build_url("https://example.test/", creds, "a&b")

        parts = urlsplit(url)
        assert parts.path == "/bot1:a%2Fb/sendMessage"
        assert parse_qs(parts.query) == {"chat_id": ["@my channel&x=1"], "text": ["a&b"]}


class TestDispatch:
    """Tests for TelegramDispatcher.dispatch()."""

    def test_success(self, session, credentials):
        dispatcher = TelegramDispatcher(session=session, timeout=3.0)
        event = AlertEvent.from_score(6000)

        assert dispatcher.dispatch(event, credentials) is True

        session.get.assert_called_once_with(
            build_url("https://api.telegram.org", credentials, event.message),
            timeout=3.0,
        )
        assert dispatcher.get_metrics() == {"sent_count": 1, "failure_count": 0}

    def test_custom_base_url(self, session, credentials):
        dispatcher = TelegramDispatcher(base_url="http://localhost:8081", session=session)
        dispatcher.dispatch(AlertEvent.from_score(6000), credentials)

        url = session.get.call_args.args[0]
        assert url.startswith("http://localhost:8081/bot123456:ABC-DEF/sendMessage?")

    def test_non_success_status(self, session, credentials):
        session.get.return_value = MagicMock(ok=False, status_code=401)
        dispatcher = TelegramDispatcher(session=session)

        assert dispatcher.dispatch(AlertEvent.from_score(6000), credentials) is False
        assert dispatcher.failure_count == 1

    @pytest.mark.parametrize(
        "error",
        [
            requests.ConnectionError("boom"),
            requests.Timeout("slow"),
            requests.RequestException("generic"),
        ],
    )
    def test_transport_error_is_swallowed(self, session, credentials, error):
        session.get.side_effect = error
        dispatcher = TelegramDispatcher(session=session)

        assert dispatcher.dispatch(AlertEvent.from_score(6000), credentials) is False
        assert dispatcher.failure_count == 1

    def test_token_not_logged(self, session, credentials, caplog):
        session.get.side_effect = requests.ConnectionError(
            "https://api.telegram.org/bot123456:ABC-DEF/sendMessage"
        )
        dispatcher = TelegramDispatcher(session=session)

        with caplog.at_level(logging.DEBUG, logger="miniguard.alerts.telegram"):
            dispatcher.dispatch(AlertEvent.from_score(6000), credentials)

        assert caplog.records
        assert credentials.bot_token not in caplog.text

    def test_close_leaves_injected_session_open(self, session):
        TelegramDispatcher(session=session).close()
        session.close.assert_not_called()


class TestAlertEvent:
    """Tests for the AlertEvent model."""

    def test_message_contains_literal_score(self):
        event = AlertEvent.from_score(12345)
        assert event.score == 12345
        assert "12345" in event.message
        assert event.message == "⚠️ Motion detected! (12345 px)"

    def test_negative_score_rejected(self):
        with pytest.raises(ValueError):
            AlertEvent(score=-1, message="x")

    def test_immutable(self):
        event = AlertEvent.from_score(1)
        with pytest.raises(AttributeError):
            event.score = 2
