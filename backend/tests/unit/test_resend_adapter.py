"""Tests for the Resend email adapter and the sender factory."""

import json
from unittest.mock import patch

import httpx
import pytest
from pydantic import SecretStr

from taskboard_auth.providers.email.mock_adapter import MockEmailSender
from taskboard_auth.providers.email.resend_adapter import ResendEmailSender
from taskboard_auth.providers.factory import get_email_sender

_RealAsyncClient = httpx.AsyncClient


def _client_with(handler):
    def factory(*args, **kwargs):
        return _RealAsyncClient(transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def sender():
    return ResendEmailSender(api_key="re_test", sender="noreply@example.com")


class TestResendEmailSender:
    async def test_posts_message(self, sender):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "email-1"})

        with patch.object(httpx, "AsyncClient", _client_with(handler)):
            result = await sender.send(to="a@example.com", subject="Hi", html="<p>x</p>")

        assert result.success is True
        assert result.error is None
        assert seen[0].headers["Authorization"] == "Bearer re_test"
        body = json.loads(seen[0].content)
        assert body == {
            "from": "noreply@example.com",
            "to": "a@example.com",
            "subject": "Hi",
            "html": "<p>x</p>",
        }

    async def test_http_error_status_returns_failure(self, sender):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json={"message": "bad"})

        with patch.object(httpx, "AsyncClient", _client_with(handler)):
            result = await sender.send(to="a@example.com", subject="Hi", html="x")

        assert result.success is False
        assert result.error == "Resend returned HTTP 422"

    async def test_transport_error_returns_failure(self, sender):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        with patch.object(httpx, "AsyncClient", _client_with(handler)):
            result = await sender.send(to="a@example.com", subject="Hi", html="x")

        assert result.success is False
        assert result.error == "ConnectError"


class TestGetEmailSender:
    def test_mock_without_api_key_outside_production(self, settings):
        assert isinstance(get_email_sender(settings), MockEmailSender)

    def test_resend_when_key_configured(self, settings):
        configured = settings.model_copy(update={"resend_api_key": SecretStr("re_live")})
        result = get_email_sender(configured)
        assert isinstance(result, ResendEmailSender)
        assert result.api_key == "re_live"
        assert result.sender == settings.email_from
