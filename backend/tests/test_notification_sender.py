import json

import httpx
import pytest
import respx

from needled.core.settings import NotificationConfig
from needled.services.notification_sender import SENDGRID_SEND_URL, NotificationSender
from needled.services.reminders import PUSH_TEMPLATES

EXPO_URL = "https://exp.host/--/api/v2/push/send"
TOKEN = "ExponentPushToken[abc123]"


def _config(**overrides) -> NotificationConfig:
    data = {"sendgrid_api_key": "SG.test", "sendgrid_from_email": "hello@needled.test"}
    data.update(overrides)
    return NotificationConfig(**data)


@pytest.mark.asyncio
@respx.mock
async def test_send_push_success():
    route = respx.post(EXPO_URL).mock(
        return_value=httpx.Response(200, json={"data": {"status": "ok", "id": "ticket-1"}})
    )

    async with NotificationSender(_config()) as sender:
        result = await sender.send_push(TOKEN, PUSH_TEMPLATES["injection"])

    assert result.success
    sent = json.loads(route.calls.last.request.content)
    assert sent["to"] == TOKEN
    assert sent["channelId"] == "injection-reminders"
    assert sent["priority"] == "high"


@pytest.mark.asyncio
@respx.mock
async def test_send_push_device_not_registered():
    respx.post(EXPO_URL).mock(
        return_value=httpx.Response(
            200,
            json={
                "data": [
                    {
                        "status": "error",
                        "message": "not a registered push notification recipient",
                        "details": {"error": "DeviceNotRegistered"},
                    }
                ]
            },
        )
    )

    async with NotificationSender(_config()) as sender:
        result = await sender.send_push(TOKEN, PUSH_TEMPLATES["habit"])

    assert not result.success
    assert result.device_not_registered


@pytest.mark.asyncio
@respx.mock
async def test_send_push_http_error_is_reported_not_raised():
    respx.post(EXPO_URL).mock(return_value=httpx.Response(503))

    async with NotificationSender(_config()) as sender:
        result = await sender.send_push(TOKEN, PUSH_TEMPLATES["weigh_in"])

    assert not result.success
    assert result.error == "HTTP 503"
    assert not result.device_not_registered


@pytest.mark.asyncio
@respx.mock
async def test_send_push_network_error():
    respx.post(EXPO_URL).mock(side_effect=httpx.ConnectError("boom"))

    async with NotificationSender(_config()) as sender:
        result = await sender.send_push(TOKEN, PUSH_TEMPLATES["weigh_in"])

    assert not result.success


@pytest.mark.asyncio
@respx.mock
async def test_send_email_posts_to_sendgrid():
    route = respx.post(SENDGRID_SEND_URL).mock(return_value=httpx.Response(202))

    async with NotificationSender(_config()) as sender:
        ok = await sender.send_email("alex@example.com", "Subject", "<p>Hi</p>")

    assert ok
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer SG.test"
    body = json.loads(request.content)
    assert body["personalizations"][0]["to"][0]["email"] == "alex@example.com"
    assert body["from"]["email"] == "hello@needled.test"


@pytest.mark.asyncio
@respx.mock
async def test_send_email_without_api_key_skips_request():
    route = respx.post(SENDGRID_SEND_URL).mock(return_value=httpx.Response(202))

    async with NotificationSender(_config(sendgrid_api_key=None)) as sender:
        ok = await sender.send_email("alex@example.com", "Subject", "<p>Hi</p>")

    assert not ok
    assert not route.called


@pytest.mark.asyncio
@respx.mock
async def test_send_email_error_returns_false():
    respx.post(SENDGRID_SEND_URL).mock(return_value=httpx.Response(401, text="unauthorized"))

    async with NotificationSender(_config()) as sender:
        assert not await sender.send_email("alex@example.com", "Subject", "<p>Hi</p>")
