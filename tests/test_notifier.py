"""
tests/test_notifier.py — Backend callbacks over httpx
"""

import json

import httpx
import pytest

from wa_gateway.services.notifier import BackendNotifier


def make_notifier(handler, token=""):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BackendNotifier(base_url="http://backend.test/api/", timeout=1.0, token=token, client=client)


@pytest.mark.asyncio
async def test_callbacks_post_expected_payloads():
    seen = []

    def handler(request: httpx.Request):
        seen.append((request.method, str(request.url), json.loads(request.content)))
        return httpx.Response(200, json={"ok": True})

    notifier = make_notifier(handler)
    assert await notifier.notify_pairing("42", "data:image/png;base64,AAA")
    assert await notifier.notify_status("42", active=True)
    assert await notifier.notify_status("42", active=False)
    assert await notifier.notify_message("42", "1555@c.us", "hello")
    assert await notifier.notify_sync_result("42", [{"id": "A@c.us"}])

    assert seen == [
        ("POST", "http://backend.test/api/update-qr", {"user_id": "42", "qr_code": "data:image/png;base64,AAA"}),
        ("POST", "http://backend.test/api/update-status", {"user_id": "42", "status": 1}),
        ("POST", "http://backend.test/api/update-status", {"user_id": "42", "status": 0}),
        ("POST", "http://backend.test/api/receive-whatsapp-message", {"user_id": "42", "from": "1555@c.us", "body": "hello"}),
        ("POST", "http://backend.test/api/receive-whatsapp-contacts", {"user_id": "42", "contacts": [{"id": "A@c.us"}]}),
    ]


@pytest.mark.asyncio
async def test_error_status_is_reported_not_raised():
    notifier = make_notifier(lambda request: httpx.Response(500))
    assert await notifier.notify_status("42", active=True) is False


@pytest.mark.asyncio
async def test_network_error_is_reported_not_raised():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    notifier = make_notifier(handler)
    assert await notifier.notify_message("42", "x", "y") is False


@pytest.mark.asyncio
async def test_token_header_sent_when_configured():
    notifier = BackendNotifier(base_url="http://backend.test/api", timeout=1.0, token="s3cret")
    client = notifier._get_client()
    assert client.headers["X-Gateway-Token"] == "s3cret"
    await notifier.close()
    assert notifier._client is None
