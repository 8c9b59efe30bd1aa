"""
Tests for PushNotifier.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from firebase_admin import messaging
from sqlalchemy import select

from app.models import AdminDevice
from app.services.notification_service import PushNotifier, init_firebase_app

SEND = "firebase_admin.messaging.send_each_for_multicast"


async def _register(session_factory, *tokens):
    async with session_factory() as session:
        session.add_all([AdminDevice(token=t) for t in tokens])
        await session.commit()


async def _tokens(session_factory):
    async with session_factory() as session:
        result = await session.execute(select(AdminDevice.token).order_by(AdminDevice.token))
        return list(result.scalars().all())


def _batch(*responses):
    return SimpleNamespace(
        success_count=sum(1 for r in responses if r.success),
        failure_count=sum(1 for r in responses if not r.success),
        responses=list(responses),
    )


def _ok():
    return SimpleNamespace(success=True, exception=None)


def _failed(exception):
    return SimpleNamespace(success=False, exception=exception)


def test_init_without_credentials_disables_push():
    assert init_firebase_app("") is None


def test_init_with_garbage_credentials_disables_push():
    assert init_firebase_app("not-base64-json") is None


@pytest.mark.asyncio
async def test_disabled_notifier_sends_nothing(session_factory):
    await _register(session_factory, "device-a")
    notifier = PushNotifier(session_factory, firebase_app=None)

    with patch(SEND) as send:
        sent = await notifier.notify_new_attempt("Maria Silva")

    assert sent == 0
    send.assert_not_called()


@pytest.mark.asyncio
async def test_no_devices_sends_nothing(session_factory):
    notifier = PushNotifier(session_factory, firebase_app=MagicMock())

    with patch(SEND) as send:
        sent = await notifier.notify_payment_confirmed("Maria Silva")

    assert sent == 0
    send.assert_not_called()


@pytest.mark.asyncio
async def test_fans_out_to_every_device(session_factory):
    await _register(session_factory, "device-a", "device-b")
    firebase_app = MagicMock()
    notifier = PushNotifier(session_factory, firebase_app=firebase_app)

    with patch(SEND, return_value=_batch(_ok(), _ok())) as send:
        sent = await notifier.notify_payment_confirmed("Maria Silva")

    assert sent == 2
    message = send.call_args.args[0]
    assert sorted(message.tokens) == ["device-a", "device-b"]
    assert message.notification.title == "Venda Paga com Sucesso!"
    assert message.notification.body == "O pagamento de Maria Silva foi confirmado."
    assert send.call_args.kwargs["app"] is firebase_app


@pytest.mark.asyncio
async def test_new_attempt_message(session_factory):
    await _register(session_factory, "device-a")
    notifier = PushNotifier(session_factory, firebase_app=MagicMock())

    with patch(SEND, return_value=_batch(_ok())) as send:
        await notifier.notify_new_attempt("João")

    message = send.call_args.args[0]
    assert message.notification.title == "Nova Tentativa de Venda!"
    assert message.notification.body == "João gerou um QR Code para pagamento."


@pytest.mark.asyncio
async def test_permanently_invalid_tokens_pruned(session_factory):
    """Test unregistered tokens are deleted and transient failures are kept."""
    await _register(session_factory, "device-a", "device-b", "device-c")
    notifier = PushNotifier(session_factory, firebase_app=MagicMock())

    def respond(message, app=None):
        outcomes = {
            "device-a": _ok(),
            "device-b": _failed(messaging.UnregisteredError("Requested entity was not found.")),
            "device-c": _failed(RuntimeError("temporary outage")),
        }
        return _batch(*(outcomes[t] for t in message.tokens))

    with patch(SEND, side_effect=respond):
        sent = await notifier.notify_new_attempt("Maria Silva")

    assert sent == 1
    assert await _tokens(session_factory) == ["device-a", "device-c"]


@pytest.mark.asyncio
async def test_send_failure_is_swallowed(session_factory):
    await _register(session_factory, "device-a")
    notifier = PushNotifier(session_factory, firebase_app=MagicMock())

    with patch(SEND, side_effect=RuntimeError("FCM unavailable")):
        sent = await notifier.notify_new_attempt("Maria Silva")

    assert sent == 0
    assert await _tokens(session_factory) == ["device-a"]
