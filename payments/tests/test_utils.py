import pytest

from payments.models import WebhookNotification
from payments.utils import record_notification
from payments.webhooks import NotificationKey


@pytest.mark.django_db
def test_record_notification(make_order):
    order = make_order()
    payload = {'query': {'topic': 'payment', 'id': '555'}, 'body': {}}

    notification = record_notification(
        'mercadopago', NotificationKey('555', 'payment'), payload,
        WebhookNotification.Outcome.PROCESSED, order=order, gateway_status='approved'
    )

    assert notification.topic == 'payment'
    assert notification.resource_id == '555'
    assert notification.payload == payload
    assert list(order.webhook_notifications.all()) == [notification]


@pytest.mark.django_db
def test_ledger_failure_is_swallowed(monkeypatch):
    def broken_create(**kwargs):
        raise RuntimeError('disk full')

    monkeypatch.setattr(WebhookNotification.objects, 'create', broken_create)

    result = record_notification(
        'mercadopago', NotificationKey('555', 'payment'), {},
        WebhookNotification.Outcome.FAILED, error_message='timed out'
    )

    assert result is None
