"""Webhook ledger utilities."""

import logging

logger = logging.getLogger(__name__)


def record_notification(provider, key, payload, outcome, order=None, gateway_status='', error_message=''):
    """
    Store one webhook delivery in the ledger.

    The ledger is audit data only; a failure to write it is logged and
    never changes the webhook response.

    Args:
        provider: provider name from the webhook URL
        key: resolved NotificationKey
        payload: dict with the query parameters and decoded body
        outcome: WebhookNotification.Outcome value
        order: Order the delivery resolved to, if any
        gateway_status: raw status fetched from the gateway, if any
        error_message: failure description, if any

    Returns:
        WebhookNotification or None
    """
    from payments.models import WebhookNotification

    try:
        return WebhookNotification.objects.create(
            provider=provider,
            topic=key.topic,
            resource_id=key.resource_id,
            order=order,
            outcome=outcome,
            gateway_status=gateway_status or '',
            payload=payload,
            error_message=error_message,
        )
    except Exception as e:
        logger.error(f"Failed to record webhook {key.topic}:{key.resource_id}: {str(e)}")
        return None
