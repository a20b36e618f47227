"""Webhook resolution and order reconciliation."""

import json
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from django.db import transaction

from orders.models import Order
from orders.utils import apply_order_changes, claim_sale_notification, find_by_correlation_token
from .exceptions import ConcurrentUpdateError, NotificationDispatchError, OrderNotFound
from .gateway import MERCHANT_ORDER_TOPIC, PAYMENT_TOPIC, get_gateway_client

logger = logging.getLogger(__name__)

SUPPORTED_TOPICS = (PAYMENT_TOPIC, MERCHANT_ORDER_TOPIC)
MAX_WRITE_ATTEMPTS = 3

GATEWAY_STATUS_MAP = {
    'approved': Order.Status.PAID,
    'pending': Order.Status.PENDING,
    'rejected': Order.Status.REJECTED,
    'cancelled': Order.Status.CANCELLED,
}


@dataclass(frozen=True)
class NotificationKey:
    """The (id, topic) pair a notification resolves to."""

    resource_id: str
    topic: str


class Outcome:
    UPDATED = 'updated'
    UNCHANGED = 'unchanged'
    IGNORED = 'ignored'


@dataclass
class ReconciliationResult:
    outcome: str
    order: Optional[Order] = None
    raw_status: Optional[str] = None


def _as_text(value):
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return None
    return str(value).strip() or None


def _first_present(*values):
    return next((v for v in values if v is not None), None)


def _last_path_segment(resource):
    resource = _as_text(resource)
    if resource is None:
        return None
    return _as_text(urlparse(resource).path.rstrip('/').rsplit('/', 1)[-1])


def parse_notification_body(raw_body):
    """
    Decode a webhook body into a dict.

    Anything that is not a JSON object (empty body, invalid JSON, a list)
    decodes to an empty dict.
    """
    if not raw_body:
        return {}
    try:
        body = json.loads(raw_body)
    except (TypeError, ValueError):
        logger.debug("Webhook body is not valid JSON")
        return {}
    return body if isinstance(body, dict) else {}


def resolve_notification(query_params, body):
    """
    Resolve the notification id and topic, first match wins.

    topic: query 'topic', body 'topic', body 'type'
    id: query 'id', body 'data.id', last segment of body 'resource', body 'id'

    Args:
        query_params: mapping of query string parameters
        body: decoded JSON body

    Returns:
        NotificationKey or None if either value is missing everywhere
    """
    data = body.get('data')
    data_id = data.get('id') if isinstance(data, dict) else None

    topic = _first_present(
        _as_text(query_params.get('topic')),
        _as_text(body.get('topic')),
        _as_text(body.get('type')),
    )
    resource_id = _first_present(
        _as_text(query_params.get('id')),
        _as_text(data_id),
        _last_path_segment(body.get('resource')),
        _as_text(body.get('id')),
    )

    if topic is None or resource_id is None:
        logger.warning(f"Unresolvable webhook notification: id={resource_id} topic={topic}")
        return None
    return NotificationKey(resource_id=resource_id, topic=topic)


def map_gateway_status(raw_status):
    """Map a raw gateway status to an order status; unknown values map to PENDING."""
    key = (raw_status or '').strip().lower()
    return GATEWAY_STATUS_MAP.get(key, Order.Status.PENDING)


def reconcile_notification(key, client=None):
    """
    Apply the authoritative gateway state behind a notification to its order.

    Args:
        key: resolved NotificationKey
        client: gateway client, defaults to the configured one

    Returns:
        ReconciliationResult

    Raises:
        GatewayError: if the gateway fetch fails
        OrderNotFound: if no order carries the fetched external reference
        ConcurrentUpdateError: if the order kept changing during the write
    """
    if key.topic not in SUPPORTED_TOPICS:
        logger.info(f"Ignoring webhook topic {key.topic} for id {key.resource_id}")
        return ReconciliationResult(outcome=Outcome.IGNORED)

    client = client or get_gateway_client()
    details = client.fetch_payment_details(key.resource_id, key.topic)
    logger.info(
        f"Gateway reports {key.topic} {key.resource_id} as {details.status} "
        f"for reference {details.external_reference}"
    )

    outcome, order = _apply_details(details)

    if order.is_paid and claim_sale_notification(order):
        dispatch_sale_notifications(order)

    return ReconciliationResult(outcome=outcome, order=order, raw_status=details.status)


def _apply_details(details):
    if not details.external_reference:
        raise OrderNotFound("Gateway record has no external reference")

    new_status = map_gateway_status(details.status)
    changes = {
        'status': new_status,
        'gateway_payment_status': details.status,
    }
    if details.payment_id:
        changes['gateway_payment_id'] = details.payment_id

    for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
        with transaction.atomic():
            order = find_by_correlation_token(details.external_reference, for_update=True)
            if order is None:
                raise OrderNotFound(f"No order for external reference {details.external_reference}")

            pending = changes
            if not order.can_transition_to(new_status):
                logger.warning(
                    f"Order {order.id} is {order.status}; recording gateway status {details.status} without moving it"
                )
                pending = {field: value for field, value in changes.items() if field != 'status'}

            if all(getattr(order, field) == value for field, value in pending.items()):
                logger.info(f"Order {order.id} already reflects gateway status {details.status}")
                return Outcome.UNCHANGED, order

            previous = order.status
            if apply_order_changes(order, **pending):
                if order.status != previous:
                    logger.info(f"Order {order.id} moved from {previous} to {order.status}")
                return Outcome.UPDATED, order

        logger.warning(f"Retrying write for reference {details.external_reference} (attempt {attempt})")

    raise ConcurrentUpdateError(
        f"Order for reference {details.external_reference} changed {MAX_WRITE_ATTEMPTS} times during reconciliation"
    )


def _enqueue(task, order_id):
    try:
        task.delay(order_id)
    except Exception as e:
        raise NotificationDispatchError(f"Could not enqueue {task.name} for order {order_id}") from e


def dispatch_sale_notifications(order):
    """
    Queue the customer confirmation and the store sale alert for a paid order.

    Failures are logged and never raised; a failed notification is not retried.
    """
    from .tasks import send_new_sale_alert, send_order_confirmation_email

    for task in (send_order_confirmation_email, send_new_sale_alert):
        try:
            _enqueue(task, str(order.id))
        except NotificationDispatchError as e:
            logger.error(f"{str(e)}: {str(e.__cause__)}")
