"""Order store helpers, including optimistic concurrency control."""

import logging
from django.db.models import F
from django.utils import timezone

logger = logging.getLogger(__name__)


def create_pending_order(**fields):
    """
    Persist a new order in PENDING status.

    Args:
        **fields: Order field values captured from the checkout request

    Returns:
        Order: the saved order
    """
    from .models import Order

    fields.setdefault('status', Order.Status.PENDING)
    fields.setdefault('gateway_payment_status', Order.PENDING_CHECKOUT)
    order = Order.objects.create(**fields)
    logger.info(f"Order {order.id} created for user {order.user_id} with status {order.status}")
    return order


def find_by_correlation_token(token, for_update=False):
    """Return the order carrying the given external reference, or None."""
    from .models import Order

    queryset = Order.objects.select_for_update() if for_update else Order.objects.all()
    return queryset.filter(correlation_token=token).first()


def apply_order_changes(order, **changes):
    """
    Write changes to an order only if nobody saved it since it was read.

    This is a compare-and-swap on the order version:
    1. Updates the row where both the id and the version still match
    2. Bumps the version in the same statement
    3. Mirrors the new values on the in-memory instance when it wins

    Args:
        order: Order instance as read by the caller
        **changes: field names and their new values

    Returns:
        bool: True if the write was applied, False if the version was stale
    """
    from .models import Order

    changes['updated_at'] = timezone.now()
    updated = Order.objects.filter(pk=order.pk, version=order.version).update(
        version=F('version') + 1,
        **changes
    )
    if not updated:
        logger.warning(f"Stale write rejected for order {order.pk} at version {order.version}")
        return False

    for field, value in changes.items():
        setattr(order, field, value)
    order.version += 1
    return True


def claim_sale_notification(order):
    """
    Mark the sale notifications of a paid order as sent.

    Only one caller can ever win the claim, so the notifications go out
    at most once no matter how many deliveries report the payment.

    Returns:
        bool: True if this caller claimed the notifications
    """
    from .models import Order

    now = timezone.now()
    claimed = Order.objects.filter(
        pk=order.pk,
        status=Order.Status.PAID,
        sale_notified_at__isnull=True
    ).update(sale_notified_at=now)
    if claimed:
        order.sale_notified_at = now
        logger.info(f"Sale notifications claimed for order {order.pk}")
    return bool(claimed)


def advance_fulfillment(order):
    """
    Move a paid order one step along its fulfillment path.

    Returns:
        bool: True if the order moved, False if it has no next step or the write was stale
    """
    next_status = order.next_fulfillment_status()
    if next_status is None:
        logger.warning(f"Order {order.pk} has no fulfillment step after {order.status}")
        return False

    previous = order.status
    if not apply_order_changes(order, status=next_status):
        return False
    logger.info(f"Order {order.pk} moved from {previous} to {next_status}")
    return True


def update_order_after_payment(preference_id, payment_id, payment_status):
    """
    Overwrite the gateway payment fields of the order created for a preference.

    This is a manual override: it does not consult the gateway and does
    not touch the order status.

    Returns:
        bool: True if an order was found and updated
    """
    from .models import Order

    updated = Order.objects.filter(gateway_preference_id=preference_id).update(
        gateway_payment_id=payment_id,
        gateway_payment_status=payment_status,
        version=F('version') + 1,
        updated_at=timezone.now()
    )
    if not updated:
        logger.warning(f"No order found for preference {preference_id}")
        return False

    logger.info(f"Order for preference {preference_id} updated with payment {payment_id} ({payment_status})")
    return True
