"""Background tasks using Celery."""

import logging
from celery import shared_task
from django.core.mail import send_mail
from django.conf import settings

logger = logging.getLogger(__name__)


def _format_items(order):
    lines = []
    for item in order.items:
        lines.append(
            f"- {item['quantity']}x {item['product_name']} "
            f"(variation {item['variation_id']}) - R$ {item['unit_price']} each"
        )
    return "\n".join(lines)


def _format_address(order):
    address = order.shipping_address
    street = f"{address.get('street_name', '')}, {address.get('street_number', '')}"
    if address.get('complement'):
        street = f"{street} - {address['complement']}"
    return (
        f"{street}\n"
        f"{address.get('neighborhood', '')}, {address.get('city_name', '')} - {address.get('state_name', '')}\n"
        f"ZIP: {address.get('zip_code', '')}\n"
        f"Country: {address.get('country_name', '')}"
    )


@shared_task
def send_order_confirmation_email(order_id):
    """
    Send the purchase confirmation email to the customer.

    Args:
        order_id: UUID of the Order
    """
    from orders.models import Order

    try:
        order = Order.objects.get(id=order_id)
    except Order.DoesNotExist:
        logger.error(f"Order {order_id} not found")
        return False

    subject = f"Thank you for your purchase! Order #{order.id}"
    message = f"""Hello {order.customer_name},

Your payment was approved and your order is being prepared.

Order: #{order.id}
Date: {order.order_date:%Y-%m-%d %H:%M}
Total: R$ {order.total_amount}

Items:
{_format_items(order)}

Shipping address:
{order.customer_name}
{_format_address(order)}

Thank you for shopping with us!
"""

    try:
        send_mail(
            subject,
            message,
            settings.DEFAULT_FROM_EMAIL,
            [order.customer_email],
            fail_silently=False,
        )
    except Exception as e:
        logger.error(f"Failed to send confirmation for order {order_id}: {str(e)}")
        return False

    logger.info(f"Confirmation sent for order {order_id} to {order.customer_email}")
    return True


@shared_task
def send_new_sale_alert(order_id):
    """
    Alert the store that a sale was approved.

    Args:
        order_id: UUID of the Order
    """
    from orders.models import Order

    try:
        order = Order.objects.get(id=order_id)
    except Order.DoesNotExist:
        logger.error(f"Order {order_id} not found")
        return False

    subject = f"New sale approved! Order #{order.id}"
    message = f"""A new sale was approved.

Order: #{order.id}
Date: {order.order_date:%Y-%m-%d %H:%M}
Total: R$ {order.total_amount}
Payment status: {order.gateway_payment_status}
Payment id: {order.gateway_payment_id}
External reference: {order.correlation_token}

Customer:
Name: {order.customer_name}
Email: {order.customer_email}
Phone: {order.customer_phone}
CPF: {order.customer_national_id}

Items:
{_format_items(order)}

Shipping address:
{_format_address(order)}
"""

    try:
        send_mail(
            subject,
            message,
            settings.DEFAULT_FROM_EMAIL,
            [settings.STORE_NOTIFICATION_EMAIL],
            fail_silently=False,
        )
    except Exception as e:
        logger.error(f"Failed to send sale alert for order {order_id}: {str(e)}")
        return False

    logger.info(f"Sale alert sent for order {order_id}")
    return True
