"""Checkout preference creation."""

import logging
import re
import uuid
from django.conf import settings
from django.db import transaction

from orders.utils import create_pending_order
from .exceptions import GatewayError
from .gateway import get_gateway_client

logger = logging.getLogger(__name__)


def generate_correlation_token():
    """Return a fresh token to send to the gateway as external_reference."""
    return uuid.uuid4().hex


def split_phone(phone):
    """
    Split a phone number into the gateway's area code and local number.

    Non-digits are dropped and a leading 55 country code is removed when
    more than 11 digits remain.

    Returns:
        tuple: (area_code, number)
    """
    digits = re.sub(r'\D', '', phone or '')
    if len(digits) > 11 and digits.startswith('55'):
        digits = digits[2:]
    if len(digits) <= 2:
        return '', digits
    return digits[:2], digits[2:]


def build_back_urls():
    base = settings.STOREFRONT_FRONTEND_URL.rstrip('/')
    return {
        'success': f"{base}/checkout/success",
        'pending': f"{base}/checkout/pending",
        'failure': f"{base}/checkout/failure",
    }


def build_notification_url():
    base = settings.STOREFRONT_BACKEND_URL.rstrip('/')
    return f"{base}/api/payments/webhook/mercadopago/"


def build_preference_data(checkout, correlation_token):
    """
    Translate a validated checkout request into a gateway preference body.

    Args:
        checkout: validated data from PreferenceRequestSerializer
        correlation_token: token sent as external_reference

    Returns:
        dict: preference body in the gateway's wire format
    """
    address = checkout['shipping_address']
    area_code, number = split_phone(checkout['customer_phone'])
    currency = settings.MERCADOPAGO_CURRENCY_ID

    items = [
        {
            'id': item['product_id'],
            'title': item['product_name'],
            'quantity': item['quantity'],
            'unit_price': float(item['unit_price']),
            'currency_id': currency,
        }
        for item in checkout['items']
    ]

    return {
        'items': items,
        'payer': {
            'name': checkout['customer_name'],
            'email': checkout['payer_email'],
            'phone': {
                'area_code': area_code,
                'number': number,
            },
            'identification': {
                'type': 'CPF',
                'number': checkout['customer_national_id'],
            },
            'address': {
                'zip_code': address['zip_code'],
                'street_name': address['street_name'],
                'street_number': address['street_number'],
            },
        },
        'shipments': {
            'receiver_address': {
                'zip_code': address['zip_code'],
                'street_name': address['street_name'],
                'street_number': address['street_number'],
                'apartment': address.get('complement', ''),
                'city_name': address['city_name'],
                'state_name': address['state_name'],
                'country_name': address['country_name'],
            },
        },
        'back_urls': build_back_urls(),
        'auto_return': 'approved',
        'notification_url': build_notification_url(),
        'external_reference': correlation_token,
    }


def _snapshot_items(items):
    return [
        {
            'product_id': item['product_id'],
            'product_name': item['product_name'],
            'variation_id': item['variation_id'],
            'quantity': item['quantity'],
            'unit_price': str(item['unit_price']),
        }
        for item in items
    ]


def create_payment_preference(checkout, client=None):
    """
    Create a checkout preference and the PENDING order that tracks it.

    This function:
    1. Generates a fresh correlation token
    2. Creates the preference at the gateway
    3. Persists the order only after the gateway accepted the preference

    Args:
        checkout: validated data from PreferenceRequestSerializer
        client: gateway client, defaults to the configured one

    Returns:
        tuple: (order, PreferenceResult)

    Raises:
        GatewayError: if the preference could not be created; no order is saved
    """
    client = client or get_gateway_client()
    correlation_token = generate_correlation_token()
    preference_data = build_preference_data(checkout, correlation_token)

    try:
        preference = client.create_preference(preference_data)
    except GatewayError:
        logger.error(f"Preference creation failed for user {checkout['user_id']}; no order saved")
        raise

    with transaction.atomic():
        order = create_pending_order(
            user_id=checkout['user_id'],
            correlation_token=correlation_token,
            gateway_preference_id=preference.id,
            customer_name=checkout['customer_name'],
            customer_email=checkout['payer_email'],
            customer_phone=checkout['customer_phone'],
            customer_national_id=checkout['customer_national_id'],
            shipping_address=dict(checkout['shipping_address']),
            items=_snapshot_items(checkout['items']),
            total_amount=checkout['total_amount'],
        )

    logger.info(f"Order {order.id} saved for preference {preference.id}")
    return order, preference
