"""
Pytest configuration and fixtures.
"""
import uuid
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from payments.exceptions import GatewayError
from payments.gateway import PaymentDetails, PreferenceResult


class FakeGatewayClient:
    """In-memory stand-in for MercadoPagoClient that records every call."""

    def __init__(self):
        self.preference = PreferenceResult(
            id='pref-123',
            redirect_url='https://www.mercadopago.com.br/checkout/v1/redirect?pref_id=pref-123',
        )
        self.details = {}
        self.error = None
        self.created = []
        self.fetched = []

    def create_preference(self, preference_data):
        self.created.append(preference_data)
        if self.error is not None:
            raise self.error
        return self.preference

    def fetch_payment_details(self, resource_id, topic):
        self.fetched.append((resource_id, topic))
        if self.error is not None:
            raise self.error
        return self.details[(resource_id, topic)]

    def will_report(self, resource_id, topic, status, external_reference, payment_id=None):
        """Make the fake answer a fetch for (resource_id, topic) with the given state."""
        self.details[(resource_id, topic)] = PaymentDetails(
            status=status,
            external_reference=external_reference,
            payment_id=payment_id,
        )

    def fail_with(self, message='Gateway unavailable', status_code=None):
        self.error = GatewayError(message, status_code=status_code)


@pytest.fixture
def fake_gateway():
    """Fresh fake gateway client."""
    return FakeGatewayClient()


@pytest.fixture
def patched_gateway(fake_gateway, monkeypatch):
    """Route every configured-client lookup to the fake gateway."""
    monkeypatch.setattr('payments.preferences.get_gateway_client', lambda: fake_gateway)
    monkeypatch.setattr('payments.webhooks.get_gateway_client', lambda: fake_gateway)
    return fake_gateway


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def staff_client(admin_user):
    """DRF test client authenticated as a staff user."""
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def customer_client(django_user_model):
    """DRF test client authenticated as a regular customer."""
    user = django_user_model.objects.create_user(username='customer', password='secret')
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def checkout_payload():
    """Valid create-preference request body."""
    return {
        'userId': 'user-42',
        'payerEmail': 'maria@example.com',
        'customerName': 'Maria Silva',
        'customerPhone': '+55 (11) 98765-4321',
        'customerCpf': '123.456.789-09',
        'shippingAddress': {
            'zipCode': '01310-100',
            'streetName': 'Avenida Paulista',
            'streetNumber': '1000',
            'complement': 'Apto 12',
            'neighborhood': 'Bela Vista',
            'cityName': 'Sao Paulo',
            'stateName': 'SP',
            'countryName': 'Brasil',
        },
        'items': [
            {
                'productId': 'prod-1',
                'productName': 'Linen Shirt',
                'variationId': 'var-1',
                'quantity': 2,
                'unitPrice': '79.90',
            },
            {
                'productId': 'prod-2',
                'productName': 'Canvas Tote',
                'variationId': 'var-7',
                'quantity': 1,
                'unitPrice': '45.00',
            },
        ],
        'totalAmount': '204.80',
    }


@pytest.fixture
def make_order(db):
    """Factory for persisted orders; defaults describe a fresh PENDING checkout."""
    from orders.models import Order

    def _make_order(**overrides):
        fields = {
            'user_id': 'user-42',
            'correlation_token': uuid.uuid4().hex,
            'gateway_preference_id': f"pref-{uuid.uuid4().hex[:12]}",
            'customer_name': 'Maria Silva',
            'customer_email': 'maria@example.com',
            'customer_phone': '+55 (11) 98765-4321',
            'customer_national_id': '123.456.789-09',
            'shipping_address': {
                'zip_code': '01310-100',
                'street_name': 'Avenida Paulista',
                'street_number': '1000',
                'complement': '',
                'neighborhood': 'Bela Vista',
                'city_name': 'Sao Paulo',
                'state_name': 'SP',
                'country_name': 'Brasil',
            },
            'items': [
                {
                    'product_id': 'prod-1',
                    'product_name': 'Linen Shirt',
                    'variation_id': 'var-1',
                    'quantity': 2,
                    'unit_price': '79.90',
                },
            ],
            'total_amount': Decimal('159.80'),
        }
        fields.update(overrides)
        return Order.objects.create(**fields)

    return _make_order
