"""Mercado Pago gateway client."""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import mercadopago
import requests
from django.conf import settings
from mercadopago.config import RequestOptions

from .exceptions import GatewayError

logger = logging.getLogger(__name__)

PAYMENT_TOPIC = 'payment'
MERCHANT_ORDER_TOPIC = 'merchant_order'
APPROVED = 'approved'


@dataclass(frozen=True)
class GatewayConfig:
    """Credentials and limits for one gateway client."""

    access_token: str
    timeout: float = 10.0


@dataclass(frozen=True)
class PreferenceResult:
    id: str
    redirect_url: str


@dataclass(frozen=True)
class PaymentDetails:
    """Authoritative payment state fetched from the gateway."""

    status: str
    external_reference: Optional[str]
    payment_id: Optional[str] = None


class MercadoPagoClient:
    """
    Thin adapter over the Mercado Pago SDK.

    Each client owns one SDK instance configured with its own access token,
    so nothing is shared process-wide. Calls are never retried here.
    """

    def __init__(self, config: GatewayConfig, sdk=None):
        self.config = config
        if sdk is None:
            options = RequestOptions(
                access_token=config.access_token,
                connection_timeout=config.timeout,
                max_retries=0,
            )
            sdk = mercadopago.SDK(config.access_token, request_options=options)
        self.sdk = sdk

    def create_preference(self, preference_data: dict) -> PreferenceResult:
        """
        Create a Checkout Pro preference.

        Args:
            preference_data: preference body in the gateway's wire format

        Returns:
            PreferenceResult: preference id and the checkout redirect URL

        Raises:
            GatewayError: on transport failure, non-2xx answer or missing init_point
        """
        body = self._call('create preference', self.sdk.preference().create, preference_data)
        preference_id = body.get('id')
        redirect_url = body.get('init_point')
        if not preference_id or not redirect_url:
            logger.error(f"Preference response without id or init_point: {body}")
            raise GatewayError("Gateway returned a preference without a redirect URL")

        logger.info(f"Preference {preference_id} created")
        return PreferenceResult(id=str(preference_id), redirect_url=redirect_url)

    def fetch_payment_details(self, resource_id: str, topic: str) -> PaymentDetails:
        """
        Fetch the authoritative state behind a webhook notification.

        Args:
            resource_id: payment id or merchant order id
            topic: 'payment' or 'merchant_order'

        Returns:
            PaymentDetails: raw status, external reference and payment id

        Raises:
            GatewayError: on transport failure, non-2xx answer or malformed payload
            ValueError: if the topic is not one the gateway client can fetch
        """
        if topic == PAYMENT_TOPIC:
            body = self._call('fetch payment', self.sdk.payment().get, resource_id)
            return self._payment_details(body)
        if topic == MERCHANT_ORDER_TOPIC:
            body = self._call('fetch merchant order', self.sdk.merchant_order().get, resource_id)
            return self._merchant_order_details(body)
        raise ValueError(f"Unsupported notification topic: {topic}")

    def _call(self, action, method, *args):
        try:
            result = method(*args)
        except requests.RequestException as e:
            logger.error(f"Gateway {action} failed: {str(e)}")
            raise GatewayError(f"Gateway {action} failed: {str(e)}") from e

        if not isinstance(result, dict):
            raise GatewayError(f"Gateway {action} returned an unexpected result")

        status_code = result.get('status')
        body = result.get('response')
        if not isinstance(status_code, int) or not 200 <= status_code < 300:
            logger.error(f"Gateway {action} answered HTTP {status_code}: {body}")
            raise GatewayError(f"Gateway {action} answered HTTP {status_code}", status_code=status_code)
        if not isinstance(body, dict):
            raise GatewayError(f"Gateway {action} returned a malformed payload", status_code=status_code)
        return body

    @staticmethod
    def _payment_details(body):
        status = body.get('status')
        if not status:
            raise GatewayError("Payment payload has no status")
        payment_id = body.get('id')
        return PaymentDetails(
            status=status,
            external_reference=body.get('external_reference'),
            payment_id=str(payment_id) if payment_id is not None else None,
        )

    @staticmethod
    def _merchant_order_details(body):
        payments = body.get('payments') or []
        if not isinstance(payments, list):
            raise GatewayError("Merchant order payload has a malformed payments list")
        if not all(isinstance(p, dict) for p in payments):
            logger.warning("Merchant order payload has malformed payment entries; skipping them")
            payments = [p for p in payments if isinstance(p, dict)]

        approved = next((p for p in payments if p.get('status') == APPROVED), None)
        if approved is not None:
            status = APPROVED
            payment_id = approved.get('id')
        elif payments:
            status = payments[-1].get('status')
            payment_id = None
        else:
            status = body.get('order_status')
            payment_id = None

        if not status:
            raise GatewayError("Merchant order payload has no status")
        return PaymentDetails(
            status=status,
            external_reference=body.get('external_reference'),
            payment_id=str(payment_id) if payment_id is not None else None,
        )


@lru_cache(maxsize=8)
def _client_for(access_token, timeout):
    return MercadoPagoClient(GatewayConfig(access_token=access_token, timeout=timeout))


def get_gateway_client():
    """Return the client for the configured credentials, one instance per access token."""
    return _client_for(settings.MERCADOPAGO_ACCESS_TOKEN, settings.MERCADOPAGO_TIMEOUT)
