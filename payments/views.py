import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from django.views.decorators.csrf import csrf_exempt

from orders.utils import update_order_after_payment
from .exceptions import GatewayError, OrderNotFound
from .models import WebhookNotification
from .preferences import create_payment_preference
from .serializers import PaymentStatusUpdateSerializer, PreferenceRequestSerializer
from .utils import record_notification
from .webhooks import Outcome, parse_notification_body, reconcile_notification, resolve_notification

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ('mercadopago',)


@api_view(['POST'])
@permission_classes([AllowAny])
def create_preference_view(request):
    """
    Create a checkout preference for the storefront cart.

    POST /api/payments/create-preference/

    Returns:
        200 OK with preferenceId and redirectUrl
        400 Bad Request for invalid checkout data
        500 Internal Server Error if the gateway refused the preference
    """
    serializer = PreferenceRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    logger.info(f"Received create-preference for user {serializer.validated_data['user_id']}")

    try:
        order, preference = create_payment_preference(serializer.validated_data)
    except GatewayError as e:
        logger.error(f"Gateway error creating preference: {str(e)}")
        return Response(
            {
                'success': False,
                'message': 'Payment gateway could not create the checkout preference',
                'data': None
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )
    except Exception:
        logger.exception("Unexpected error creating preference")
        return Response(
            {
                'success': False,
                'message': 'Internal error creating the checkout preference',
                'data': None
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return Response(
        {
            'success': True,
            'message': 'Checkout preference created successfully',
            'data': {
                'orderId': str(order.id),
                'preferenceId': preference.id,
                'redirectUrl': preference.redirect_url,
            }
        },
        status=status.HTTP_200_OK
    )


@csrf_exempt
@api_view(['POST'])
@permission_classes([AllowAny])
def payment_webhook_view(request, provider):
    """
    Handle payment gateway webhook POST requests.

    POST /api/payments/webhook/{provider}/

    This endpoint:
    1. Resolves id and topic from the query string and/or the JSON body
    2. Fetches the authoritative payment state from the gateway
    3. Updates the matching order and records the delivery in the ledger

    Idempotency Implementation:
    - Order state is always re-derived from the gateway, never from the payload
    - Redelivering a notification rewrites the same values or nothing at all
    - Sale notifications are claimed once per order

    Returns:
        200 OK for processed, ignored or unmatched notifications
        400 Bad Request if no id or topic can be resolved
        404 Not Found for an unknown provider
        500 Internal Server Error if the gateway fetch or the update failed
    """
    if provider not in SUPPORTED_PROVIDERS:
        logger.warning(f"Webhook for unknown provider {provider}")
        return Response(
            {
                'success': False,
                'message': f'Unknown payment provider {provider}'
            },
            status=status.HTTP_404_NOT_FOUND
        )

    body = parse_notification_body(request.body)
    payload = {'query': request.query_params.dict(), 'body': body}
    logger.info(f"Webhook received from {provider}: {payload}")

    key = resolve_notification(request.query_params, body)
    if key is None:
        return Response(
            {
                'success': False,
                'message': 'Notification has no usable id or topic'
            },
            status=status.HTTP_400_BAD_REQUEST
        )

    try:
        result = reconcile_notification(key)
    except OrderNotFound as e:
        # Acknowledge so the provider stops redelivering a notification we cannot match
        logger.error(f"Webhook {key.topic}:{key.resource_id} matched no order: {str(e)}")
        record_notification(provider, key, payload, WebhookNotification.Outcome.UNMATCHED, error_message=str(e))
        return Response(
            {
                'success': True,
                'message': 'Notification received (no matching order)'
            },
            status=status.HTTP_200_OK
        )
    except GatewayError as e:
        logger.error(f"Webhook {key.topic}:{key.resource_id} dropped, gateway fetch failed: {str(e)}")
        record_notification(provider, key, payload, WebhookNotification.Outcome.FAILED, error_message=str(e))
        return Response(
            {
                'success': False,
                'message': 'Payment gateway unavailable'
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )
    except Exception as e:
        logger.exception(f"Unexpected error processing webhook {key.topic}:{key.resource_id}")
        record_notification(provider, key, payload, WebhookNotification.Outcome.FAILED, error_message=str(e))
        return Response(
            {
                'success': False,
                'message': 'Internal error processing notification'
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    if result.outcome == Outcome.IGNORED:
        record_notification(provider, key, payload, WebhookNotification.Outcome.IGNORED)
        return Response(
            {
                'success': True,
                'message': f'Topic {key.topic} received (unhandled)'
            },
            status=status.HTTP_200_OK
        )

    record_notification(
        provider, key, payload, WebhookNotification.Outcome.PROCESSED,
        order=result.order, gateway_status=result.raw_status
    )
    return Response(
        {
            'success': True,
            'message': f'Notification processed ({result.outcome})',
            'data': {
                'order_id': str(result.order.id),
                'status': result.order.status,
            }
        },
        status=status.HTTP_200_OK
    )


@api_view(['POST'])
@permission_classes([IsAdminUser])
def update_payment_status_view(request):
    """
    Manually overwrite the gateway payment fields of an order.

    POST /api/payments/update/ - Staff only

    This bypasses the gateway fetch used by the webhook and never changes
    the order status.
    """
    serializer = PaymentStatusUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    if not update_order_after_payment(data['preference_id'], data['payment_id'], data['status']):
        return Response(
            {
                'success': False,
                'message': 'Order not found'
            },
            status=status.HTTP_404_NOT_FOUND
        )

    return Response(
        {
            'success': True,
            'message': 'Order updated successfully'
        },
        status=status.HTTP_200_OK
    )
