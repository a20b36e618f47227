from rest_framework import generics, permissions, status
from rest_framework.response import Response
from django.shortcuts import get_object_or_404
from .models import Order
from .serializers import OrderListSerializer, OrderDetailSerializer, OrderStatusUpdateSerializer
from .utils import advance_fulfillment


class ListOrdersView(generics.ListAPIView):
    """
    List all orders, newest first.

    GET /api/orders/ - Staff only

    Optional filters: status, preferenceId, paymentId, externalReference
    """

    serializer_class = OrderListSerializer
    permission_classes = [permissions.IsAdminUser]

    lookup_filters = {
        'status': 'status',
        'preferenceId': 'gateway_preference_id',
        'paymentId': 'gateway_payment_id',
        'externalReference': 'correlation_token',
    }

    def get_queryset(self):
        """Return orders narrowed by any lookup given in the query string."""
        queryset = Order.objects.all()
        for param, field in self.lookup_filters.items():
            value = self.request.query_params.get(param)
            if value:
                queryset = queryset.filter(**{field: value})
        return queryset

    def list(self, request, *args, **kwargs):
        """List orders with custom response."""
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)

        return Response(
            {
                'success': True,
                'message': 'Orders retrieved successfully',
                'data': self.paginator.get_envelope_data(serializer.data)
            },
            status=status.HTTP_200_OK
        )


class RetrieveOrderView(generics.RetrieveAPIView):
    """
    Retrieve details of a specific order.

    GET /api/orders/{id}/ - Staff only
    """

    serializer_class = OrderDetailSerializer
    permission_classes = [permissions.IsAdminUser]
    lookup_field = 'id'
    queryset = Order.objects.all()

    def retrieve(self, request, *args, **kwargs):
        """Retrieve order with custom response."""
        instance = self.get_object()
        serializer = self.get_serializer(instance)

        return Response(
            {
                'success': True,
                'message': 'Order retrieved successfully',
                'data': serializer.data
            },
            status=status.HTTP_200_OK
        )


class UpdateOrderStatusView(generics.GenericAPIView):
    """
    Move a paid order along its fulfillment path.

    PATCH /api/orders/{id}/status/ - Staff only

    Payment statuses (PAID, REJECTED, CANCELLED) are owned by the payment
    webhook; this endpoint only walks PAID -> PROCESSING -> SHIPPED -> DELIVERED.
    """

    serializer_class = OrderStatusUpdateSerializer
    permission_classes = [permissions.IsAdminUser]
    http_method_names = ['patch', 'options', 'head']

    def patch(self, request, *args, **kwargs):
        order = get_object_or_404(Order, id=self.kwargs['id'])
        serializer = self.get_serializer(data=request.data, context={'order': order})
        serializer.is_valid(raise_exception=True)

        if not advance_fulfillment(order):
            return Response(
                {
                    'success': False,
                    'message': 'Order was modified concurrently. Please retry.',
                    'data': None
                },
                status=status.HTTP_409_CONFLICT
            )

        return Response(
            {
                'success': True,
                'message': f'Order moved to {order.status}',
                'data': OrderDetailSerializer(order).data
            },
            status=status.HTTP_200_OK
        )
