from rest_framework import serializers
from .models import Order


class OrderListSerializer(serializers.ModelSerializer):
    """Serializer for listing orders."""

    class Meta:
        model = Order
        fields = [
            'id', 'user_id', 'customer_name', 'customer_email',
            'total_amount', 'status', 'gateway_payment_status', 'order_date', 'updated_at'
        ]
        read_only_fields = fields


class OrderDetailSerializer(serializers.ModelSerializer):
    """Serializer for order details."""

    class Meta:
        model = Order
        fields = [
            'id', 'user_id', 'customer_name', 'customer_email', 'customer_phone',
            'customer_national_id', 'shipping_address', 'items', 'total_amount',
            'status', 'correlation_token', 'gateway_preference_id', 'gateway_payment_id',
            'gateway_payment_status', 'order_date', 'sale_notified_at', 'updated_at'
        ]
        read_only_fields = fields


class OrderStatusUpdateSerializer(serializers.Serializer):
    """Serializer for moving an order along its fulfillment path."""

    status = serializers.ChoiceField(choices=Order.Status.choices)

    def validate_status(self, value):
        """Validate that the requested status is the next fulfillment step."""
        order = self.context['order']
        next_status = order.next_fulfillment_status()
        if next_status is None or value != next_status:
            raise serializers.ValidationError(
                f"Order cannot move from {order.status} to {value}."
            )
        return value
