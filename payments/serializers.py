from decimal import Decimal
from rest_framework import serializers


class ShippingAddressSerializer(serializers.Serializer):
    """Serializer for the shipping address embedded in an order."""

    zipCode = serializers.CharField(source='zip_code', max_length=20)
    streetName = serializers.CharField(source='street_name', max_length=255)
    streetNumber = serializers.CharField(source='street_number', max_length=20)
    complement = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    neighborhood = serializers.CharField(max_length=255)
    cityName = serializers.CharField(source='city_name', max_length=255)
    stateName = serializers.CharField(source='state_name', max_length=255)
    countryName = serializers.CharField(source='country_name', max_length=255)


class OrderItemSerializer(serializers.Serializer):
    """Serializer for one line item of a checkout request."""

    productId = serializers.CharField(source='product_id', max_length=255)
    productName = serializers.CharField(source='product_name', max_length=255)
    variationId = serializers.CharField(source='variation_id', max_length=255)
    quantity = serializers.IntegerField(min_value=1)
    unitPrice = serializers.DecimalField(
        source='unit_price', max_digits=10, decimal_places=2, min_value=Decimal('0.01')
    )


class PreferenceRequestSerializer(serializers.Serializer):
    """
    Serializer for validating a checkout request.

    The total amount is required to be positive but is not compared
    with the sum of the line items.
    """

    userId = serializers.CharField(source='user_id', max_length=255)
    payerEmail = serializers.EmailField(source='payer_email')
    customerName = serializers.CharField(source='customer_name', max_length=255)
    customerPhone = serializers.CharField(source='customer_phone', max_length=30)
    customerCpf = serializers.CharField(source='customer_national_id', min_length=11, max_length=14)
    shippingAddress = ShippingAddressSerializer(source='shipping_address')
    items = OrderItemSerializer(many=True, allow_empty=False)
    totalAmount = serializers.DecimalField(
        source='total_amount', max_digits=10, decimal_places=2, min_value=Decimal('0.01')
    )


class PaymentStatusUpdateSerializer(serializers.Serializer):
    """Serializer for the manual payment status override."""

    preferenceId = serializers.CharField(source='preference_id', max_length=255)
    paymentId = serializers.CharField(source='payment_id', max_length=255)
    status = serializers.CharField(max_length=50)
