import uuid
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone


class Order(models.Model):
    """Model representing a storefront order paid through the payment gateway."""

    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        PAID = 'PAID', 'Paid'
        PROCESSING = 'PROCESSING', 'Processing'
        SHIPPED = 'SHIPPED', 'Shipped'
        DELIVERED = 'DELIVERED', 'Delivered'
        CANCELLED = 'CANCELLED', 'Cancelled'
        REFUNDED = 'REFUNDED', 'Refunded'
        REJECTED = 'REJECTED', 'Rejected'

    # Raw gateway status stored until the first webhook reports a real one
    PENDING_CHECKOUT = 'pending_checkout'

    # Transitions a payment notification may apply; a new attempt may still pay a failed order
    WEBHOOK_TRANSITIONS = {
        Status.PENDING: {Status.PENDING, Status.PAID, Status.REJECTED, Status.CANCELLED},
        Status.REJECTED: {Status.PAID},
        Status.CANCELLED: {Status.PAID},
    }

    # Transitions staff may apply while fulfilling a paid order
    FULFILLMENT_TRANSITIONS = {
        Status.PAID: Status.PROCESSING,
        Status.PROCESSING: Status.SHIPPED,
        Status.SHIPPED: Status.DELIVERED,
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=255, db_index=True)
    correlation_token = models.CharField(
        max_length=64,
        unique=True,
        help_text="Sent to the gateway as external_reference"
    )
    gateway_preference_id = models.CharField(max_length=255, null=True, blank=True, unique=True)
    gateway_payment_id = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    gateway_payment_status = models.CharField(max_length=50, default=PENDING_CHECKOUT)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)

    customer_name = models.CharField(max_length=255)
    customer_email = models.EmailField()
    customer_phone = models.CharField(max_length=30)
    customer_national_id = models.CharField(max_length=14)
    shipping_address = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    items = models.JSONField(default=list, encoder=DjangoJSONEncoder)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)

    order_date = models.DateTimeField(default=timezone.now, editable=False)
    version = models.PositiveIntegerField(default=0)
    sale_notified_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-order_date']
        indexes = [
            models.Index(fields=['user_id', 'status'], name='orders_user_status_idx'),
        ]

    def __str__(self):
        return f"Order {self.id} - {self.status}"

    def can_transition_to(self, new_status):
        """Check if a payment notification may move the order to new_status."""
        if new_status == self.status:
            return True
        return new_status in self.WEBHOOK_TRANSITIONS.get(self.status, set())

    def next_fulfillment_status(self):
        """Return the status that follows the current one during fulfillment, if any."""
        return self.FULFILLMENT_TRANSITIONS.get(self.status)

    @property
    def is_paid(self):
        return self.status == self.Status.PAID
