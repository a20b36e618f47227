import uuid
from django.db import models


class WebhookNotification(models.Model):
    """Ledger of webhook deliveries received from the payment gateway."""

    class Outcome(models.TextChoices):
        PROCESSED = 'processed', 'Processed'
        IGNORED = 'ignored', 'Ignored'
        UNMATCHED = 'unmatched', 'Unmatched'
        FAILED = 'failed', 'Failed'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    provider = models.CharField(max_length=50, default='mercadopago')
    topic = models.CharField(max_length=50, help_text="e.g., payment, merchant_order")
    resource_id = models.CharField(max_length=255, db_index=True)
    order = models.ForeignKey(
        'orders.Order',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='webhook_notifications'
    )
    outcome = models.CharField(max_length=20, choices=Outcome.choices)
    gateway_status = models.CharField(max_length=50, blank=True, default='')
    payload = models.JSONField(default=dict, help_text="Query parameters and body as received")
    error_message = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['topic', 'resource_id'], name='payments_topic_resource_idx'),
            models.Index(fields=['order', 'outcome'], name='payments_order_outcome_idx'),
        ]

    def __str__(self):
        return f"WebhookNotification {self.topic}:{self.resource_id} - {self.outcome}"
