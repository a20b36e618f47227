from rest_framework import serializers
from .models import EmailSubscription


class EmailSubscriptionSerializer(serializers.ModelSerializer):
    """Serializer for newsletter subscriptions."""

    class Meta:
        model = EmailSubscription
        fields = ['id', 'email', 'subscribed_at']
        read_only_fields = ['id', 'subscribed_at']
        # Uniqueness is checked case-insensitively in validate_email
        extra_kwargs = {'email': {'validators': []}}

    def validate_email(self, value):
        """Validate that the email is not subscribed yet."""
        value = value.strip().lower()
        if EmailSubscription.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("This email is already subscribed to the newsletter.")
        return value
