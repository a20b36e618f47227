import logging
from django.db import IntegrityError, transaction
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from .models import EmailSubscription
from .serializers import EmailSubscriptionSerializer

logger = logging.getLogger(__name__)


class ListCreateSubscriptionView(generics.ListCreateAPIView):
    """
    Subscribe to the newsletter (public) or list subscriptions (staff).

    POST /api/newsletter/subscriptions/ - Public
    GET /api/newsletter/subscriptions/ - Staff only
    """

    serializer_class = EmailSubscriptionSerializer
    queryset = EmailSubscription.objects.all()

    def get_permissions(self):
        """Allow POST for everyone, GET for staff only."""
        if self.request.method == 'POST':
            return [permissions.AllowAny()]
        return [permissions.IsAdminUser()]

    def list(self, request, *args, **kwargs):
        """List subscriptions with custom response."""
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)

        return Response(
            {
                'success': True,
                'message': 'Subscriptions retrieved successfully',
                'data': self.paginator.get_envelope_data(serializer.data)
            },
            status=status.HTTP_200_OK
        )

    def create(self, request, *args, **kwargs):
        """Subscribe an email with custom response."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            with transaction.atomic():
                subscription = serializer.save()
        except IntegrityError:
            # Two requests for the same email raced past validation
            logger.warning(f"Duplicate newsletter subscription for {serializer.validated_data['email']}")
            return Response(
                {
                    'success': False,
                    'message': 'This email is already subscribed to the newsletter.',
                    'data': None
                },
                status=status.HTTP_400_BAD_REQUEST
            )

        logger.info(f"Newsletter subscription {subscription.id} created")
        return Response(
            {
                'success': True,
                'message': 'Subscribed successfully',
                'data': self.get_serializer(subscription).data
            },
            status=status.HTTP_201_CREATED
        )


class RetrieveDeleteSubscriptionView(generics.RetrieveDestroyAPIView):
    """
    Retrieve or delete a newsletter subscription.

    GET /api/newsletter/subscriptions/{id}/ - Staff only
    DELETE /api/newsletter/subscriptions/{id}/ - Staff only
    """

    serializer_class = EmailSubscriptionSerializer
    permission_classes = [permissions.IsAdminUser]
    lookup_field = 'id'
    queryset = EmailSubscription.objects.all()

    def retrieve(self, request, *args, **kwargs):
        """Retrieve subscription with custom response."""
        instance = self.get_object()
        serializer = self.get_serializer(instance)

        return Response(
            {
                'success': True,
                'message': 'Subscription retrieved successfully',
                'data': serializer.data
            },
            status=status.HTTP_200_OK
        )

    def destroy(self, request, *args, **kwargs):
        """Delete subscription with custom response."""
        instance = self.get_object()
        subscription_id = instance.id
        self.perform_destroy(instance)
        logger.info(f"Newsletter subscription {subscription_id} deleted")

        return Response(
            {
                'success': True,
                'message': 'Subscription deleted successfully'
            },
            status=status.HTTP_204_NO_CONTENT
        )
