from django.urls import path
from .views import ListCreateSubscriptionView, RetrieveDeleteSubscriptionView

app_name = 'newsletter'

urlpatterns = [
    path('subscriptions/', ListCreateSubscriptionView.as_view(), name='subscription-list-create'),
    path('subscriptions/<uuid:id>/', RetrieveDeleteSubscriptionView.as_view(), name='subscription-detail'),
]
