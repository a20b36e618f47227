from django.urls import path, re_path
from .views import create_preference_view, payment_webhook_view, update_payment_status_view

app_name = 'payments'

urlpatterns = [
    path('create-preference/', create_preference_view, name='create-preference'),

    # Gateway webhook; the trailing slash is optional because providers post to the exact URL
    re_path(r'^webhook/(?P<provider>[\w-]+)/?$', payment_webhook_view, name='webhook'),

    # Manual override
    path('update/', update_payment_status_view, name='update'),
]
