from django.urls import path
from .views import (
    ListOrdersView,
    RetrieveOrderView,
    UpdateOrderStatusView
)

app_name = 'orders'

urlpatterns = [
    # Staff views
    path('', ListOrdersView.as_view(), name='order-list'),

    # Order details
    path('<uuid:id>/', RetrieveOrderView.as_view(), name='order-detail'),

    # Fulfillment
    path('<uuid:id>/status/', UpdateOrderStatusView.as_view(), name='order-status'),
]
