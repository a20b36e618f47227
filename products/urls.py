from django.urls import path
from .views import (
    ListCreateProductView,
    BulkCreateProductView,
    RetrieveUpdateDeleteProductView,
    DescribeProductImageView
)

app_name = 'products'

urlpatterns = [
    # More specific paths first (to prevent <uuid:id> from catching them)
    path('bulk/', BulkCreateProductView.as_view(), name='product-bulk-create'),
    path('describe-image/', DescribeProductImageView.as_view(), name='describe-image'),

    # Single product operations (GET/PATCH/DELETE combined)
    path('<uuid:id>/', RetrieveUpdateDeleteProductView.as_view(), name='product-detail'),

    # Base product endpoints (list all + create)
    path('', ListCreateProductView.as_view(), name='product-list-create'),
]
