import logging
from django.core.exceptions import ImproperlyConfigured
from django.db import transaction
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from .ai import DescriptionGenerationError, generate_description_from_image
from .models import Product
from .permissions import IsStaffOrReadOnly
from .serializers import ImageDescriptionSerializer, ProductSerializer, ProductUploadSerializer
from .storage import ImageStorageError, attach_uploaded_images, delete_stored_images, stored_image_keys

logger = logging.getLogger(__name__)


def _product_payload(request):
    """Split a JSON or multipart product request into product data and image uploads."""
    if 'productData' not in request.data:
        return request.data, []
    upload = ProductUploadSerializer(data=request.data)
    upload.is_valid(raise_exception=True)
    return upload.validated_data['productData'], upload.validated_data['files']


def _save_product(build_serializer, data, uploads):
    """
    Store the uploaded images, then validate and save the product.

    Images stored for a product that fails validation or saving are removed again.
    """
    written = attach_uploaded_images(data, uploads)
    try:
        serializer = build_serializer(data)
        serializer.is_valid(raise_exception=True)
        return serializer.save()
    except Exception:
        delete_stored_images(written)
        raise


def _image_storage_failed():
    return Response(
        {
            'success': False,
            'message': 'Could not store the product images',
            'data': None
        },
        status=status.HTTP_502_BAD_GATEWAY
    )


class ListCreateProductView(generics.ListCreateAPIView):
    """
    List all products (public, paginated) or create a new product (staff).

    GET /api/products/?page=1&size=10 - Public
    POST /api/products/ - Staff only, create product with variations
        (JSON, or multipart with productData and image files)
    """

    serializer_class = ProductSerializer
    permission_classes = [IsStaffOrReadOnly]
    queryset = Product.objects.prefetch_related('variations')

    def list(self, request, *args, **kwargs):
        """List products with custom response."""
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)

        return Response(
            {
                'success': True,
                'message': 'Products retrieved successfully',
                'data': self.paginator.get_envelope_data(serializer.data)
            },
            status=status.HTTP_200_OK
        )

    def create(self, request, *args, **kwargs):
        """Create product with custom response."""
        data, uploads = _product_payload(request)
        try:
            product = _save_product(lambda payload: self.get_serializer(data=payload), data, uploads)
        except ImageStorageError:
            return _image_storage_failed()
        logger.info(f"Product {product.id} created with {product.variations.count()} variations")

        return Response(
            {
                'success': True,
                'message': 'Product created successfully',
                'data': ProductSerializer(product).data
            },
            status=status.HTTP_201_CREATED
        )


class BulkCreateProductView(generics.CreateAPIView):
    """
    Create several products at once.

    POST /api/products/bulk/ - Staff only
    """

    serializer_class = ProductSerializer
    permission_classes = [permissions.IsAdminUser]

    def create(self, request, *args, **kwargs):
        """Create all products or none."""
        serializer = self.get_serializer(data=request.data, many=True)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            products = serializer.save()
        logger.info(f"{len(products)} products created in bulk")

        return Response(
            {
                'success': True,
                'message': f'{len(products)} products created successfully',
                'data': ProductSerializer(products, many=True).data
            },
            status=status.HTTP_201_CREATED
        )


class RetrieveUpdateDeleteProductView(generics.RetrieveAPIView, generics.UpdateAPIView, generics.DestroyAPIView):
    """
    Retrieve, update, or delete a product.

    GET /api/products/{id}/ - Public, retrieve product details
    PATCH /api/products/{id}/ - Staff only, update product (JSON, or multipart with productData and image files)
    DELETE /api/products/{id}/ - Staff only, delete product
    """

    serializer_class = ProductSerializer
    permission_classes = [IsStaffOrReadOnly]
    lookup_field = 'id'
    queryset = Product.objects.prefetch_related('variations')
    http_method_names = ['get', 'patch', 'delete', 'options', 'head']

    def retrieve(self, request, *args, **kwargs):
        """Retrieve product with custom response."""
        instance = self.get_object()
        serializer = self.get_serializer(instance)

        return Response(
            {
                'success': True,
                'message': 'Product retrieved successfully',
                'data': serializer.data
            },
            status=status.HTTP_200_OK
        )

    def partial_update(self, request, *args, **kwargs):
        """Update product with custom response; images no longer referenced are removed from storage."""
        instance = self.get_object()
        previous_keys = stored_image_keys(instance)
        data, uploads = _product_payload(request)
        try:
            product = _save_product(
                lambda payload: self.get_serializer(instance, data=payload, partial=True), data, uploads
            )
        except ImageStorageError:
            return _image_storage_failed()

        product = Product.objects.prefetch_related('variations').get(pk=product.pk)
        delete_stored_images(previous_keys - stored_image_keys(product))

        return Response(
            {
                'success': True,
                'message': 'Product updated successfully',
                'data': ProductSerializer(product).data
            },
            status=status.HTTP_200_OK
        )

    def destroy(self, request, *args, **kwargs):
        """Delete product and its stored images with custom response."""
        instance = self.get_object()
        product_id = instance.id
        image_keys = stored_image_keys(instance)
        self.perform_destroy(instance)
        logger.info(f"Product {product_id} deleted")
        delete_stored_images(image_keys)

        return Response(
            {
                'success': True,
                'message': 'Product deleted successfully'
            },
            status=status.HTTP_204_NO_CONTENT
        )


class DescribeProductImageView(generics.GenericAPIView):
    """
    Generate a product description from an uploaded image.

    POST /api/products/describe-image/ - Staff only, multipart field 'image'
    """

    serializer_class = ImageDescriptionSerializer
    permission_classes = [permissions.IsAdminUser]

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        image = serializer.validated_data['image']

        try:
            description = generate_description_from_image(image.read(), image.content_type)
        except (DescriptionGenerationError, ImproperlyConfigured) as e:
            logger.error(f"Description generation failed for {image.name}: {str(e)}")
            return Response(
                {
                    'success': False,
                    'message': 'Could not generate a description for this image',
                    'data': None
                },
                status=status.HTTP_502_BAD_GATEWAY
            )

        return Response(
            {
                'success': True,
                'message': 'Description generated successfully',
                'data': {'description': description}
            },
            status=status.HTTP_200_OK
        )
