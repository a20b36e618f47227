from decimal import Decimal
from django.db import transaction
from rest_framework import serializers
from .models import Product, ProductVariation


class ProductImageSerializer(serializers.Serializer):
    """Serializer for one image reference of a variation."""

    url = serializers.URLField()
    altText = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    isPrincipal = serializers.BooleanField(required=False, default=False)


class ProductVariationSerializer(serializers.ModelSerializer):
    """Serializer for ProductVariation model."""

    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    images = ProductImageSerializer(many=True, required=False)

    class Meta:
        model = ProductVariation
        fields = ['id', 'color', 'size', 'price', 'stock', 'images', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_images(self, value):
        """Validate that at most one image is marked as principal."""
        if sum(1 for image in value if image.get('isPrincipal')) > 1:
            raise serializers.ValidationError("Only one image can be principal.")
        return [dict(image) for image in value]


class ProductSerializer(serializers.ModelSerializer):
    """Serializer for Product model with nested variations."""

    variations = ProductVariationSerializer(many=True, required=False)

    class Meta:
        model = Product
        fields = ['id', 'name', 'description', 'is_active', 'variations', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    @transaction.atomic
    def create(self, validated_data):
        """Create a product together with its variations."""
        variations = validated_data.pop('variations', [])
        product = Product.objects.create(**validated_data)
        for variation in variations:
            ProductVariation.objects.create(product=product, **variation)
        return product

    @transaction.atomic
    def update(self, instance, validated_data):
        """Update product fields; a given variations list replaces the current one."""
        variations = validated_data.pop('variations', None)
        for field, value in validated_data.items():
            setattr(instance, field, value)
        instance.save()

        if variations is not None:
            instance.variations.all().delete()
            for variation in variations:
                ProductVariation.objects.create(product=instance, **variation)
        return instance


class ImageDescriptionSerializer(serializers.Serializer):
    """Serializer for the AI description upload."""

    image = serializers.FileField(allow_empty_file=False)

    def validate_image(self, value):
        """Validate that the upload is an image."""
        content_type = getattr(value, 'content_type', '') or ''
        if not content_type.startswith('image/'):
            raise serializers.ValidationError("Upload must be an image file.")
        return value


class ProductUploadSerializer(serializers.Serializer):
    """
    Serializer for multipart product writes.

    productData carries the product as a JSON string; files are the images
    to store, matched in order to the images that have no url.
    """

    productData = serializers.JSONField(binary=True)
    files = serializers.ListField(
        child=serializers.FileField(allow_empty_file=False),
        required=False,
        default=list
    )

    def validate_productData(self, value):
        """Validate that the product data is a JSON object."""
        if not isinstance(value, dict):
            raise serializers.ValidationError("productData must be a JSON object.")
        return value

    def validate_files(self, value):
        """Validate that every upload is an image."""
        for upload in value:
            content_type = getattr(upload, 'content_type', '') or ''
            if not content_type.startswith('image/'):
                raise serializers.ValidationError(f"{upload.name} is not an image file.")
        return value
