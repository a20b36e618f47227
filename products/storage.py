"""Product image storage on the configured Django storage backend (S3 in production)."""

import logging
import re
import uuid
from urllib.parse import unquote, urlparse

from django.core.files.storage import default_storage

logger = logging.getLogger(__name__)

PRODUCT_IMAGE_PREFIX = 'products/'


class ImageStorageError(Exception):
    """An image could not be written to the storage backend."""
    pass


def build_image_key(filename):
    """Return a unique storage key for an uploaded file name."""
    safe_name = re.sub(r'\s+', '_', filename or 'image')
    return f"{PRODUCT_IMAGE_PREFIX}{uuid.uuid4().hex}_{safe_name}"


def upload_product_image(upload):
    """
    Store an uploaded image and return its public URL.

    Args:
        upload: UploadedFile from a multipart request

    Returns:
        tuple: (storage key, URL)

    Raises:
        ImageStorageError: if the backend refuses the file
    """
    try:
        key = default_storage.save(build_image_key(upload.name), upload)
        url = default_storage.url(key)
    except Exception as e:
        logger.error(f"Failed to store image {upload.name}: {str(e)}")
        raise ImageStorageError(f"Failed to store image {upload.name}") from e

    logger.info(f"Image {upload.name} stored as {key}")
    return key, url


def storage_key_for(url):
    """Return the storage key behind a product image URL, or None for external URLs."""
    path = unquote(urlparse(url or '').path)
    marker = f"/{PRODUCT_IMAGE_PREFIX}"
    if marker not in path:
        return None
    return path[path.index(marker) + 1:]


def stored_image_keys(product):
    """Collect the storage keys of every stored image referenced by a product."""
    keys = set()
    for variation in product.variations.all():
        for image in variation.images or []:
            key = storage_key_for(image.get('url'))
            if key:
                keys.add(key)
    return keys


def delete_stored_images(keys):
    """
    Remove images from storage.

    Failures are logged and never raised; the product change that made the
    images obsolete is already saved.
    """
    for key in keys:
        try:
            default_storage.delete(key)
        except Exception as e:
            logger.error(f"Failed to delete stored image {key}: {str(e)}")
            continue
        logger.info(f"Stored image {key} deleted")


def attach_uploaded_images(product_data, uploads):
    """
    Fill images without a URL with the uploaded files, in order.

    Images that already carry a URL keep it. Extra images without a file
    keep an empty URL and fail validation later.

    Returns:
        list: storage keys written, so the caller can remove them if the product is rejected
    """
    uploads = list(uploads)
    written = []
    if not uploads:
        return written

    try:
        for variation in product_data.get('variations') or []:
            if not isinstance(variation, dict):
                continue
            for image in variation.get('images') or []:
                if not isinstance(image, dict) or image.get('url') or not uploads:
                    continue
                key, url = upload_product_image(uploads.pop(0))
                written.append(key)
                image['url'] = url
    except ImageStorageError:
        delete_stored_images(written)
        raise

    if uploads:
        logger.warning(f"{len(uploads)} uploaded files had no image entry and were ignored")
    return written
