"""
Tests for product image storage. The storage backend is always in memory or mocked.
"""
import json
from unittest.mock import MagicMock

import pytest
from django.core.files.base import ContentFile
from django.core.files.storage import InMemoryStorage
from django.core.files.uploadedfile import SimpleUploadedFile

from products.models import Product, ProductVariation
from products.storage import attach_uploaded_images, storage_key_for

LIST_URL = '/api/products/'
MEDIA_URL = 'https://cdn.example.com/media/'
PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'\x00' * 32


def png_upload(name='shirt.png'):
    return SimpleUploadedFile(name, PNG_BYTES, content_type='image/png')


@pytest.fixture
def image_storage(monkeypatch):
    storage = InMemoryStorage(base_url=MEDIA_URL)
    monkeypatch.setattr('products.storage.default_storage', storage)
    return storage


@pytest.fixture
def storage_spy(monkeypatch, image_storage):
    spy = MagicMock(wraps=image_storage)
    monkeypatch.setattr('products.storage.default_storage', spy)
    return spy


@pytest.fixture
def upload_payload():
    return {
        'name': 'Linen Shirt',
        'variations': [
            {
                'color': 'Sand',
                'size': 'M',
                'price': '79.90',
                'stock': 12,
                'images': [
                    {'url': '', 'altText': 'Front', 'isPrincipal': True},
                    {'url': 'https://cdn.example.com/shirt-sand-back.jpg', 'altText': 'Back'},
                ],
            },
        ],
    }


def stored_image(storage, name):
    key = storage.save(f'products/{name}', ContentFile(PNG_BYTES))
    return key, {'url': storage.url(key), 'altText': '', 'isPrincipal': False}


class TestStorageKeyFor:

    def test_stored_image_url(self):
        assert storage_key_for(f'{MEDIA_URL}products/abc_shirt.png') == 'products/abc_shirt.png'

    def test_quoted_path_is_unquoted(self):
        assert storage_key_for(f'{MEDIA_URL}products/abc_linen%20shirt.png') == 'products/abc_linen shirt.png'

    def test_external_url_has_no_key(self):
        assert storage_key_for('https://cdn.example.com/shirt-sand-front.jpg') is None

    @pytest.mark.parametrize('url', [None, ''])
    def test_empty_url(self, url):
        assert storage_key_for(url) is None


class TestAttachUploadedImages:

    def test_fills_empty_urls_in_order(self, image_storage, upload_payload):
        upload_payload['variations'][0]['images'].append({'url': '', 'altText': 'Side'})

        keys = attach_uploaded_images(upload_payload, [png_upload('front.png'), png_upload('side.png')])

        images = upload_payload['variations'][0]['images']
        assert len(keys) == 2
        assert images[0]['url'].endswith('_front.png')
        assert images[1]['url'] == 'https://cdn.example.com/shirt-sand-back.jpg'
        assert images[2]['url'].endswith('_side.png')
        assert all(image_storage.exists(key) for key in keys)

    def test_extra_uploads_are_ignored(self, image_storage, upload_payload):
        keys = attach_uploaded_images(upload_payload, [png_upload('front.png'), png_upload('spare.png')])

        assert len(keys) == 1

    def test_no_uploads_writes_nothing(self, storage_spy, upload_payload):
        assert attach_uploaded_images(upload_payload, []) == []
        storage_spy.save.assert_not_called()


@pytest.mark.django_db
class TestProductImageUploads:

    def test_multipart_create_stores_images(self, staff_client, image_storage, upload_payload):
        response = staff_client.post(
            LIST_URL,
            {'productData': json.dumps(upload_payload), 'files': [png_upload('shirt front.png')]},
            format='multipart'
        )

        assert response.status_code == 201
        images = Product.objects.get().variations.get().images
        assert images[0]['url'].startswith(f'{MEDIA_URL}products/')
        assert images[0]['url'].endswith('_shirt_front.png')
        assert images[0]['isPrincipal'] is True
        assert images[1]['url'] == 'https://cdn.example.com/shirt-sand-back.jpg'
        assert image_storage.exists(storage_key_for(images[0]['url']))

    def test_storage_failure_is_a_bad_gateway(self, staff_client, monkeypatch, upload_payload):
        broken = MagicMock()
        broken.save.side_effect = OSError('bucket unavailable')
        monkeypatch.setattr('products.storage.default_storage', broken)

        response = staff_client.post(
            LIST_URL,
            {'productData': json.dumps(upload_payload), 'files': [png_upload()]},
            format='multipart'
        )

        assert response.status_code == 502
        assert response.json()['success'] is False
        assert Product.objects.count() == 0

    def test_rejected_product_removes_its_uploads(self, staff_client, storage_spy, image_storage, upload_payload):
        upload_payload['variations'][0]['price'] = '0.00'

        response = staff_client.post(
            LIST_URL,
            {'productData': json.dumps(upload_payload), 'files': [png_upload()]},
            format='multipart'
        )

        assert response.status_code == 400
        assert Product.objects.count() == 0
        deleted = [call.args[0] for call in storage_spy.delete.call_args_list]
        assert len(deleted) == 1
        assert not image_storage.exists(deleted[0])

    def test_non_image_upload_is_rejected(self, staff_client, storage_spy, upload_payload):
        notes = SimpleUploadedFile('notes.txt', b'hello', content_type='text/plain')

        response = staff_client.post(
            LIST_URL,
            {'productData': json.dumps(upload_payload), 'files': [notes]},
            format='multipart'
        )

        assert response.status_code == 400
        storage_spy.save.assert_not_called()

    def test_product_data_must_be_an_object(self, staff_client, image_storage):
        response = staff_client.post(LIST_URL, {'productData': '["Linen Shirt"]'}, format='multipart')

        assert response.status_code == 400

    def test_multipart_patch_adds_image(self, staff_client, image_storage, upload_payload):
        product = Product.objects.create(name='Linen Shirt')
        variations = [{'color': 'Sand', 'size': 'M', 'price': '79.90', 'images': [{'url': '', 'altText': 'Front'}]}]

        response = staff_client.patch(
            f'{LIST_URL}{product.id}/',
            {'productData': json.dumps({'variations': variations}), 'files': [png_upload('front.png')]},
            format='multipart'
        )

        assert response.status_code == 200
        url = product.variations.get().images[0]['url']
        assert image_storage.exists(storage_key_for(url))

    def test_patch_removes_dropped_images(self, staff_client, image_storage):
        kept_key, kept = stored_image(image_storage, 'kept.png')
        dropped_key, dropped = stored_image(image_storage, 'dropped.png')
        product = Product.objects.create(name='Linen Shirt')
        ProductVariation.objects.create(
            product=product, color='Sand', size='M', price='79.90', images=[kept, dropped]
        )
        variations = [{'color': 'Sand', 'size': 'M', 'price': '79.90', 'images': [{'url': kept['url']}]}]

        response = staff_client.patch(f'{LIST_URL}{product.id}/', {'variations': variations}, format='json')

        assert response.status_code == 200
        assert image_storage.exists(kept_key)
        assert not image_storage.exists(dropped_key)

    def test_delete_removes_stored_images(self, staff_client, image_storage):
        key, image = stored_image(image_storage, 'tote.png')
        product = Product.objects.create(name='Canvas Tote')
        ProductVariation.objects.create(product=product, color='Natural', size='U', price='45.00', images=[
            image,
            {'url': 'https://cdn.example.com/tote-external.jpg', 'altText': '', 'isPrincipal': False},
        ])

        response = staff_client.delete(f'{LIST_URL}{product.id}/')

        assert response.status_code == 204
        assert not image_storage.exists(key)

    def test_storage_delete_failure_does_not_fail_delete(self, staff_client, monkeypatch, image_storage):
        _, image = stored_image(image_storage, 'tote.png')
        product = Product.objects.create(name='Canvas Tote')
        ProductVariation.objects.create(product=product, color='Natural', size='U', price='45.00', images=[image])
        broken = MagicMock()
        broken.delete.side_effect = OSError('bucket unavailable')
        monkeypatch.setattr('products.storage.default_storage', broken)

        response = staff_client.delete(f'{LIST_URL}{product.id}/')

        assert response.status_code == 204
        assert not Product.objects.exists()
        broken.delete.assert_called_once()
