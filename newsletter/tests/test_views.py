"""
HTTP tests for newsletter subscriptions.
"""
import uuid

import pytest

from newsletter.models import EmailSubscription

SUBSCRIPTIONS_URL = '/api/newsletter/subscriptions/'

pytestmark = pytest.mark.django_db


class TestSubscribe:

    def test_anyone_can_subscribe(self, api_client):
        response = api_client.post(SUBSCRIPTIONS_URL, {'email': 'Maria@Example.com '}, format='json')

        assert response.status_code == 201
        assert response.json()['data']['email'] == 'maria@example.com'
        assert EmailSubscription.objects.get().email == 'maria@example.com'

    def test_duplicate_email_is_rejected(self, api_client):
        EmailSubscription.objects.create(email='maria@example.com')

        response = api_client.post(SUBSCRIPTIONS_URL, {'email': 'MARIA@example.com'}, format='json')

        assert response.status_code == 400
        assert EmailSubscription.objects.count() == 1

    def test_invalid_email(self, api_client):
        response = api_client.post(SUBSCRIPTIONS_URL, {'email': 'not-an-email'}, format='json')

        assert response.status_code == 400


class TestManageSubscriptions:

    def test_staff_lists_subscriptions(self, staff_client):
        EmailSubscription.objects.create(email='a@example.com')
        EmailSubscription.objects.create(email='b@example.com')

        response = staff_client.get(SUBSCRIPTIONS_URL)

        assert response.status_code == 200
        assert response.json()['data']['count'] == 2

    def test_anonymous_cannot_list(self, api_client):
        response = api_client.get(SUBSCRIPTIONS_URL)

        assert response.status_code == 403

    def test_retrieve(self, staff_client):
        subscription = EmailSubscription.objects.create(email='a@example.com')

        response = staff_client.get(f'{SUBSCRIPTIONS_URL}{subscription.id}/')

        assert response.status_code == 200
        assert response.json()['data']['email'] == 'a@example.com'

    def test_retrieve_missing(self, staff_client):
        response = staff_client.get(f'{SUBSCRIPTIONS_URL}{uuid.uuid4()}/')

        assert response.status_code == 404

    def test_delete(self, staff_client):
        subscription = EmailSubscription.objects.create(email='a@example.com')

        response = staff_client.delete(f'{SUBSCRIPTIONS_URL}{subscription.id}/')

        assert response.status_code == 204
        assert not EmailSubscription.objects.exists()

    def test_delete_missing(self, staff_client):
        response = staff_client.delete(f'{SUBSCRIPTIONS_URL}{uuid.uuid4()}/')

        assert response.status_code == 404
