"""
Tests for the order store helpers.
"""
import pytest
from django.db import IntegrityError

from orders.models import Order
from orders.utils import (
    advance_fulfillment,
    apply_order_changes,
    claim_sale_notification,
    create_pending_order,
    find_by_correlation_token,
    update_order_after_payment,
)

pytestmark = pytest.mark.django_db


def test_create_pending_order_defaults():
    order = create_pending_order(
        user_id='user-1',
        correlation_token='token-1',
        gateway_preference_id='pref-1',
        customer_name='Ana',
        customer_email='ana@example.com',
        customer_phone='11999999999',
        customer_national_id='12345678909',
        shipping_address={},
        items=[],
        total_amount='10.00',
    )

    assert order.status == Order.Status.PENDING
    assert order.gateway_payment_status == Order.PENDING_CHECKOUT
    assert order.version == 0
    assert order.sale_notified_at is None


def test_correlation_token_is_unique(make_order):
    make_order(correlation_token='token-1')

    with pytest.raises(IntegrityError):
        make_order(correlation_token='token-1')


def test_find_by_correlation_token(make_order):
    order = make_order(correlation_token='token-1')

    assert find_by_correlation_token('token-1') == order
    assert find_by_correlation_token('token-2') is None


class TestApplyOrderChanges:
    """Compare-and-swap writes on the order version."""

    def test_fresh_write_wins(self, make_order):
        order = make_order()

        assert apply_order_changes(order, status=Order.Status.PAID) is True

        assert order.version == 1
        order.refresh_from_db()
        assert order.status == Order.Status.PAID
        assert order.version == 1

    def test_stale_write_is_rejected(self, make_order):
        order = make_order()
        stale = Order.objects.get(pk=order.pk)

        assert apply_order_changes(order, status=Order.Status.PAID) is True
        assert apply_order_changes(stale, status=Order.Status.CANCELLED) is False

        assert stale.status == Order.Status.PENDING
        order.refresh_from_db()
        assert order.status == Order.Status.PAID
        assert order.version == 1


class TestClaimSaleNotification:

    def test_only_paid_orders_can_be_claimed(self, make_order):
        order = make_order()

        assert claim_sale_notification(order) is False

    def test_claim_happens_once(self, make_order):
        order = make_order(status=Order.Status.PAID)
        other_copy = Order.objects.get(pk=order.pk)

        assert claim_sale_notification(order) is True
        assert claim_sale_notification(other_copy) is False
        assert order.sale_notified_at is not None


class TestAdvanceFulfillment:

    def test_walks_the_fulfillment_path(self, make_order):
        order = make_order(status=Order.Status.PAID)

        for expected in (Order.Status.PROCESSING, Order.Status.SHIPPED, Order.Status.DELIVERED):
            assert advance_fulfillment(order) is True
            assert order.status == expected

        assert advance_fulfillment(order) is False
        order.refresh_from_db()
        assert order.status == Order.Status.DELIVERED
        assert order.version == 3

    @pytest.mark.parametrize('status', [Order.Status.PENDING, Order.Status.REJECTED, Order.Status.CANCELLED])
    def test_unpaid_orders_do_not_move(self, make_order, status):
        order = make_order(status=status)

        assert advance_fulfillment(order) is False
        order.refresh_from_db()
        assert order.status == status


class TestUpdateOrderAfterPayment:

    def test_overwrites_payment_fields(self, make_order):
        order = make_order(gateway_preference_id='pref-1')

        assert update_order_after_payment('pref-1', '999', 'approved') is True

        order.refresh_from_db()
        assert order.gateway_payment_id == '999'
        assert order.gateway_payment_status == 'approved'
        assert order.status == Order.Status.PENDING
        assert order.version == 1

    def test_unknown_preference(self, make_order):
        make_order(gateway_preference_id='pref-1')

        assert update_order_after_payment('pref-2', '999', 'approved') is False


class TestOrderModel:

    @pytest.mark.parametrize('target', [
        Order.Status.PENDING, Order.Status.PAID, Order.Status.REJECTED, Order.Status.CANCELLED,
    ])
    def test_pending_accepts_payment_outcomes(self, target):
        assert Order(status=Order.Status.PENDING).can_transition_to(target)

    def test_pending_cannot_jump_to_fulfillment(self):
        assert not Order(status=Order.Status.PENDING).can_transition_to(Order.Status.SHIPPED)

    @pytest.mark.parametrize('status', [Order.Status.REJECTED, Order.Status.CANCELLED, Order.Status.PAID])
    def test_settled_orders_keep_their_status(self, status):
        order = Order(status=status)

        assert order.can_transition_to(status)
        assert not order.can_transition_to(Order.Status.PENDING)

    @pytest.mark.parametrize('status', [Order.Status.REJECTED, Order.Status.CANCELLED])
    def test_failed_orders_can_still_be_paid(self, status):
        assert Order(status=status).can_transition_to(Order.Status.PAID)

    def test_paid_order_cannot_fail(self):
        order = Order(status=Order.Status.PAID)

        assert not order.can_transition_to(Order.Status.REJECTED)
        assert not order.can_transition_to(Order.Status.CANCELLED)
