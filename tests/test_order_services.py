from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

import pytest
from rest_framework.exceptions import ValidationError

from inventory.models import Inventory
from orders import services
from orders.exceptions import (
    TableUnavailable, InvalidStatusTransition, PaymentError, PaymentConflict,
    InsufficientStock, SelfOrderingDisabled
)
from orders.models import Order, OrderItem, OrderStatus, OrderSource, PaymentStatus, TableStatus


# =============== TOTALS ===============

def test_totals_for_sample_cart():
    totals = services.calculate_totals([(Decimal('100'), 2), (Decimal('50'), 1)], Decimal('0.18'))
    assert totals.subtotal == Decimal('250.00')
    assert totals.tax_amount == Decimal('45.00')
    assert totals.total_amount == Decimal('295.00')


def test_tax_rounds_half_up():
    totals = services.calculate_totals([(Decimal('0.05'), 1)], Decimal('0.5'))
    assert totals.tax_amount == Decimal('0.03')
    assert totals.total_amount == Decimal('0.08')


def test_empty_cart_totals_are_zero():
    assert services.calculate_totals([], Decimal('0.18')) == (Decimal('0.00'), Decimal('0.00'), Decimal('0.00'))


def test_split_tax_halves_sum_to_tax():
    tax = services.split_tax(Decimal('45.01'), Decimal('18.00'))
    assert tax['sgst_rate'] == tax['cgst_rate'] == Decimal('9.00')
    assert tax['sgst_amount'] + tax['cgst_amount'] == Decimal('45.01')


# =============== ORDER PLACEMENT ===============

def test_place_order_records_items_and_occupies_table(order, table, waiter):
    assert order.order_number.startswith('ORD-')
    assert order.subtotal == Decimal('250.00')
    assert order.tax_rate == Decimal('18.00')
    assert order.tax_amount == Decimal('45.00')
    assert order.total_amount == Decimal('295.00')
    assert order.status == OrderStatus.ACTIVE
    assert order.payment_status == PaymentStatus.PENDING
    assert order.created_by == waiter

    items = list(order.items.all())
    assert len(items) == 2
    for item in items:
        assert item.total_price == item.unit_price * item.quantity
    assert {item.modifiers for item in items} == {'', 'less sugar'}

    table.refresh_from_db()
    assert table.status == TableStatus.OCCUPIED
    assert table.current_order_id == order.pk


def test_second_order_on_occupied_table_is_rejected(order, place):
    with pytest.raises(TableUnavailable):
        place()
    assert Order.objects.count() == 1


def test_table_under_maintenance_is_rejected(place, table):
    table.status = TableStatus.MAINTENANCE
    table.save()
    with pytest.raises(TableUnavailable):
        place()


def test_self_order_uses_the_same_tax_rate(place, second_table, restaurant):
    restaurant.tax_rate = Decimal('5.00')
    restaurant.save()

    staff = place()
    guest = place(target=second_table, source=OrderSource.SELF_ORDER, user=None)

    assert staff.tax_rate == guest.tax_rate == Decimal('5.00')
    assert staff.tax_amount == guest.tax_amount == Decimal('12.50')
    assert guest.source == OrderSource.SELF_ORDER
    assert guest.created_by is None
    assert guest.waiter_name == 'Self-Order'


def test_self_order_refused_when_disabled(place, restaurant):
    restaurant.allow_self_ordering = False
    restaurant.save()
    with pytest.raises(SelfOrderingDisabled):
        place(source=OrderSource.SELF_ORDER, user=None)


def test_stock_is_taken_for_each_item(order, paneer, lassi):
    assert Inventory.objects.get(menu_item=paneer).current_stock == 98
    assert Inventory.objects.get(menu_item=lassi).current_stock == 99


def test_stock_shortfall_rejects_the_whole_order(make_item, table, waiter):
    scarce = make_item('Lobster', '900.00', stock=1)
    with pytest.raises(InsufficientStock):
        services.place_order(
            table_id=table.pk, customer_name='Ravi', guest_count=1,
            items=[{'menu_item_id': scarce.pk, 'quantity': 2}], user=waiter
        )

    assert Order.objects.count() == 0
    assert OrderItem.objects.count() == 0
    table.refresh_from_db()
    assert table.status == TableStatus.AVAILABLE
    assert table.current_order is None
    assert Inventory.objects.get(menu_item=scarce).current_stock == 1


def test_stock_untouched_when_decrement_is_off(make_item, table, restaurant):
    restaurant.decrement_stock_on_order = False
    restaurant.save()
    dish = make_item('Dal Makhani', '180.00', stock=0)

    order = services.place_order(
        table_id=table.pk, customer_name='Ravi', guest_count=1,
        items=[{'menu_item_id': dish.pk, 'quantity': 3}]
    )
    assert order.total_amount == Decimal('637.20')
    assert Inventory.objects.get(menu_item=dish).current_stock == 0


def test_unavailable_item_is_rejected(make_item, table):
    dish = make_item('Biryani', '250.00', is_available=False)
    with pytest.raises(ValidationError):
        services.place_order(
            table_id=table.pk, customer_name='Ravi', guest_count=1,
            items=[{'menu_item_id': dish.pk, 'quantity': 1}]
        )


@pytest.mark.parametrize('customer_name, guest_count, items', [
    ('  ', 2, None),
    ('Asha', 0, None),
    ('Asha', 2, []),
])
def test_invalid_order_input(table, cart, customer_name, guest_count, items):
    with pytest.raises(ValidationError):
        services.place_order(
            table_id=table.pk, customer_name=customer_name, guest_count=guest_count,
            items=cart if items is None else items
        )


def test_order_number_moves_past_a_taken_millisecond(order, monkeypatch):
    fixed = datetime(2025, 1, 1, 12, 0, tzinfo=dt_timezone.utc)
    monkeypatch.setattr('django.utils.timezone.now', lambda: fixed)
    stamp = int(fixed.timestamp() * 1000)
    Order.objects.filter(pk=order.pk).update(order_number=f"ORD-{stamp}")

    assert Order.next_order_number() == f"ORD-{stamp + 1}"


# =============== STATUS LIFECYCLE ===============

def test_all_items_prepared_moves_order_to_serving_once(order, table):
    items = list(order.items.all())

    _, _, promoted = services.set_item_prepared(items[0].pk)
    assert promoted is False

    item, updated, promoted = services.set_item_prepared(items[1].pk)
    assert promoted is True
    assert item.prepared_at is not None
    assert updated.status == OrderStatus.SERVING
    table.refresh_from_db()
    assert table.status == TableStatus.SERVING

    # Re-toggling after the move does not fire again
    services.set_item_prepared(items[1].pk, prepared=False)
    _, again, promoted = services.set_item_prepared(items[1].pk)
    assert promoted is False
    assert again.status == OrderStatus.SERVING


def test_unpreparing_clears_prepared_at(order):
    item = order.items.first()
    services.set_item_prepared(item.pk)
    item, _, _ = services.set_item_prepared(item.pk, prepared=False)
    assert item.is_prepared is False
    assert item.prepared_at is None


def test_mark_serving_is_idempotent(order):
    _, changed = services.mark_serving(order.pk)
    assert changed is True
    served, changed = services.mark_serving(order.pk)
    assert changed is False
    assert served.status == OrderStatus.SERVING


def test_status_moves_forward_only(order):
    assert services.change_status(order.pk, OrderStatus.ONGOING).status == OrderStatus.ONGOING
    with pytest.raises(InvalidStatusTransition):
        services.change_status(order.pk, OrderStatus.ACTIVE)
    with pytest.raises(InvalidStatusTransition):
        services.change_status(order.pk, OrderStatus.COMPLETED)


def test_same_status_is_a_no_op(order):
    assert services.change_status(order.pk, OrderStatus.ACTIVE).status == OrderStatus.ACTIVE


def test_manual_serving_updates_table(order, table):
    services.change_status(order.pk, OrderStatus.SERVING)
    table.refresh_from_db()
    assert table.status == TableStatus.SERVING


def test_completed_order_items_are_frozen(order):
    services.mark_serving(order.pk)
    services.process_payment(order.pk, 'cash')
    with pytest.raises(InvalidStatusTransition):
        services.set_item_prepared(order.items.first().pk)


# =============== KITCHEN ===============

@pytest.mark.parametrize('minutes, expected', [(31, 'high'), (20, 'medium'), (15, 'low'), (10, 'low')])
def test_priority_from_age(minutes, expected):
    now = datetime(2025, 1, 1, 12, 0, tzinfo=dt_timezone.utc)
    assert services.order_priority(now - timedelta(minutes=minutes), now) == expected


def test_kitchen_queue_is_oldest_first_and_skips_served(place, second_table, floor):
    first = place()
    second = place(target=second_table)
    services.mark_serving(first.pk)

    assert [o.pk for o in services.kitchen_queue()] == [second.pk]


def test_progress_counts_prepared_items(order):
    services.set_item_prepared(order.items.first().pk)
    assert services.order_progress(order) == {'prepared_items': 1, 'total_items': 2, 'percent': 50}


def test_status_info_texts():
    assert services.status_info(OrderStatus.ACTIVE)['title'] == 'Order Received'
    assert services.status_info(OrderStatus.COMPLETED)['estimated_time'] == 'Completed'
    assert services.status_info('unknown')['estimated_time'] == 'Please wait'


# =============== PAYMENT ===============

def test_payment_completes_order_and_frees_table(order, table):
    services.mark_serving(order.pk)
    paid = services.process_payment(order.pk, 'cash')

    assert paid.status == OrderStatus.COMPLETED
    assert paid.payment_status == PaymentStatus.PAID
    assert paid.payment_method == 'cash'
    assert paid.paid_at is not None and paid.completed_at is not None
    table.refresh_from_db()
    assert table.status == TableStatus.AVAILABLE
    assert table.current_order is None


def test_credit_payment_needs_room_and_guest(order):
    services.mark_serving(order.pk)
    with pytest.raises(PaymentError):
        services.process_payment(order.pk, 'credit', room_number='204')

    paid = services.process_payment(order.pk, 'credit', room_number='204', guest_name='Mr. Rao')
    assert paid.payment_status == PaymentStatus.CREDIT
    assert paid.room_number == '204'
    assert paid.guest_name == 'Mr. Rao'


def test_unserved_order_cannot_be_paid(order, table):
    with pytest.raises(PaymentConflict):
        services.process_payment(order.pk, 'card')
    order.refresh_from_db()
    assert order.payment_status == PaymentStatus.PENDING
    table.refresh_from_db()
    assert table.current_order_id == order.pk


def test_order_cannot_be_paid_twice(order):
    services.mark_serving(order.pk)
    services.process_payment(order.pk, 'upi')
    with pytest.raises(PaymentConflict):
        services.process_payment(order.pk, 'cash')


def test_unknown_payment_method(order):
    with pytest.raises(PaymentError):
        services.process_payment(order.pk, 'cheque')


def test_upi_uri():
    uri = services.upi_payment_uri(Decimal('295'), '7259911243@yespop')
    assert uri == 'upi://pay?pa=7259911243@yespop&am=295.00&cu=INR&tn=Restaurant%20Bill%20Payment'
