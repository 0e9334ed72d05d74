from decimal import Decimal

import pytest
from django.urls import reverse

from orders import services
from orders.models import Order, RestaurantTable, OrderStatus, TableStatus


def order_payload(table, cart):
    return {
        'table_id': str(table.pk),
        'customer_name': 'Asha',
        'guest_count': 2,
        'items': [dict(line, menu_item_id=str(line['menu_item_id'])) for line in cart],
    }


# =============== FLOORS & TABLES ===============

def test_manager_creates_floor_and_table(client_for, manager):
    client = client_for(manager)
    floor = client.post(reverse('orders:floor-list'), {'floor_name': 'Rooftop', 'floor_number': 3}, format='json')
    assert floor.status_code == 201

    table = client.post(
        reverse('orders:table-list'),
        {'floor': floor.data['id'], 'table_number': 'R1', 'capacity': 6},
        format='json'
    )
    assert table.status_code == 201
    assert table.data['status'] == TableStatus.AVAILABLE

    duplicate = client.post(
        reverse('orders:table-list'),
        {'floor': floor.data['id'], 'table_number': 'R1', 'capacity': 2},
        format='json'
    )
    assert duplicate.status_code == 400


def test_waiter_sees_tables_but_cannot_create_them(client_for, waiter, floor, table):
    client = client_for(waiter)
    assert client.get(reverse('orders:table-list')).status_code == 200
    response = client.post(
        reverse('orders:table-list'), {'floor': str(floor.pk), 'table_number': 'T9'}, format='json'
    )
    assert response.status_code == 403


def test_table_with_open_order_is_not_deleted(client_for, manager, order, table):
    response = client_for(manager).delete(reverse('orders:table-detail', args=[table.pk]))
    assert response.status_code == 409
    assert RestaurantTable.objects.get(pk=table.pk).is_active


def test_free_table_is_deactivated(client_for, manager, table):
    response = client_for(manager).delete(reverse('orders:table-detail', args=[table.pk]))
    assert response.status_code == 204
    table.refresh_from_db()
    assert table.is_active is False


def test_table_status_follows_open_order(client_for, manager, order, table):
    response = client_for(manager).patch(
        reverse('orders:table-detail', args=[table.pk]), {'status': 'available'}, format='json'
    )
    assert response.status_code == 400


def test_table_board_groups_by_floor(client_for, waiter, order, table, second_table):
    response = client_for(waiter).get(reverse('orders:table-board'))
    assert response.status_code == 200
    assert response.data['total_tables'] == 2
    assert response.data['status_counts']['occupied'] == 1
    assert response.data['status_counts']['available'] == 1
    assert len(response.data['floors'][0]['tables']) == 2


def test_table_qr_png(client_for, manager, table):
    response = client_for(manager).get(reverse('orders:table-qr', args=[table.pk]))
    assert response.status_code == 200
    assert response['Content-Type'] == 'image/png'
    assert response.content.startswith(b'\x89PNG')


def test_bulk_qr_generation_stores_order_url(client_for, manager, table, settings):
    settings.PUBLIC_ORDER_BASE_URL = 'https://menu.example.com/'
    response = client_for(manager).post(reverse('orders:table-qr-generate'), {}, format='json')
    assert response.status_code == 200
    assert response.data['generated'] == 1
    table.refresh_from_db()
    assert table.qr_code_url == f"https://menu.example.com/order/{table.pk}"


def test_qr_sheet_pdf(client_for, manager, table, second_table):
    response = client_for(manager).get(reverse('orders:table-qr-sheet'))
    assert response.status_code == 200
    assert response['Content-Type'] == 'application/pdf'
    assert response.content.startswith(b'%PDF')


def test_waiter_cannot_print_qr_codes(client_for, waiter, table):
    assert client_for(waiter).get(reverse('orders:table-qr', args=[table.pk])).status_code == 403


# =============== ORDERS ===============

def test_waiter_places_order(client_for, waiter, table, cart):
    response = client_for(waiter).post(reverse('orders:order-list'), order_payload(table, cart), format='json')
    assert response.status_code == 201
    assert response.data['subtotal'] == Decimal('250.00')
    assert response.data['tax_amount'] == Decimal('45.00')
    assert response.data['total_amount'] == Decimal('295.00')
    assert response.data['created_by_name'] == waiter.get_full_name()
    assert len(response.data['items']) == 2
    assert response.data['progress'] == {'prepared_items': 0, 'total_items': 2, 'percent': 0}


def test_second_order_on_table_is_a_conflict(client_for, waiter, order, table, cart):
    response = client_for(waiter).post(reverse('orders:order-list'), order_payload(table, cart), format='json')
    assert response.status_code == 409
    assert response.data['code'] == 'table_unavailable'
    assert Order.objects.count() == 1


def test_chef_cannot_place_orders(client_for, chef, table, cart):
    response = client_for(chef).post(reverse('orders:order-list'), order_payload(table, cart), format='json')
    assert response.status_code == 403


def test_order_needs_items(client_for, waiter, table):
    payload = {'table_id': str(table.pk), 'customer_name': 'Asha', 'guest_count': 1, 'items': []}
    response = client_for(waiter).post(reverse('orders:order-list'), payload, format='json')
    assert response.status_code == 400
    assert 'items' in response.data['details']


def test_anonymous_requests_are_refused(api_client, table):
    assert api_client.get(reverse('orders:order-list')).status_code == 401


def test_order_list_filters(client_for, chef, place, second_table):
    first = place()
    place(target=second_table)
    services.mark_serving(first.pk)

    client = client_for(chef)
    all_orders = client.get(reverse('orders:order-list'))
    assert len(all_orders.data) == 2

    serving = client.get(reverse('orders:order-list'), {'status': 'serving'})
    assert [o['id'] for o in serving.data] == [str(first.pk)]


def test_order_detail(client_for, chef, order):
    response = client_for(chef).get(reverse('orders:order-detail', args=[order.pk]))
    assert response.status_code == 200
    assert response.data['order_number'] == order.order_number
    assert response.data['table_number'] == 'T1'
    assert response.data['floor_name'] == 'Ground Floor'


def test_chef_moves_order_forward(client_for, chef, order):
    client = client_for(chef)
    response = client.post(reverse('orders:order-status', args=[order.pk]), {'status': 'ongoing'}, format='json')
    assert response.status_code == 200
    assert response.data['status'] == OrderStatus.ONGOING

    response = client.post(reverse('orders:order-status', args=[order.pk]), {'status': 'completed'}, format='json')
    assert response.status_code == 409


def test_kot_shows_waiter_and_notes(client_for, chef, order, waiter):
    response = client_for(chef).get(reverse('orders:order-kot', args=[order.pk]))
    assert response.status_code == 200
    html = response.content.decode()
    assert 'KITCHEN ORDER TICKET' in html
    assert waiter.get_full_name() in html
    assert 'Note: less sugar' in html
    assert '[VEG]' in html


# =============== KITCHEN ===============

def test_kitchen_display(client_for, chef, order):
    response = client_for(chef).get(reverse('orders:kitchen-display'))
    assert response.status_code == 200
    assert response.data['counts']['total'] == 1
    assert response.data['orders'][0]['priority'] == 'low'
    assert response.data['orders'][0]['minutes_waiting'] == 0


def test_waiter_has_no_kitchen_access(client_for, waiter):
    assert client_for(waiter).get(reverse('orders:kitchen-display')).status_code == 403


def test_preparing_every_item_readies_order(client_for, chef, order, table):
    client = client_for(chef)
    items = list(order.items.all())

    first = client.post(reverse('orders:item-prepared', args=[items[0].pk]), {'is_prepared': True}, format='json')
    assert first.data['order_ready'] is False
    assert first.data['progress']['percent'] == 50

    last = client.post(reverse('orders:item-prepared', args=[items[1].pk]), {'is_prepared': True}, format='json')
    assert last.status_code == 200
    assert last.data['order_ready'] is True
    assert last.data['order_status'] == OrderStatus.SERVING
    table.refresh_from_db()
    assert table.status == TableStatus.SERVING


def test_mark_ready_twice(client_for, chef, order):
    client = client_for(chef)
    assert client.post(reverse('orders:order-ready', args=[order.pk])).data['order_ready'] is True
    assert client.post(reverse('orders:order-ready', args=[order.pk])).data['order_ready'] is False


# =============== BILLING ===============

@pytest.fixture
def served(order):
    services.mark_serving(order.pk)
    return order


def test_billing_queue_lists_served_orders(client_for, waiter, served, place, second_table):
    place(target=second_table)
    response = client_for(waiter).get(reverse('orders:billing-list'))
    assert response.status_code == 200
    assert [o['id'] for o in response.data['orders']] == [str(served.pk)]
    assert response.data['counts']['pending'] == 1


def test_cash_payment(client_for, waiter, served, table):
    response = client_for(waiter).post(
        reverse('orders:order-pay', args=[served.pk]), {'payment_method': 'cash'}, format='json'
    )
    assert response.status_code == 200
    assert response.data['status'] == OrderStatus.COMPLETED
    assert response.data['payment_status'] == 'paid'
    table.refresh_from_db()
    assert table.status == TableStatus.AVAILABLE
    assert table.current_order is None


def test_credit_payment_without_room_is_invalid(client_for, waiter, served):
    response = client_for(waiter).post(
        reverse('orders:order-pay', args=[served.pk]), {'payment_method': 'credit'}, format='json'
    )
    assert response.status_code == 400
    assert 'room_number' in response.data['details']


def test_paying_active_order_is_a_conflict(client_for, waiter, order):
    response = client_for(waiter).post(
        reverse('orders:order-pay', args=[order.pk]), {'payment_method': 'card'}, format='json'
    )
    assert response.status_code == 409


def test_chef_cannot_take_payment(client_for, chef, served):
    response = client_for(chef).post(
        reverse('orders:order-pay', args=[served.pk]), {'payment_method': 'cash'}, format='json'
    )
    assert response.status_code == 403


def test_upi_link_and_qr(client_for, waiter, served):
    client = client_for(waiter)
    response = client.get(reverse('orders:order-upi', args=[served.pk]))
    assert response.status_code == 200
    assert response.data['upi_uri'] == (
        'upi://pay?pa=7259911243@yespop&am=295.00&cu=INR&tn=Restaurant%20Bill%20Payment'
    )

    image = client.get(reverse('orders:order-upi', args=[served.pk]), {'image': 'png'})
    assert image['Content-Type'] == 'image/png'
    assert image.content.startswith(b'\x89PNG')


def test_bill_html_splits_tax(client_for, waiter, served):
    response = client_for(waiter).get(reverse('orders:order-bill', args=[served.pk]))
    assert response.status_code == 200
    html = response.content.decode()
    assert served.order_number in html
    assert 'SGST' in html and 'CGST' in html
    assert '22.50' in html
    assert '295.00' in html


def test_bill_pdf(client_for, waiter, served):
    response = client_for(waiter).get(reverse('orders:order-bill-pdf', args=[served.pk]))
    assert response.status_code == 200
    assert response['Content-Type'] == 'application/pdf'
    assert response.content.startswith(b'%PDF')
