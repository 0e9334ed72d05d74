from decimal import Decimal

import pytest
from django.urls import reverse

from inventory import services
from inventory.models import Inventory, MenuItem, StockStatus, stock_status


@pytest.mark.parametrize('current, threshold, expected', [
    (0, 10, StockStatus.OUT_OF_STOCK),
    (1, 10, StockStatus.LOW_STOCK),
    (10, 10, StockStatus.LOW_STOCK),
    (11, 10, StockStatus.IN_STOCK),
    (0, 0, StockStatus.OUT_OF_STOCK),
])
def test_stock_status_boundaries(current, threshold, expected):
    assert stock_status(current, threshold) == expected


def test_new_menu_item_gets_empty_inventory(category):
    item = MenuItem.objects.create(name='Masala Dosa', price=Decimal('120.00'), category=category)
    inventory = Inventory.objects.get(menu_item=item)
    assert inventory.current_stock == 0
    assert inventory.stock_status == StockStatus.OUT_OF_STOCK


def test_restock_adds_to_current_and_total(paneer, manager):
    inventory = paneer.inventory
    restocked = services.restock(inventory.pk, 25, user=manager)

    assert restocked.current_stock == 125
    assert restocked.total_quantity == 125
    assert restocked.last_restocked_at is not None
    assert restocked.restocked_by == manager


@pytest.mark.parametrize('quantity', [0, -3])
def test_restock_needs_positive_quantity(paneer, quantity):
    with pytest.raises(ValueError):
        services.restock(paneer.inventory.pk, quantity)


def test_low_stock_queryset(make_item):
    make_item('Gulab Jamun', '60.00', stock=10)
    make_item('Rasmalai', '80.00', stock=0)
    make_item('Kulfi', '70.00', stock=50)
    names = set(services.low_stock_queryset().values_list('menu_item__name', flat=True))
    assert names == {'Gulab Jamun', 'Rasmalai'}


# =============== API ===============

def test_manager_creates_menu_item_with_stock(client_for, manager, category):
    response = client_for(manager).post(reverse('menu-list-create'), {
        'name': 'Butter Chicken',
        'price': '320.00',
        'category': str(category.pk),
        'sub_category': 'non_veg',
        'initial_stock': 40,
        'low_stock_threshold': 5,
    }, format='json')

    assert response.status_code == 201
    assert response.data['current_stock'] == 40
    assert response.data['stock_status'] == StockStatus.IN_STOCK
    inventory = Inventory.objects.get(menu_item_id=response.data['id'])
    assert inventory.total_quantity == 40
    assert inventory.low_stock_threshold == 5


def test_duplicate_dish_in_category_is_rejected(client_for, manager, category, paneer):
    response = client_for(manager).post(reverse('menu-list-create'), {
        'name': 'paneer tikka', 'price': '90.00', 'category': str(category.pk),
    }, format='json')
    assert response.status_code == 400


def test_waiter_reads_menu_but_cannot_edit(client_for, waiter, category, paneer):
    client = client_for(waiter)
    assert client.get(reverse('menu-list-create')).status_code == 200
    response = client.post(reverse('menu-list-create'), {
        'name': 'Naan', 'price': '40.00', 'category': str(category.pk),
    }, format='json')
    assert response.status_code == 403


def test_menu_filters(client_for, waiter, paneer, make_item):
    make_item('Chicken 65', '220.00', sub_category='non_veg')
    response = client_for(waiter).get(reverse('menu-list-create'), {'sub_category': 'non_veg'})
    assert [item['name'] for item in response.data] == ['Chicken 65']


def test_toggle_availability(client_for, manager, paneer):
    response = client_for(manager).post(reverse('menu-toggle-availability', args=[paneer.pk]))
    assert response.status_code == 200
    assert response.data['is_available'] is False


@pytest.mark.parametrize('flag', [False, 'false', '0'])
def test_bulk_availability_switches_off(client_for, manager, paneer, lassi, flag):
    response = client_for(manager).post(reverse('menu-bulk-availability'), {
        'menu_ids': [str(paneer.pk), str(lassi.pk)], 'is_available': flag,
    }, format='json')
    assert response.status_code == 200
    assert response.data['updated_count'] == 2
    assert not MenuItem.objects.filter(is_available=True).exists()


def test_bulk_availability_from_form_data(client_for, manager, paneer):
    paneer.is_available = False
    paneer.save()
    response = client_for(manager).post(reverse('menu-bulk-availability'), {
        'menu_ids': [str(paneer.pk)], 'is_available': 'true',
    })
    assert response.status_code == 200
    paneer.refresh_from_db()
    assert paneer.is_available is True


@pytest.mark.parametrize('payload', [
    {'menu_ids': [], 'is_available': True},
    {'menu_ids': ['not-a-uuid'], 'is_available': True},
    {'is_available': True},
])
def test_bulk_availability_rejects_bad_input(client_for, manager, paneer, payload):
    response = client_for(manager).post(reverse('menu-bulk-availability'), payload, format='json')
    assert response.status_code == 400
    paneer.refresh_from_db()
    assert paneer.is_available is True


def test_ordered_dish_cannot_be_deleted(client_for, manager, order, paneer):
    response = client_for(manager).delete(reverse('menu-detail', args=[paneer.pk]))
    assert response.status_code == 409
    assert MenuItem.objects.filter(pk=paneer.pk).exists()


def test_category_with_items_cannot_be_deleted(client_for, manager, category, paneer):
    response = client_for(manager).delete(reverse('category-detail', args=[category.pk]))
    assert response.status_code == 409


def test_restock_endpoint(client_for, manager, paneer):
    inventory = paneer.inventory
    response = client_for(manager).post(
        reverse('inventory-restock', args=[inventory.pk]), {'quantity': 10}, format='json'
    )
    assert response.status_code == 200
    assert response.data['current_stock'] == 110
    assert response.data['total_quantity'] == 110
    assert response.data['restocked_by_name'] == manager.get_full_name()


def test_restock_endpoint_rejects_zero(client_for, manager, paneer):
    response = client_for(manager).post(
        reverse('inventory-restock', args=[paneer.inventory.pk]), {'quantity': 0}, format='json'
    )
    assert response.status_code == 400


def test_inventory_list_by_stock_status(client_for, manager, make_item):
    make_item('Gulab Jamun', '60.00', stock=10)
    make_item('Kulfi', '70.00', stock=50)
    response = client_for(manager).get(reverse('inventory-list'), {'stock_status': 'low_stock'})
    assert [row['menu_item_name'] for row in response.data] == ['Gulab Jamun']


def test_threshold_update(client_for, manager, paneer):
    inventory = paneer.inventory
    response = client_for(manager).patch(
        reverse('inventory-detail', args=[inventory.pk]),
        {'low_stock_threshold': 150, 'current_stock': 999},
        format='json'
    )
    assert response.status_code == 200
    assert response.data['low_stock_threshold'] == 150
    assert response.data['current_stock'] == 100
    assert response.data['stock_status'] == StockStatus.LOW_STOCK


def test_inventory_summary(client_for, manager, make_item):
    make_item('Gulab Jamun', '60.00', stock=10)
    make_item('Rasmalai', '80.00', stock=0)
    make_item('Kulfi', '70.00', stock=50)

    response = client_for(manager).get(reverse('inventory-summary'))
    stats = response.data['inventory_stats']
    assert stats['total_items'] == 3
    assert stats['out_of_stock'] == 1
    assert stats['low_stock'] == 1
    assert stats['in_stock'] == 1
    assert Decimal(stats['stock_value']) == Decimal('4100.00')
    assert len(response.data['attention']) == 2


def test_waiter_has_no_inventory_access(client_for, waiter):
    assert client_for(waiter).get(reverse('inventory-list')).status_code == 403
