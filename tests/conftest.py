from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from authentication.models import CustomUser, Role
from dashboard.models import RestaurantSettings
from inventory.models import Category, MenuItem, Inventory
from orders import services
from orders.models import Floor, RestaurantTable

PASSWORD = 'Str0ng-Passw0rd!'


# =============== USERS ===============

@pytest.fixture
def make_user(db):
    def make(role=Role.WAITER, username=None, **extra):
        username = username or f"{role}_user"
        return CustomUser.objects.create_user(
            username=username, password=PASSWORD, full_name=username.replace('_', ' ').title(),
            role=role, **extra
        )
    return make


@pytest.fixture
def owner(make_user):
    return make_user(Role.OWNER)


@pytest.fixture
def manager(make_user):
    return make_user(Role.MANAGER)


@pytest.fixture
def waiter(make_user):
    return make_user(Role.WAITER)


@pytest.fixture
def chef(make_user):
    return make_user(Role.CHEF)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    def make(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return make


# =============== MENU ===============

@pytest.fixture
def category(db):
    return Category.objects.create(name='Main Course', display_order=1)


@pytest.fixture
def make_item(category):
    def make(name, price, stock=100, **extra):
        item = MenuItem.objects.create(name=name, price=Decimal(price), category=category, **extra)
        Inventory.objects.filter(menu_item=item).update(current_stock=stock, total_quantity=stock)
        return item
    return make


@pytest.fixture
def paneer(make_item):
    return make_item('Paneer Tikka', '100.00')


@pytest.fixture
def lassi(make_item):
    return make_item('Sweet Lassi', '50.00')


# =============== TABLES & ORDERS ===============

@pytest.fixture
def floor(db):
    return Floor.objects.create(floor_name='Ground Floor', floor_number=0)


@pytest.fixture
def table(floor):
    return RestaurantTable.objects.create(floor=floor, table_number='T1', capacity=4)


@pytest.fixture
def second_table(floor):
    return RestaurantTable.objects.create(floor=floor, table_number='T2', capacity=2)


@pytest.fixture
def restaurant(db):
    return RestaurantSettings.load()


@pytest.fixture
def cart(paneer, lassi):
    """Two Paneer Tikka at 100 and one Sweet Lassi at 50"""
    return [
        {'menu_item_id': paneer.pk, 'quantity': 2},
        {'menu_item_id': lassi.pk, 'quantity': 1, 'modifiers': 'less sugar'},
    ]


@pytest.fixture
def place(table, cart, waiter):
    def place_on(target=None, customer_name='Asha', **extra):
        extra.setdefault('user', waiter)
        return services.place_order(
            table_id=(target or table).pk,
            customer_name=customer_name,
            guest_count=2,
            items=cart,
            **extra
        )
    return place_on


@pytest.fixture
def order(place):
    return place()
