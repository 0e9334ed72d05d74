from decimal import Decimal

import pytest
from django.core.exceptions import PermissionDenied
from django.urls import reverse

from dashboard.models import RestaurantSettings, SystemSettings


def test_any_signed_in_user_reads_settings(client_for, waiter):
    response = client_for(waiter).get(reverse('settings'))
    assert response.status_code == 200
    assert response.data['restaurant']['tax_rate'] == Decimal('18.00')
    assert response.data['restaurant']['allow_self_ordering'] is True
    assert response.data['system']['max_login_attempts'] == 5


def test_waiter_cannot_change_settings(client_for, waiter):
    response = client_for(waiter).put(reverse('settings'), {'restaurant': {'tax_rate': '5.00'}}, format='json')
    assert response.status_code == 403
    assert RestaurantSettings.load().tax_rate == Decimal('18.00')


def test_new_tax_rate_applies_to_next_order(client_for, manager, order, place, second_table):
    response = client_for(manager).put(reverse('settings'), {'restaurant': {'tax_rate': '5.00'}}, format='json')
    assert response.status_code == 200
    assert response.data['restaurant']['tax_rate'] == Decimal('5.00')

    later = place(target=second_table)
    assert later.tax_amount == Decimal('12.50')
    order.refresh_from_db()
    assert order.tax_amount == Decimal('45.00')


def test_partial_update_keeps_other_fields(client_for, manager):
    client_for(manager).put(reverse('settings'), {
        'restaurant': {'restaurant_name': 'Lakeside Grill', 'currency': 'inr'},
        'system': {'max_login_attempts': 3},
    }, format='json')

    restaurant = RestaurantSettings.load()
    assert restaurant.restaurant_name == 'Lakeside Grill'
    assert restaurant.currency == 'INR'
    assert restaurant.tax_rate == Decimal('18.00')
    assert SystemSettings.load().max_login_attempts == 3


def test_invalid_values_change_nothing(client_for, manager):
    response = client_for(manager).put(reverse('settings'), {
        'restaurant': {'restaurant_name': 'Lakeside Grill'},
        'system': {'max_login_attempts': 0},
    }, format='json')
    assert response.status_code == 400
    assert RestaurantSettings.load().restaurant_name == 'Resort Restaurant'


def test_upi_id_needs_a_handle(client_for, manager):
    response = client_for(manager).put(reverse('settings'), {'restaurant': {'upi_id': 'nobank'}}, format='json')
    assert response.status_code == 400


def test_reset_restores_defaults(client_for, manager, restaurant):
    restaurant.tax_rate = Decimal('5.00')
    restaurant.save()

    response = client_for(manager).post(reverse('settings-reset'))
    assert response.status_code == 200
    assert response.data['restaurant']['tax_rate'] == Decimal('18.00')
    assert RestaurantSettings.objects.count() == 1


def test_settings_row_is_never_deleted(restaurant):
    with pytest.raises(PermissionDenied):
        restaurant.delete()
