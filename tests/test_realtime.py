import pytest
from asgiref.sync import async_to_sync
from channels.db import database_sync_to_async
from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from rest_framework_simplejwt.tokens import AccessToken

from orders import services
from orders.consumers import ChangeFeedConsumer, requested_collections
from orders.exceptions import InsufficientStock
from orders.realtime import ORDERS, ORDER_ITEMS, order_group
from orders.routing import websocket_urlpatterns


@pytest.fixture(autouse=True)
def channel_layer():
    layer = get_channel_layer()
    yield layer
    async_to_sync(layer.flush)()


@pytest.mark.parametrize('raw, expected', [
    ('', [ORDERS, ORDER_ITEMS]),
    (None, [ORDERS, ORDER_ITEMS]),
    ('orders', [ORDERS]),
    ('order_items, tables', [ORDER_ITEMS]),
    ('tables', []),
])
def test_requested_collections(raw, expected):
    assert requested_collections(raw) == expected


def listen(layer, group):
    channel = async_to_sync(layer.new_channel)()
    async_to_sync(layer.group_add)(group, channel)
    return channel


# =============== PUBLISHING ===============

def test_new_order_is_published_after_commit(channel_layer, place, django_capture_on_commit_callbacks):
    channel = listen(channel_layer, ORDERS)
    with django_capture_on_commit_callbacks(execute=True):
        order = place()

    message = async_to_sync(channel_layer.receive)(channel)
    assert message['type'] == 'change.message'
    assert message['payload'] == {
        'collection': ORDERS,
        'event': 'INSERT',
        'id': str(order.pk),
        'order_id': str(order.pk),
    }


def test_bulk_created_items_are_published(channel_layer, place, django_capture_on_commit_callbacks):
    channel = listen(channel_layer, ORDER_ITEMS)
    with django_capture_on_commit_callbacks(execute=True):
        order = place()

    payloads = [async_to_sync(channel_layer.receive)(channel)['payload'] for _ in range(2)]
    assert {p['id'] for p in payloads} == {str(item.pk) for item in order.items.all()}
    assert all(p['event'] == 'INSERT' and p['order_id'] == str(order.pk) for p in payloads)


def test_changes_also_reach_the_order_group(channel_layer, order, django_capture_on_commit_callbacks):
    channel = listen(channel_layer, order_group(order.pk))
    with django_capture_on_commit_callbacks(execute=True):
        services.mark_serving(order.pk)

    payload = async_to_sync(channel_layer.receive)(channel)['payload']
    assert payload['collection'] == ORDERS
    assert payload['event'] == 'UPDATE'
    assert payload['id'] == str(order.pk)


def test_rejected_order_publishes_nothing(make_item, table, waiter, django_capture_on_commit_callbacks):
    scarce = make_item('Lobster', '900.00', stock=1)
    with django_capture_on_commit_callbacks() as callbacks:
        with pytest.raises(InsufficientStock):
            services.place_order(
                table_id=table.pk, customer_name='Ravi', guest_count=1,
                items=[{'menu_item_id': scarce.pk, 'quantity': 2}], user=waiter
            )
    assert callbacks == []


# =============== STAFF FEED ===============

def test_socket_without_token_is_refused():
    async def connect():
        communicator = WebsocketCommunicator(ChangeFeedConsumer.as_asgi(), '/ws/changes/')
        return await communicator.connect()

    connected, code = async_to_sync(connect)()
    assert connected is False
    assert code == 4001


def test_socket_with_bad_token_is_refused():
    async def connect():
        communicator = WebsocketCommunicator(ChangeFeedConsumer.as_asgi(), '/ws/changes/?token=not-a-jwt')
        return await communicator.connect()

    connected, code = async_to_sync(connect)()
    assert connected is False
    assert code == 4003


def test_staff_socket_receives_new_orders(waiter, place, django_capture_on_commit_callbacks):
    token = str(AccessToken.for_user(waiter))

    def place_and_commit():
        with django_capture_on_commit_callbacks(execute=True):
            return place()

    async def session():
        communicator = WebsocketCommunicator(
            ChangeFeedConsumer.as_asgi(), f'/ws/changes/?token={token}&collections=orders'
        )
        connected, _ = await communicator.connect()
        assert connected
        subscribed = await communicator.receive_json_from()

        order = await database_sync_to_async(place_and_commit)()
        change = await communicator.receive_json_from()
        await communicator.disconnect()
        return subscribed, order, change

    subscribed, order, change = async_to_sync(session)()
    assert subscribed == {'type': 'subscribed', 'collections': [ORDERS]}
    assert change == {'collection': ORDERS, 'event': 'INSERT', 'id': str(order.pk), 'order_id': str(order.pk)}


# =============== CUSTOMER FEED ===============

def test_customer_follows_own_order_without_sign_in(order, table, django_capture_on_commit_callbacks):
    def serve_and_commit():
        with django_capture_on_commit_callbacks(execute=True):
            services.mark_serving(order.pk)

    async def session():
        communicator = WebsocketCommunicator(URLRouter(websocket_urlpatterns), f'/ws/order/{table.pk}/{order.pk}/')
        connected, _ = await communicator.connect()
        assert connected
        subscribed = await communicator.receive_json_from()

        await database_sync_to_async(serve_and_commit)()
        change = await communicator.receive_json_from()
        await communicator.disconnect()
        return subscribed, change

    subscribed, change = async_to_sync(session)()
    assert subscribed == {'type': 'subscribed', 'order_id': str(order.pk)}
    assert change['collection'] == ORDERS
    assert change['event'] == 'UPDATE'
    assert change['id'] == str(order.pk)


def test_customer_feed_of_another_table_is_refused(order, second_table):
    async def connect():
        communicator = WebsocketCommunicator(
            URLRouter(websocket_urlpatterns), f'/ws/order/{second_table.pk}/{order.pk}/'
        )
        return await communicator.connect()

    connected, code = async_to_sync(connect)()
    assert connected is False
    assert code == 4004
