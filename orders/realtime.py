"""
Change feed for open order screens.

Messages carry only ``{collection, event, id, order_id}``; subscribers
refetch what they display through the REST API.
"""
from functools import partial
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction

logger = logging.getLogger(__name__)

ORDERS = 'orders'
ORDER_ITEMS = 'order_items'
COLLECTIONS = (ORDERS, ORDER_ITEMS)


def order_group(order_id):
    """Group of a single order, followed by the customer confirmation page"""
    return f"order_{order_id}"


def publish_change(collection, event, record_id, order_id=None):
    layer = get_channel_layer()
    if layer is None:
        return
    message = {
        'type': 'change.message',
        'payload': {
            'collection': collection,
            'event': event,
            'id': str(record_id),
            'order_id': str(order_id) if order_id else None,
        },
    }
    async_to_sync(layer.group_send)(collection, message)
    if order_id:
        async_to_sync(layer.group_send)(order_group(order_id), message)
    logger.debug("Published %s %s %s", collection, event, record_id)


def publish_on_commit(collection, event, record_id, order_id=None):
    """Send once the surrounding transaction commits; nothing is sent on rollback"""
    transaction.on_commit(partial(publish_change, collection, event, record_id, order_id))
