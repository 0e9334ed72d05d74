"""
WebSocket consumers for the order change feed.

Staff screens: /ws/changes/?token=<JWT access token>&collections=orders,order_items
Customer confirmation page: /ws/order/<table id>/<order id>/ (no sign in)
"""
from urllib.parse import parse_qs
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.contrib.auth import get_user_model
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

from authentication.permissions import Capabilities, has_capability
from .models import Order
from .realtime import COLLECTIONS, order_group

logger = logging.getLogger(__name__)


@database_sync_to_async
def user_from_token(token_key):
    """Resolve the staff user of an access token. Returns (user, None) or (None, error)."""
    try:
        token = AccessToken(token_key)
    except TokenError as e:
        return None, str(e)
    User = get_user_model()
    try:
        user = User.objects.get(**{api_settings.USER_ID_FIELD: token[api_settings.USER_ID_CLAIM]})
    except (User.DoesNotExist, KeyError):
        return None, 'Unknown user'
    if not has_capability(user, Capabilities.VIEW_ORDERS):
        return None, 'Forbidden'
    return user, None


def requested_collections(raw):
    if not raw:
        return list(COLLECTIONS)
    wanted = [name.strip() for name in raw.split(',') if name.strip()]
    return [name for name in wanted if name in COLLECTIONS]


class ChangeFeedConsumer(AsyncJsonWebsocketConsumer):

    async def connect(self):
        params = parse_qs(self.scope.get('query_string', b'').decode())
        token = (params.get('token') or [None])[0]
        if not token:
            await self.close(code=4001)
            return

        user, err = await user_from_token(token)
        if err:
            logger.warning("Change feed refused: %s", err)
            await self.close(code=4003)
            return

        self.groups_joined = requested_collections((params.get('collections') or [''])[0])
        if not self.groups_joined:
            await self.close(code=4000)
            return

        for group in self.groups_joined:
            await self.channel_layer.group_add(group, self.channel_name)
        await self.accept()
        await self.send_json({'type': 'subscribed', 'collections': self.groups_joined})

    async def disconnect(self, close_code):
        for group in getattr(self, 'groups_joined', []):
            await self.channel_layer.group_discard(group, self.channel_name)

    async def receive_json(self, content, **kwargs):
        # Clients only listen; answer pings so they can detect dead sockets
        if content.get('type') == 'ping':
            await self.send_json({'type': 'pong'})

    async def change_message(self, event):
        """Handle broadcast from backend: send payload to client."""
        await self.send_json(event['payload'])


@database_sync_to_async
def order_on_table(table_id, order_id):
    return Order.objects.filter(
        pk=order_id, table_id=table_id, table__is_active=True, table__floor__is_active=True
    ).exists()


class OrderFeedConsumer(AsyncJsonWebsocketConsumer):
    """Changes of one order for the customer who placed it from the table's QR code"""

    async def connect(self):
        kwargs = self.scope['url_route']['kwargs']
        self.order_id = kwargs['order_id']
        if not await order_on_table(kwargs['table_id'], self.order_id):
            await self.close(code=4004)
            return

        self.group_name = order_group(self.order_id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        await self.send_json({'type': 'subscribed', 'order_id': self.order_id})

    async def disconnect(self, close_code):
        if hasattr(self, 'group_name'):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def change_message(self, event):
        await self.send_json(event['payload'])
