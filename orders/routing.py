from django.urls import re_path

from . import consumers

UUID = r'[0-9a-fA-F-]{36}'

websocket_urlpatterns = [
    re_path(r'^ws/changes/$', consumers.ChangeFeedConsumer.as_asgi()),
    re_path(
        rf'^ws/order/(?P<table_id>{UUID})/(?P<order_id>{UUID})/$',
        consumers.OrderFeedConsumer.as_asgi()
    ),
]
