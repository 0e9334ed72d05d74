# Signals to publish order changes to connected screens
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from .models import Order, OrderItem
from .realtime import ORDERS, ORDER_ITEMS, publish_on_commit


@receiver(post_save, sender=Order)
def publish_order_saved(sender, instance, created, **kwargs):
    publish_on_commit(ORDERS, 'INSERT' if created else 'UPDATE', instance.pk, instance.pk)


@receiver(post_delete, sender=Order)
def publish_order_deleted(sender, instance, **kwargs):
    publish_on_commit(ORDERS, 'DELETE', instance.pk, instance.pk)


@receiver(post_save, sender=OrderItem)
def publish_item_saved(sender, instance, created, **kwargs):
    """Bulk inserts skip this; order placement publishes its items itself"""
    publish_on_commit(ORDER_ITEMS, 'INSERT' if created else 'UPDATE', instance.pk, instance.order_id)


@receiver(post_delete, sender=OrderItem)
def publish_item_deleted(sender, instance, **kwargs):
    publish_on_commit(ORDER_ITEMS, 'DELETE', instance.pk, instance.order_id)
