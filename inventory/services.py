from django.db import transaction
from django.db.models import F
from django.utils import timezone
import logging

from .models import Inventory

logger = logging.getLogger(__name__)


def restock(inventory_id, quantity, user=None):
    """
    Add ``quantity`` units to an inventory row.

    Both the running total and the current stock grow by the same amount.
    """
    if quantity <= 0:
        raise ValueError("Restock quantity must be positive")

    with transaction.atomic():
        updated = Inventory.objects.filter(pk=inventory_id).update(
            current_stock=F('current_stock') + quantity,
            total_quantity=F('total_quantity') + quantity,
            last_restocked_at=timezone.now(),
            restocked_by=user,
            updated_at=timezone.now(),
        )
        if not updated:
            raise Inventory.DoesNotExist(f"Inventory {inventory_id} does not exist")

    inventory = Inventory.objects.select_related('menu_item', 'restocked_by').get(pk=inventory_id)
    logger.info(
        "Restocked %s by %s, now %s in stock",
        inventory.menu_item.name, quantity, inventory.current_stock
    )
    return inventory


def low_stock_queryset():
    """Rows that are out of stock or at/under their threshold"""
    return Inventory.objects.filter(current_stock__lte=F('low_stock_threshold'))
