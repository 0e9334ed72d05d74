from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import MenuItem, Inventory


@receiver(post_save, sender=MenuItem)
def create_inventory_for_menu_item(sender, instance, created, **kwargs):
    if created:
        Inventory.objects.get_or_create(menu_item=instance)
