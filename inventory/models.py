from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
import uuid

from authentication.models import TimeStampedModel


class SubCategory(models.TextChoices):
    VEG = 'veg', 'Veg'
    NON_VEG = 'non_veg', 'Non-Veg'


class StockStatus(models.TextChoices):
    OUT_OF_STOCK = 'out_of_stock', 'Out of stock'
    LOW_STOCK = 'low_stock', 'Low stock'
    IN_STOCK = 'in_stock', 'In stock'


def stock_status(current_stock, low_stock_threshold):
    """Out iff nothing left, low iff at or under the threshold"""
    if current_stock <= 0:
        return StockStatus.OUT_OF_STOCK
    if current_stock <= low_stock_threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


class Category(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True, default='')
    display_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'categories'
        ordering = ['display_order', 'name']
        verbose_name_plural = "Categories"

    def __str__(self):
        return self.name


class MenuItem(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default='')
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='items')
    sub_category = models.CharField(max_length=10, choices=SubCategory.choices, default=SubCategory.VEG)
    image_url = models.URLField(max_length=500, blank=True, null=True)
    is_available = models.BooleanField(default=True)

    class Meta:
        db_table = 'menu_items'
        ordering = ['category__display_order', 'name']

    def __str__(self):
        return self.name

    @property
    def is_veg(self):
        return self.sub_category == SubCategory.VEG


class Inventory(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    menu_item = models.OneToOneField(MenuItem, on_delete=models.CASCADE, related_name='inventory')
    total_quantity = models.PositiveIntegerField(default=0)
    current_stock = models.PositiveIntegerField(default=0)
    low_stock_threshold = models.PositiveIntegerField(default=10)
    last_restocked_at = models.DateTimeField(null=True, blank=True)
    restocked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
        null=True, blank=True, related_name='restocks'
    )

    class Meta:
        db_table = 'inventory'
        ordering = ['menu_item__name']
        verbose_name_plural = "Inventory"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(current_stock__gte=0),
                name='inventory_current_stock_non_negative',
            ),
        ]

    def __str__(self):
        return f"{self.menu_item.name}: {self.current_stock}"

    @property
    def stock_status(self):
        return stock_status(self.current_stock, self.low_stock_threshold)

    @property
    def stock_value(self):
        return self.current_stock * self.menu_item.price
