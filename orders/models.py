from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from decimal import Decimal
import uuid

from authentication.models import TimeStampedModel
from inventory.models import MenuItem


class TableStatus(models.TextChoices):
    AVAILABLE = 'available', 'Available'
    OCCUPIED = 'occupied', 'Occupied'
    RESERVED = 'reserved', 'Reserved'
    SERVING = 'serving', 'Serving'
    MAINTENANCE = 'maintenance', 'Maintenance'


class OrderStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    ONGOING = 'ongoing', 'Ongoing'
    SERVING = 'serving', 'Serving'
    COMPLETED = 'completed', 'Completed'


class PaymentMethod(models.TextChoices):
    CASH = 'cash', 'Cash'
    CARD = 'card', 'Card'
    UPI = 'upi', 'UPI'
    CREDIT = 'credit', 'Credit (Room)'


class PaymentStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PAID = 'paid', 'Paid'
    CREDIT = 'credit', 'Credit'


class OrderSource(models.TextChoices):
    STAFF = 'staff', 'Staff'
    SELF_ORDER = 'self_order', 'Self-Order'


OPEN_STATUSES = [OrderStatus.ACTIVE, OrderStatus.ONGOING, OrderStatus.SERVING]
KITCHEN_STATUSES = [OrderStatus.ACTIVE, OrderStatus.ONGOING]


# =============== FLOORS & TABLES ===============

class Floor(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    floor_name = models.CharField(max_length=100)
    floor_number = models.IntegerField(unique=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'floors'
        ordering = ['floor_number']

    def __str__(self):
        return self.floor_name


class RestaurantTable(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    floor = models.ForeignKey(Floor, on_delete=models.PROTECT, related_name='tables')
    table_number = models.CharField(max_length=20)
    capacity = models.PositiveIntegerField(default=4, validators=[MinValueValidator(1)])
    status = models.CharField(max_length=20, choices=TableStatus.choices, default=TableStatus.AVAILABLE)
    qr_code_url = models.URLField(max_length=500, null=True, blank=True)
    current_order = models.ForeignKey(
        'Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'restaurant_tables'
        ordering = ['floor__floor_number', 'table_number']
        constraints = [
            models.UniqueConstraint(fields=['floor', 'table_number'], name='unique_table_number_per_floor'),
        ]

    def __str__(self):
        return f"Table {self.table_number}"

    @property
    def is_free(self):
        return self.is_active and self.status == TableStatus.AVAILABLE and self.current_order_id is None


# =============== ORDERS ===============

class Order(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=32, unique=True, editable=False)
    table = models.ForeignKey(RestaurantTable, on_delete=models.PROTECT, related_name='orders')

    customer_name = models.CharField(max_length=255)
    guest_count = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    # Room credit details
    room_number = models.CharField(max_length=20, blank=True, default='')
    guest_name = models.CharField(max_length=255, blank=True, default='')

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=OrderStatus.ACTIVE)
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices, null=True, blank=True)
    payment_status = models.CharField(max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    source = models.CharField(max_length=20, choices=OrderSource.choices, default=OrderSource.STAFF)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
        null=True, blank=True, related_name='created_orders'
    )
    paid_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='orders_status_created_idx'),
            models.Index(fields=['payment_status'], name='orders_payment_status_idx'),
        ]

    def __str__(self):
        return f"{self.order_number} - {self.table}"

    @staticmethod
    def next_order_number():
        """``ORD-<epoch millis>``, moved forward a millisecond until unused"""
        stamp = int(timezone.now().timestamp() * 1000)
        while Order.objects.filter(order_number=f"ORD-{stamp}").exists():
            stamp += 1
        return f"ORD-{stamp}"

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = self.next_order_number()
        super().save(*args, **kwargs)

    @property
    def waiter_name(self):
        if self.created_by is None:
            return 'Self-Order'
        return self.created_by.get_full_name()


class OrderItem(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, related_name='items', on_delete=models.CASCADE)
    menu_item = models.ForeignKey(MenuItem, on_delete=models.PROTECT, related_name='order_items')
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    modifiers = models.TextField(blank=True, default='')
    is_prepared = models.BooleanField(default=False)
    prepared_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'order_items'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.quantity} x {self.menu_item.name}"
