from decimal import Decimal

from django.core.exceptions import PermissionDenied
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models

from authentication.models import TimeStampedModel


class SingletonSettings(TimeStampedModel):
    """
    One row per settings table, shared by every terminal.

    ``load()`` returns the row, creating it with the defaults on first use.
    """
    singleton_id = 1

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        self.pk = self.singleton_id
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        # The row is reset, never removed
        raise PermissionDenied(f"{self.__class__.__name__} cannot be deleted, use reset()")

    @classmethod
    def load(cls):
        obj, _ = cls.objects.get_or_create(pk=cls.singleton_id)
        return obj

    @classmethod
    def reset(cls):
        cls.objects.filter(pk=cls.singleton_id).delete()
        return cls.load()


# =============== RESTAURANT SETTINGS ===============

class RestaurantSettings(SingletonSettings):
    id = models.PositiveSmallIntegerField(primary_key=True, default=1, editable=False)
    restaurant_name = models.CharField(max_length=200, default='Resort Restaurant')
    address = models.TextField(blank=True, default='')
    phone = models.CharField(max_length=20, blank=True, default='')
    email = models.EmailField(blank=True, default='')

    tax_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('18.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))],
        help_text="Percent applied to every order, staff or self-order"
    )
    currency = models.CharField(max_length=3, default='INR')
    timezone = models.CharField(max_length=64, default='Asia/Kolkata')
    service_charge = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('10.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))],
        help_text="Informational only, not added to bills"
    )

    auto_print_kot = models.BooleanField(default=True)
    auto_print_bill = models.BooleanField(default=False)
    table_timeout = models.PositiveIntegerField(default=30, help_text="Minutes")
    low_stock_alert = models.BooleanField(default=True)
    order_notifications = models.BooleanField(default=True)

    payment_gateway_enabled = models.BooleanField(default=False)
    upi_id = models.CharField(max_length=100, default='7259911243@yespop')

    allow_self_ordering = models.BooleanField(default=True)
    decrement_stock_on_order = models.BooleanField(default=True)

    class Meta:
        db_table = 'restaurant_settings'
        verbose_name = 'Restaurant settings'
        verbose_name_plural = 'Restaurant settings'

    def __str__(self):
        return self.restaurant_name

    @property
    def tax_fraction(self):
        return self.tax_rate / Decimal('100')


# =============== SYSTEM SETTINGS ===============

class SystemSettings(SingletonSettings):
    BACKUP_CHOICES = [
        ('hourly', 'Hourly'),
        ('daily', 'Daily'),
        ('weekly', 'Weekly'),
    ]

    id = models.PositiveSmallIntegerField(primary_key=True, default=1, editable=False)
    backup_frequency = models.CharField(max_length=10, choices=BACKUP_CHOICES, default='daily')
    maintenance_mode = models.BooleanField(default=False)
    debug_mode = models.BooleanField(default=False)
    max_concurrent_users = models.PositiveIntegerField(default=50)
    session_timeout = models.PositiveIntegerField(default=60, help_text="Minutes")
    auto_logout = models.BooleanField(default=True)
    max_login_attempts = models.PositiveIntegerField(default=5, validators=[MinValueValidator(1)])
    lockout_minutes = models.PositiveIntegerField(default=15)

    class Meta:
        db_table = 'system_settings'
        verbose_name = 'System settings'
        verbose_name_plural = 'System settings'

    def __str__(self):
        return 'System settings'
