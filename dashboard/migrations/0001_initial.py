import django.core.validators
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='RestaurantSettings',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('id', models.PositiveSmallIntegerField(default=1, editable=False, primary_key=True, serialize=False)),
                ('restaurant_name', models.CharField(default='Resort Restaurant', max_length=200)),
                ('address', models.TextField(blank=True, default='')),
                ('phone', models.CharField(blank=True, default='', max_length=20)),
                ('email', models.EmailField(blank=True, default='', max_length=254)),
                ('tax_rate', models.DecimalField(decimal_places=2, default=Decimal('18.00'), help_text='Percent applied to every order, staff or self-order', max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal('0')), django.core.validators.MaxValueValidator(Decimal('100'))])),
                ('currency', models.CharField(default='INR', max_length=3)),
                ('timezone', models.CharField(default='Asia/Kolkata', max_length=64)),
                ('service_charge', models.DecimalField(decimal_places=2, default=Decimal('10.00'), help_text='Informational only, not added to bills', max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal('0')), django.core.validators.MaxValueValidator(Decimal('100'))])),
                ('auto_print_kot', models.BooleanField(default=True)),
                ('auto_print_bill', models.BooleanField(default=False)),
                ('table_timeout', models.PositiveIntegerField(default=30, help_text='Minutes')),
                ('low_stock_alert', models.BooleanField(default=True)),
                ('order_notifications', models.BooleanField(default=True)),
                ('payment_gateway_enabled', models.BooleanField(default=False)),
                ('upi_id', models.CharField(default='7259911243@yespop', max_length=100)),
                ('allow_self_ordering', models.BooleanField(default=True)),
                ('decrement_stock_on_order', models.BooleanField(default=True)),
            ],
            options={
                'verbose_name': 'Restaurant settings',
                'verbose_name_plural': 'Restaurant settings',
                'db_table': 'restaurant_settings',
            },
        ),
        migrations.CreateModel(
            name='SystemSettings',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('id', models.PositiveSmallIntegerField(default=1, editable=False, primary_key=True, serialize=False)),
                ('backup_frequency', models.CharField(choices=[('hourly', 'Hourly'), ('daily', 'Daily'), ('weekly', 'Weekly')], default='daily', max_length=10)),
                ('maintenance_mode', models.BooleanField(default=False)),
                ('debug_mode', models.BooleanField(default=False)),
                ('max_concurrent_users', models.PositiveIntegerField(default=50)),
                ('session_timeout', models.PositiveIntegerField(default=60, help_text='Minutes')),
                ('auto_logout', models.BooleanField(default=True)),
                ('max_login_attempts', models.PositiveIntegerField(default=5, validators=[django.core.validators.MinValueValidator(1)])),
                ('lockout_minutes', models.PositiveIntegerField(default=15)),
            ],
            options={
                'verbose_name': 'System settings',
                'verbose_name_plural': 'System settings',
                'db_table': 'system_settings',
            },
        ),
    ]
