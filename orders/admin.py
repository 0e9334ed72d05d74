from django.contrib import admin

from .models import Floor, RestaurantTable, Order, OrderItem


@admin.register(Floor)
class FloorAdmin(admin.ModelAdmin):
    list_display = ('floor_name', 'floor_number', 'is_active')


@admin.register(RestaurantTable)
class RestaurantTableAdmin(admin.ModelAdmin):
    list_display = ('table_number', 'floor', 'capacity', 'status', 'current_order', 'is_active')
    list_filter = ('floor', 'status', 'is_active')
    raw_id_fields = ('current_order',)


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ('menu_item', 'quantity', 'unit_price', 'total_price', 'is_prepared', 'prepared_at')


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('order_number', 'table', 'customer_name', 'status', 'payment_status', 'total_amount', 'created_at')
    list_filter = ('status', 'payment_status', 'payment_method', 'source')
    search_fields = ('order_number', 'customer_name')
    readonly_fields = ('order_number', 'subtotal', 'tax_amount', 'total_amount', 'paid_at', 'completed_at')
    inlines = [OrderItemInline]
