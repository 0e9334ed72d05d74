from django.contrib import admin

from .models import Category, MenuItem, Inventory


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ('name', 'display_order', 'is_active')
    ordering = ('display_order', 'name')


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'price', 'sub_category', 'is_available')
    list_filter = ('category', 'sub_category', 'is_available')
    search_fields = ('name',)


@admin.register(Inventory)
class InventoryAdmin(admin.ModelAdmin):
    list_display = ('menu_item', 'current_stock', 'low_stock_threshold', 'last_restocked_at')
    readonly_fields = ('last_restocked_at', 'restocked_by')
