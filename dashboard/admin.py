from django.contrib import admin

from .models import RestaurantSettings, SystemSettings


class SingletonAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return not self.model.objects.exists()

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(RestaurantSettings)
class RestaurantSettingsAdmin(SingletonAdmin):
    list_display = ('restaurant_name', 'tax_rate', 'currency', 'allow_self_ordering')


@admin.register(SystemSettings)
class SystemSettingsAdmin(SingletonAdmin):
    list_display = ('backup_frequency', 'maintenance_mode', 'max_login_attempts', 'lockout_minutes')
