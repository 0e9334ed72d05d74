from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    list_display = ('username', 'full_name', 'role', 'is_active', 'last_login_at')
    list_filter = ('role', 'is_active')
    search_fields = ('username', 'full_name', 'email', 'phone')
    ordering = ('username',)
    fieldsets = UserAdmin.fieldsets + (
        ('Restaurant', {'fields': ('full_name', 'phone', 'role', 'login_attempts', 'locked_until')}),
    )
    add_fieldsets = UserAdmin.add_fieldsets + (
        ('Restaurant', {'fields': ('full_name', 'role')}),
    )
