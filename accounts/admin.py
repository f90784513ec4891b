from django.contrib import admin

from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ['email', 'name', 'role', 'is_active', 'last_login']
    list_filter = ['role', 'is_active', 'is_staff']
    search_fields = ['email', 'name']
    ordering = ['email']
    readonly_fields = ['password', 'last_login', 'date_joined', 'updated_at']
    exclude = ['groups', 'user_permissions']
