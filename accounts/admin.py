from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from accounts.models import CustomUser, Organization


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'timezone', 'created_at']
    search_fields = ['name', 'email']
    fieldsets = (
        ('Basic Info', {
            'fields': ('name', 'phone', 'email')
        }),
        ('Settings', {
            'fields': ('timezone', 'currency', 'modules')
        }),
    )


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    ordering = ['email']
    list_display = ['email', 'first_name', 'last_name', 'role', 'security_level', 'organization']
    list_filter = ['role', 'security_level', 'is_active']
    search_fields = ['email', 'first_name', 'last_name']
    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Personal info', {'fields': ('first_name', 'last_name', 'phone')}),
        ('Organization', {'fields': ('organization', 'role', 'security_level')}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2', 'organization', 'role', 'security_level'),
        }),
    )
