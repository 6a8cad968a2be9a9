"""
Users — Django Admin Configuration

Admin for facility staff accounts.

@file users/admin.py
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin for User with facility filtering and role badges."""

    list_display = (
        'email', 'name', 'facility', 'role_badge', 'is_active', 'is_staff',
        'date_joined',
    )
    list_filter = ('role', 'is_active', 'is_staff', 'is_superuser', 'facility')
    search_fields = ('email', 'name', 'phone', 'facility__name')
    readonly_fields = ('id', 'created_at', 'updated_at', 'date_joined', 'last_login')
    date_hierarchy = 'created_at'
    list_select_related = ('facility',)
    show_full_result_count = False
    list_per_page = 30
    ordering = ('-created_at',)
    raw_id_fields = ('facility',)

    fieldsets = (
        (None, {
            'fields': ('id', 'email', 'password'),
        }),
        (_('Personal Info'), {
            'fields': ('name', 'phone'),
        }),
        (_('Facility'), {
            'fields': ('facility', 'role'),
        }),
        (_('Permissions'), {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        (_('Audit'), {
            'fields': ('date_joined', 'last_login', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'name', 'facility', 'role', 'password1', 'password2'),
        }),
    )

    @admin.display(description=_('Role'))
    def role_badge(self, obj):
        colors = {
            'STAFF': '#6b7280', 'PHARMACIST': '#22c55e',
            'SUPERVISOR': '#3b82f6', 'ADMIN': '#dc2626',
        }
        color = colors.get(obj.role, '#6b7280')
        return format_html(
            '<span style="background:{};color:#fff;padding:2px 8px;'
            'border-radius:4px;font-size:11px;font-weight:600;">{}</span>',
            color, obj.get_role_display(),
        )
