"""
Core — Django Admin Configuration

Read-only admin for AuditLog.

@file core/admin.py
"""

from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from core.models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Read-only audit log viewer for administrators."""

    list_display = (
        'timestamp', 'action_badge', 'module', 'object_id',
        'actor', 'facility',
    )
    list_filter = ('action', 'module', 'timestamp')
    search_fields = ('object_id', 'module', 'message', 'actor__email')
    readonly_fields = (
        'id', 'actor', 'facility', 'action', 'module', 'object_id',
        'message', 'new_values', 'timestamp',
    )
    date_hierarchy = 'timestamp'
    list_select_related = ('actor', 'facility')
    show_full_result_count = False
    list_per_page = 50
    ordering = ('-timestamp',)

    fieldsets = (
        (_('Event'), {
            'fields': ('id', 'action', 'timestamp', 'actor', 'facility'),
        }),
        (_('Target'), {
            'fields': ('module', 'object_id', 'message'),
        }),
        (_('Data'), {
            'fields': ('new_values',),
            'classes': ('collapse',),
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description=_('Action'))
    def action_badge(self, obj):
        colors = {
            'CREATE': '#22c55e',
            'UPDATE': '#3b82f6',
            'STATUS_CHANGE': '#eab308',
            'STOCK_CHANGE': '#8b5cf6',
        }
        color = colors.get(obj.action, '#6b7280')
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; '
            'border-radius:4px; font-size:11px; font-weight:600;">{}</span>',
            color, obj.get_action_display(),
        )
