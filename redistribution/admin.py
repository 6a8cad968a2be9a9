"""
Redistribution — Django Admin Configuration

Requests are read-only here: they only resolve through approve/decline so
stock and logs stay consistent. RedistributionLog is INSERT ONLY.

@file redistribution/admin.py
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import RedistributionLog, RedistributionRequest


@admin.register(RedistributionRequest)
class RedistributionRequestAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'drug', 'quantity', 'from_facility', 'to_facility',
        'status', 'requested_by', 'created_at',
    )
    list_filter = ('status', 'from_facility', 'to_facility')
    search_fields = ('drug__drug_name', 'drug__batch_number', 'reason')
    list_select_related = ('drug', 'from_facility', 'to_facility', 'requested_by')
    date_hierarchy = 'created_at'
    ordering = ('-created_at',)

    fieldsets = (
        (_('Request'), {
            'fields': ('id', 'drug', 'quantity', 'from_facility', 'to_facility', 'reason', 'expiry_date'),
        }),
        (_('Resolution'), {
            'fields': ('status', 'received_by', 'received_at', 'declined_by', 'declined_at'),
        }),
        (_('Audit'), {
            'fields': ('requested_by', 'created_at', 'updated_at'),
        }),
    )

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(RedistributionLog)
class RedistributionLogAdmin(admin.ModelAdmin):
    list_display = (
        'request', 'drug_name', 'batch_number', 'quantity', 'status',
        'requested_at', 'actor', 'resolved_at',
    )
    list_filter = ('status', 'resolved_at')
    search_fields = ('drug_name', 'batch_number')
    readonly_fields = (
        'id', 'request', 'drug_name', 'batch_number', 'quantity',
        'from_facility', 'to_facility', 'status', 'reason', 'expiry_date',
        'requested_by', 'requested_at', 'actor', 'resolved_at', 'created_at',
    )
    list_select_related = ('request', 'actor')
    ordering = ('-resolved_at',)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False  # insert only, no updates

    def has_delete_permission(self, request, obj=None):
        return False  # insert only, no deletes
