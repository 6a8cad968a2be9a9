"""
Inventory — Django Admin Configuration

Lots are browsable but their stock is read-only: balances only move through
the ledger. Dispensations are INSERT ONLY.

@file inventory/admin.py
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import Dispensation, InventoryLot


@admin.register(InventoryLot)
class InventoryLotAdmin(admin.ModelAdmin):
    list_display = (
        'drug_name', 'batch_number', 'facility', 'current_stock',
        'reorder_level', 'status', 'expiry_date',
    )
    list_filter = ('status', 'facility')
    search_fields = ('drug_name', 'batch_number', 'supplier')
    readonly_fields = ('id', 'current_stock', 'status', 'created_by', 'created_at', 'updated_at')
    list_select_related = ('facility',)
    ordering = ('drug_name', 'expiry_date')

    fieldsets = (
        (_('Lot'), {
            'fields': ('id', 'facility', 'drug_name', 'batch_number', 'supplier', 'location'),
        }),
        (_('Stock'), {
            'fields': ('current_stock', 'reorder_level', 'status'),
        }),
        (_('Dates'), {
            'fields': ('received_date', 'expiry_date'),
        }),
        (_('Audit'), {
            'fields': ('created_by', 'created_at', 'updated_at'),
        }),
    )


@admin.register(Dispensation)
class DispensationAdmin(admin.ModelAdmin):
    list_display = ('id', 'lot', 'facility', 'quantity', 'dispensed_to', 'dispensed_by', 'dispensed_at')
    list_filter = ('facility', 'dispensed_at')
    search_fields = ('dispensed_to', 'lot__drug_name', 'lot__batch_number')
    readonly_fields = (
        'id', 'lot', 'facility', 'quantity', 'dispensed_to',
        'note', 'dispensed_by', 'dispensed_at',
    )
    list_select_related = ('lot', 'facility', 'dispensed_by')
    date_hierarchy = 'dispensed_at'
    ordering = ('-dispensed_at',)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False  # insert only, no updates

    def has_delete_permission(self, request, obj=None):
        return False  # insert only, no deletes
