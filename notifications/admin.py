"""
Notifications — Django Admin Configuration

@file notifications/admin.py
"""

from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'type', 'priority', 'facility', 'user', 'drug_name', 'is_read')
    list_filter = ('type', 'priority', 'is_read')
    search_fields = ('drug_name', 'batch_number', 'facility__name', 'title')
    readonly_fields = (
        'id', 'type', 'title', 'message', 'priority', 'facility', 'user', 'lot',
        'drug_name', 'batch_number', 'expiry_date', 'redistribution', 'metadata',
        'created_at',
    )
    list_select_related = ('facility', 'user')
    raw_id_fields = ('facility', 'user', 'lot', 'redistribution')
    date_hierarchy = 'created_at'
    ordering = ('-created_at',)
