"""
Facilities — Django Admin Configuration

@file facilities/admin.py
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import Facility


@admin.register(Facility)
class FacilityAdmin(admin.ModelAdmin):
    list_display = ('name', 'contact_email', 'contact_phone', 'is_active', 'created_at')
    list_filter = ('is_active',)
    search_fields = ('name', 'contact_email', 'address')
    readonly_fields = ('id', 'created_at', 'updated_at')
    ordering = ('name',)

    fieldsets = (
        (_('Facility'), {'fields': ('id', 'name', 'address', 'is_active')}),
        (_('Contact'), {'fields': ('contact_email', 'contact_phone')}),
        (_('Audit'), {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
    )
