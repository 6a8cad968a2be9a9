"""
Core — Filters

Query filters for the facility activity log.

@file core/filters.py
"""

import django_filters as df

from .models import AuditLog


class AuditLogFilter(df.FilterSet):
    after = df.IsoDateTimeFilter(field_name='timestamp', lookup_expr='gte')
    before = df.IsoDateTimeFilter(field_name='timestamp', lookup_expr='lte')
    user = df.UUIDFilter(field_name='actor__id')
    module = df.CharFilter(lookup_expr='iexact')
    action = df.ChoiceFilter(choices=AuditLog.ActionChoices.choices)

    class Meta:
        model = AuditLog
        fields = ['user', 'module', 'action']
