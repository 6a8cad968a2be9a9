"""
Core — Serializers

@file core/serializers.py
"""

from rest_framework import serializers

from .models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    actor_name = serializers.CharField(source='actor.name', read_only=True, default=None)
    action_display = serializers.CharField(source='get_action_display', read_only=True)

    class Meta:
        model = AuditLog
        fields = [
            'id', 'actor', 'actor_name', 'facility',
            'action', 'action_display', 'module', 'object_id',
            'message', 'new_values', 'timestamp',
        ]
        read_only_fields = fields
