"""
Notifications — Serializers

@file notifications/serializers.py
"""

from rest_framework import serializers

from .models import Notification


class NotificationReadSerializer(serializers.ModelSerializer):
    type_display = serializers.CharField(source='get_type_display', read_only=True)

    class Meta:
        model = Notification
        fields = [
            'id', 'type', 'type_display', 'title', 'message', 'priority',
            'facility', 'user', 'lot', 'drug_name', 'batch_number', 'expiry_date',
            'redistribution', 'metadata', 'is_read', 'created_at',
        ]
        read_only_fields = fields
