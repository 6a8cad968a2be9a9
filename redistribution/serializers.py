"""
Redistribution — Serializers

@file redistribution/serializers.py
"""

from rest_framework import serializers

from .models import RedistributionRequest


class RedistributionReadSerializer(serializers.ModelSerializer):
    drug_name = serializers.CharField(source='drug.drug_name', read_only=True)
    batch_number = serializers.CharField(source='drug.batch_number', read_only=True)
    from_facility_name = serializers.CharField(source='from_facility.name', read_only=True)
    to_facility_name = serializers.CharField(source='to_facility.name', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    direction = serializers.SerializerMethodField()

    class Meta:
        model = RedistributionRequest
        fields = [
            'id', 'drug', 'drug_name', 'batch_number', 'quantity',
            'from_facility', 'from_facility_name',
            'to_facility', 'to_facility_name',
            'reason', 'expiry_date',
            'status', 'status_display', 'direction',
            'requested_by', 'received_by', 'received_at',
            'declined_by', 'declined_at',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_direction(self, obj):
        request = self.context.get('request')
        user = getattr(request, 'user', None)
        facility_id = getattr(user, 'facility_id', None)
        if facility_id is None:
            return None
        if obj.to_facility_id == facility_id:
            return 'incoming'
        if obj.from_facility_id == facility_id:
            return 'outgoing'
        return None


class RedistributionCreateSerializer(serializers.Serializer):
    """Shape-only checks; the service validates semantics in a fixed order."""

    drug = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    to_facility = serializers.UUIDField()
    reason = serializers.CharField(max_length=2000)
