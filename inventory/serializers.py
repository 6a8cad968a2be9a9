"""
Inventory — Serializers

Read serializers for lots and dispensations, and input serializers for the
receive-stock, lot-update and dispense endpoints. Business rules (shelf life, duplicate
batches, stock sufficiency) live in the service layer.

@file inventory/serializers.py
"""

from rest_framework import serializers

from .models import Dispensation, InventoryLot


# ---------------------------------------------------------------------------
# InventoryLot
# ---------------------------------------------------------------------------

class InventoryLotReadSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    facility_name = serializers.CharField(source='facility.name', read_only=True)

    class Meta:
        model = InventoryLot
        fields = [
            'id', 'facility', 'facility_name',
            'drug_name', 'batch_number',
            'current_stock', 'reorder_level',
            'status', 'status_display',
            'supplier', 'expiry_date', 'received_date', 'location',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class InventoryLotWriteSerializer(serializers.Serializer):
    drug_name = serializers.CharField(max_length=255)
    batch_number = serializers.CharField(max_length=100)
    current_stock = serializers.IntegerField(min_value=0)
    supplier = serializers.CharField(max_length=255)
    expiry_date = serializers.DateField()
    received_date = serializers.DateField()
    reorder_level = serializers.IntegerField(min_value=0, required=False)
    location = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


class InventoryLotUpdateSerializer(serializers.Serializer):
    """Descriptive lot fields. Stock quantities are not editable here."""

    reorder_level = serializers.IntegerField(min_value=0, required=False)
    supplier = serializers.CharField(max_length=255, required=False)
    expiry_date = serializers.DateField(required=False)
    received_date = serializers.DateField(required=False)
    location = serializers.CharField(max_length=255, required=False, allow_blank=True)


# ---------------------------------------------------------------------------
# Dispensation
# ---------------------------------------------------------------------------

class DispensationReadSerializer(serializers.ModelSerializer):
    drug_name = serializers.CharField(source='lot.drug_name', read_only=True)
    batch_number = serializers.CharField(source='lot.batch_number', read_only=True)
    remaining_stock = serializers.IntegerField(source='lot.current_stock', read_only=True)

    class Meta:
        model = Dispensation
        fields = [
            'id', 'lot', 'facility', 'drug_name', 'batch_number',
            'quantity', 'dispensed_to', 'note', 'remaining_stock',
            'dispensed_by', 'dispensed_at',
        ]
        read_only_fields = fields


class DispensationWriteSerializer(serializers.Serializer):
    lot = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    dispensed_to = serializers.CharField(max_length=255)
    note = serializers.CharField(required=False, allow_blank=True, default='')
