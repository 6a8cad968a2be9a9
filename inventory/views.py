"""
Inventory — Views

Facility-scoped lot listing, stock receipt, lot edits and dispensation
endpoints. Every queryset is restricted to the caller's facility.

@file inventory/views.py
"""

from rest_framework import mixins, status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from users.permissions import IsFacilityMember

from .serializers import (
    DispensationReadSerializer,
    DispensationWriteSerializer,
    InventoryLotReadSerializer,
    InventoryLotUpdateSerializer,
    InventoryLotWriteSerializer,
)
from .services import DispensationService, InventoryLedger


class InventoryLotViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """
    Lots held by the caller's facility.

    POST registers newly received stock; a (drug_name, batch_number) pair
    already present at the facility is rejected with 409. PUT/PATCH edit the
    reorder level, supplier, dates and location; stock is never edited here.
    """

    permission_classes = [IsAuthenticated, IsFacilityMember]
    filterset_fields = ['status', 'drug_name']
    search_fields = ['drug_name', 'batch_number', 'supplier']
    ordering_fields = ['drug_name', 'expiry_date', 'current_stock', 'created_at']
    ordering = ['drug_name', 'expiry_date']

    def get_queryset(self):
        return InventoryLedger.list_lots(self.request.user.facility_id)

    def get_serializer_class(self):
        if self.action in ('list', 'retrieve'):
            return InventoryLotReadSerializer
        if self.action in ('update', 'partial_update'):
            return InventoryLotUpdateSerializer
        return InventoryLotWriteSerializer

    def create(self, request, *args, **kwargs):
        ser = InventoryLotWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        lot = InventoryLedger.receive_stock(actor=request.user, **ser.validated_data)
        return Response(
            InventoryLotReadSerializer(lot).data,
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        kwargs.pop('partial', None)
        ser = InventoryLotUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        lot = InventoryLedger.update_lot(
            actor=request.user, lot_id=kwargs['pk'], **ser.validated_data,
        )
        return Response(InventoryLotReadSerializer(lot).data)


class DispensationViewSet(
    mixins.ListModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    """Dispensation history of the caller's facility; POST dispenses from a lot."""

    permission_classes = [IsAuthenticated, IsFacilityMember]
    filterset_fields = ['lot']
    search_fields = ['dispensed_to', 'lot__drug_name']
    ordering_fields = ['dispensed_at', 'quantity']
    ordering = ['-dispensed_at']

    def get_queryset(self):
        return DispensationService.list_dispensations(self.request.user.facility_id)

    def get_serializer_class(self):
        if self.action == 'list':
            return DispensationReadSerializer
        return DispensationWriteSerializer

    def create(self, request, *args, **kwargs):
        ser = DispensationWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        dispensation = DispensationService.dispense(
            actor=request.user,
            lot_id=data['lot'],
            quantity=data['quantity'],
            dispensed_to=data['dispensed_to'],
            note=data.get('note', ''),
        )
        return Response(
            DispensationReadSerializer(dispensation).data,
            status=status.HTTP_201_CREATED,
        )
