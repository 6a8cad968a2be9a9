"""
Redistribution — Views

Create, list and resolve redistribution requests. Listing is scoped to
requests the caller's facility sends or receives; approve and decline are
reserved to the receiving facility by the service layer.

@file redistribution/views.py
"""

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.exceptions import AuthorizationError

from .serializers import RedistributionCreateSerializer, RedistributionReadSerializer
from .services import RedistributionService


class RedistributionViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    """
    GET    /redistributions/                 ?status=PENDING&direction=incoming
    POST   /redistributions/
    GET    /redistributions/{id}/
    POST   /redistributions/{id}/approve/
    POST   /redistributions/{id}/decline/
    """

    permission_classes = [IsAuthenticated]
    search_fields = ['drug__drug_name', 'drug__batch_number', 'reason']
    ordering_fields = ['created_at', 'quantity', 'status']
    ordering = ['-created_at']

    def get_queryset(self):
        facility_id = self.request.user.facility_id
        if facility_id is None:
            raise AuthorizationError(detail='Your account is not attached to a facility.')
        params = self.request.query_params
        if self.action != 'list':
            return RedistributionService.list_for_facility(facility_id)
        return RedistributionService.list_for_facility(
            facility_id,
            status=params.get('status'),
            direction=params.get('direction'),
        )

    def get_serializer_class(self):
        if self.action == 'create':
            return RedistributionCreateSerializer
        return RedistributionReadSerializer

    def retrieve(self, request, *args, **kwargs):
        facility_id = request.user.facility_id
        if facility_id is None:
            raise AuthorizationError(detail='Your account is not attached to a facility.')
        redistribution = RedistributionService.get_for_facility(
            request_id=kwargs['pk'], facility_id=facility_id,
        )
        return Response(self._read(redistribution))

    def create(self, request, *args, **kwargs):
        ser = RedistributionCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        redistribution = RedistributionService.create_request(
            drug_id=data['drug'],
            quantity=data['quantity'],
            to_facility_id=data['to_facility'],
            reason=data['reason'],
            actor=request.user,
        )
        return Response(self._read(redistribution), status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path='approve')
    def approve(self, request, pk=None):
        redistribution = RedistributionService.approve_request(request_id=pk, actor=request.user)
        return Response(self._read(redistribution))

    @action(detail=True, methods=['post'], url_path='decline')
    def decline(self, request, pk=None):
        redistribution = RedistributionService.decline_request(request_id=pk, actor=request.user)
        return Response(self._read(redistribution))

    def _read(self, redistribution):
        return RedistributionReadSerializer(
            redistribution, context=self.get_serializer_context(),
        ).data
