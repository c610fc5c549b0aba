from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import generics, status
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsOrganizationMember, ReadOnlyOrManager
from .models import Equipment, Sensor, SensorReading
from .prices import price_changes, ticker_stats
from .serializers import (
    EquipmentSerializer, LogReadingSerializer, PriceChangeQuerySerializer, SensorReadingSerializer, SensorSerializer,
)
from .temperature import record_reading, temperature_widget, visibility


class SecurityLevelAtMost(IsOrganizationMember):
    """Allow users whose security level is ``level`` or lower."""
    level = 5

    def has_permission(self, request, view):
        return super().has_permission(request, view) and request.user.security_level <= self.level


class CanLogTemperature(SecurityLevelAtMost):
    message = 'Only shift leads and above can log temperatures.'
    level = 4


class CanViewTemperatureHistory(SecurityLevelAtMost):
    message = 'Only supervisors and above can view temperature history.'
    level = 3


class TemperatureWidgetView(APIView):
    permission_classes = [IsOrganizationMember]

    def get(self, request):
        return Response(temperature_widget(request.user.organization, request.user.security_level))


class TemperatureLogView(APIView):
    permission_classes = [CanLogTemperature]

    def post(self, request):
        serializer = LogReadingSerializer(data=request.data, context={'request': request})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        reading = record_reading(
            data['sensor'], data['temperature'], data.get('recorded_at') or timezone.now(), user=request.user
        )
        return Response(SensorReadingSerializer(reading).data, status=status.HTTP_201_CREATED)


class SensorReadingPagination(PageNumberPagination):
    page_size = 100
    page_size_query_param = 'page_size'
    max_page_size = 500


class SensorReadingHistoryView(generics.ListAPIView):
    serializer_class = SensorReadingSerializer
    permission_classes = [CanViewTemperatureHistory]
    pagination_class = SensorReadingPagination

    def get_queryset(self):
        sensor = get_object_or_404(Sensor, organization=self.request.user.organization, id=self.kwargs['pk'])
        return SensorReading.objects.filter(sensor=sensor).order_by('-recorded_at')


class SensorListCreateView(generics.ListCreateAPIView):
    serializer_class = SensorSerializer
    permission_classes = [ReadOnlyOrManager]
    pagination_class = None

    def get_queryset(self):
        return Sensor.objects.filter(organization=self.request.user.organization)

    def perform_create(self, serializer):
        serializer.save(organization=self.request.user.organization)


class EquipmentListCreateView(generics.ListCreateAPIView):
    serializer_class = EquipmentSerializer
    permission_classes = [ReadOnlyOrManager]
    pagination_class = None

    def get_queryset(self):
        return Equipment.objects.filter(organization=self.request.user.organization).select_related('sensor')

    def perform_create(self, serializer):
        serializer.save(organization=self.request.user.organization)


class EquipmentDetailView(generics.RetrieveUpdateDestroyAPIView):
    serializer_class = EquipmentSerializer
    permission_classes = [ReadOnlyOrManager]
    lookup_field = 'pk'

    def get_queryset(self):
        return Equipment.objects.filter(organization=self.request.user.organization)


class PriceChangeTickerView(APIView):
    permission_classes = [IsOrganizationMember]

    def get(self, request):
        serializer = PriceChangeQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data
        changes = price_changes(
            request.user.organization,
            days=params['days'],
            filter_type=params.get('filter_type'),
            ingredient=params.get('ingredient'),
        )
        return Response({'results': changes, 'stats': ticker_stats(changes)})


class TemperatureVisibilityView(APIView):
    """What the current user's security level unlocks in the temperature widget."""
    permission_classes = [IsOrganizationMember]

    def get(self, request):
        return Response(visibility(request.user.security_level))
