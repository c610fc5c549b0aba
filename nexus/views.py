"""
API views for the NEXUS activity feed and broadcast settings
"""
import logging

from django_filters import rest_framework as filters
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import CanConfigurePerformance, IsOrganizationMember
from .events import BROADCAST_DEFAULTS
from .models import ActivityLog, ActivityCategory, ActivitySeverity, BroadcastConfig
from .serializers import ActivityLogSerializer, BroadcastConfigSerializer
from .services import clear_broadcast_cache

logger = logging.getLogger(__name__)


class ActivityLogFilter(filters.FilterSet):
    start_date = filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    end_date = filters.DateFilter(field_name='created_at', lookup_expr='date__lte')
    category = filters.ChoiceFilter(choices=ActivityCategory.choices)
    severity = filters.ChoiceFilter(choices=ActivitySeverity.choices)
    activity_type = filters.CharFilter()
    unacknowledged = filters.BooleanFilter(method='filter_unacknowledged')

    class Meta:
        model = ActivityLog
        fields = ['start_date', 'end_date', 'category', 'severity', 'activity_type', 'unacknowledged']

    def filter_unacknowledged(self, queryset, name, value):
        if value:
            return queryset.filter(requires_acknowledgment=True, acknowledged_at__isnull=True)
        return queryset


class ActivityLogPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 500


class ActivityLogViewSet(viewsets.ReadOnlyModelViewSet):
    """Activity feed for the user's organization, newest first."""
    serializer_class = ActivityLogSerializer
    permission_classes = [IsOrganizationMember]
    pagination_class = ActivityLogPagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = ActivityLogFilter

    def get_queryset(self):
        return (
            ActivityLog.objects.filter(organization=self.request.user.organization)
            .select_related('user', 'acknowledged_by')
            .prefetch_related('diffs')
            .order_by('-created_at')
        )

    @action(detail=True, methods=['post'])
    def acknowledge(self, request, pk=None):
        log = self.get_object()
        if not log.is_acknowledged:
            log.acknowledge(request.user)
            logger.info(
                "Activity acknowledged",
                extra={"activity_log_id": str(log.id), "user_id": str(request.user.id)},
            )
        return Response(self.get_serializer(log).data)


class BroadcastConfigView(APIView):
    def get_permissions(self):
        if self.request.method == 'GET':
            return [IsOrganizationMember()]
        return [CanConfigurePerformance()]

    def get(self, request):
        config = BroadcastConfig.objects.filter(organization=request.user.organization).first()
        return Response({
            'rules': config.rules if config else {},
            'defaults': BROADCAST_DEFAULTS,
            'configured': config is not None,
        })

    def put(self, request):
        organization = request.user.organization
        serializer = BroadcastConfigSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        config, _ = BroadcastConfig.objects.update_or_create(
            organization=organization,
            defaults={'rules': serializer.validated_data['rules'], 'updated_by': request.user},
        )
        clear_broadcast_cache(organization.id)
        logger.info("Broadcast rules saved", extra={"organization_id": str(organization.id)})
        return Response(BroadcastConfigSerializer(config).data)
