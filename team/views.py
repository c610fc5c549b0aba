import logging

from django.db.models import Q
from rest_framework import generics

from accounts.permissions import IsSameOrganization, ReadOnlyOrManager
from nexus.services import nexus
from .models import TeamMember
from .serializers import TeamMemberSerializer

logger = logging.getLogger(__name__)


class TeamMemberListCreateView(generics.ListCreateAPIView):
    serializer_class = TeamMemberSerializer
    permission_classes = [ReadOnlyOrManager]

    def get_queryset(self):
        qs = TeamMember.objects.filter(organization=self.request.user.organization)
        search = (self.request.query_params.get('search') or '').strip()
        if search:
            qs = qs.filter(
                Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(display_name__icontains=search)
                | Q(email__icontains=search)
            )
        active = self.request.query_params.get('is_active')
        if active is not None:
            qs = qs.filter(is_active=active.lower() in ('true', '1', 'yes'))
        return qs

    def perform_create(self, serializer):
        member = serializer.save(organization=self.request.user.organization)
        logger.info(
            "Team member created",
            extra={"organization_id": str(member.organization_id), "team_member_id": str(member.id)},
        )


class TeamMemberDetailView(generics.RetrieveUpdateAPIView):
    serializer_class = TeamMemberSerializer
    permission_classes = [ReadOnlyOrManager, IsSameOrganization]

    def get_queryset(self):
        return TeamMember.objects.filter(organization=self.request.user.organization)

    def perform_update(self, serializer):
        changed = sorted(serializer.validated_data.keys())
        member = serializer.save()
        nexus(
            organization=member.organization,
            user=self.request.user,
            activity_type='team_member_updated',
            details={
                'team_member_id': str(member.id),
                'name': member.full_name,
                'changed_fields': changed,
            },
        )
