import logging

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .permissions import CanConfigurePerformance, IsOrganizationMember
from .serializers import CustomUserSerializer, OrganizationSerializer

logger = logging.getLogger(__name__)


class MeView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        serializer = CustomUserSerializer(request.user)
        return Response(serializer.data)

    def patch(self, request):
        user_serializer = CustomUserSerializer(request.user, data=request.data, partial=True)
        if not user_serializer.is_valid():
            return Response(user_serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        user_serializer.save()
        return Response(user_serializer.data)


class OrganizationDetailView(APIView):
    def get_permissions(self):
        if self.request.method == 'GET':
            return [IsOrganizationMember()]
        return [CanConfigurePerformance()]

    def get(self, request):
        serializer = OrganizationSerializer(request.user.organization)
        return Response(serializer.data)

    def put(self, request):
        organization = request.user.organization
        serializer = OrganizationSerializer(organization, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        logger.info(
            "Organization updated",
            extra={"organization_id": str(organization.id), "user_id": str(request.user.id)},
        )
        return Response(serializer.data)
