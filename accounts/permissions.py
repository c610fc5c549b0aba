from rest_framework import permissions


class IsOrganizationMember(permissions.BasePermission):
    message = 'No organization associated with this user.'

    def has_permission(self, request, view):
        return bool(
            request.user
            and request.user.is_authenticated
            and getattr(request.user, 'organization_id', None)
        )


class CanManagePoints(IsOrganizationMember):
    """Security levels 0-3 may add, excuse and approve point events."""
    message = 'Only managers can change performance points.'

    def has_permission(self, request, view):
        return super().has_permission(request, view) and request.user.is_manager()


class CanConfigurePerformance(IsOrganizationMember):
    message = 'Only owners and managers can configure team performance.'

    def has_permission(self, request, view):
        return super().has_permission(request, view) and request.user.can_configure()


class ReadOnlyOrManager(IsOrganizationMember):
    """Any organization member may read; writes need a manager."""

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return request.user.is_manager()


class IsSameOrganization(permissions.BasePermission):
    def has_object_permission(self, request, view, obj):
        return getattr(obj, 'organization_id', None) == request.user.organization_id
