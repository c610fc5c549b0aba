from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import ActivityLogViewSet, BroadcastConfigView

router = DefaultRouter()
router.register(r'activity', ActivityLogViewSet, basename='activity')

urlpatterns = [
    path('broadcast-config/', BroadcastConfigView.as_view(), name='broadcast-config'),
    path('', include(router.urls)),
]
