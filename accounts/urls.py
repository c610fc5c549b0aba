from django.urls import path
from .views import MeView, OrganizationDetailView

urlpatterns = [
    path('me/', MeView.as_view(), name='me'),
    path('organization/', OrganizationDetailView.as_view(), name='organization-detail'),
]
