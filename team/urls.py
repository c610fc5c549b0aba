from django.urls import path
from .views import TeamMemberDetailView, TeamMemberListCreateView

urlpatterns = [
    path('members/', TeamMemberListCreateView.as_view(), name='team-member-list'),
    path('members/<uuid:pk>/', TeamMemberDetailView.as_view(), name='team-member-detail'),
]
