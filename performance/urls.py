from django.urls import path

from .views import (
    CoachingLetterView, CoachingRecordDetailView, CoachingRecordListView, DecisionQueueCommitView,
    DecisionQueueUndoView, DecisionQueueView, ExcuseReasonListView, GapResolveView, GapScanView,
    LedgerEntryDetailView, LedgerEntryExcuseView, LedgerEntryModifyView, LedgerExportView, MemberPerformanceView,
    PerformanceConfigView, PerformanceCycleListView, PipDetailView, PipListCreateView, PipToggleView,
    PointEventCreateView, PointReductionCreateView, ShiftImportView, SickDayView, StagedEventDecideView,
    StagedEventListCreateView, TeamLedgerView, TeamOverviewView, TeamPerformanceView, WeeklyDigestView,
)

urlpatterns = [
    path('config/', PerformanceConfigView.as_view(), name='performance-config'),
    path('cycles/', PerformanceCycleListView.as_view(), name='performance-cycles'),
    path('excuse-reasons/', ExcuseReasonListView.as_view(), name='excuse-reasons'),

    # Roster and ledger
    path('team/', TeamPerformanceView.as_view(), name='team-performance'),
    path('members/<uuid:member_id>/', MemberPerformanceView.as_view(), name='member-performance'),
    path('ledger/', TeamLedgerView.as_view(), name='team-ledger'),
    path('ledger/export/', LedgerExportView.as_view(), name='ledger-export'),
    path('overview/', TeamOverviewView.as_view(), name='team-overview'),
    path('digest/', WeeklyDigestView.as_view(), name='weekly-digest'),

    # Points
    path('events/', PointEventCreateView.as_view(), name='point-event-create'),
    path('reductions/', PointReductionCreateView.as_view(), name='point-reduction-create'),
    path('entries/<str:entry_type>/<uuid:pk>/', LedgerEntryDetailView.as_view(), name='ledger-entry-detail'),
    path('entries/<str:entry_type>/<uuid:pk>/modify/', LedgerEntryModifyView.as_view(), name='ledger-entry-modify'),
    path('entries/<str:entry_type>/<uuid:pk>/excuse/', LedgerEntryExcuseView.as_view(), name='ledger-entry-excuse'),
    path('sick-days/', SickDayView.as_view(), name='sick-day-create'),

    # Staged events
    path('staged-events/', StagedEventListCreateView.as_view(), name='staged-events'),
    path('staged-events/<uuid:pk>/decide/', StagedEventDecideView.as_view(), name='staged-event-decide'),
    path('decisions/', DecisionQueueView.as_view(), name='decision-queue'),
    path('decisions/undo/', DecisionQueueUndoView.as_view(), name='decision-queue-undo'),
    path('decisions/commit/', DecisionQueueCommitView.as_view(), name='decision-queue-commit'),

    # Import and gaps
    path('imports/', ShiftImportView.as_view(), name='shift-import'),
    path('gaps/', GapScanView.as_view(), name='gap-scan'),
    path('gaps/<uuid:shift_id>/resolve/', GapResolveView.as_view(), name='gap-resolve'),

    # Coaching and PIPs
    path('coaching/', CoachingRecordListView.as_view(), name='coaching-records'),
    path('coaching/<uuid:pk>/', CoachingRecordDetailView.as_view(), name='coaching-record-detail'),
    path('coaching/<uuid:pk>/letter/', CoachingLetterView.as_view(), name='coaching-letter'),
    path('pips/', PipListCreateView.as_view(), name='pips'),
    path('pips/<uuid:pk>/', PipDetailView.as_view(), name='pip-detail'),
    path('pips/<uuid:pk>/goals/<str:item_id>/toggle/', PipToggleView.as_view(item='goal'), name='pip-goal-toggle'),
    path(
        'pips/<uuid:pk>/milestones/<str:item_id>/toggle/',
        PipToggleView.as_view(item='milestone'),
        name='pip-milestone-toggle',
    ),
]
