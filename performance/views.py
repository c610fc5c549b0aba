"""
Team performance API: roster, ledger, point decisions, imports, gaps, coaching and PIPs.
"""
import logging

from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import CanConfigurePerformance, CanManagePoints, IsOrganizationMember, ReadOnlyOrManager
from core.exceptions import ImportParseError
from core.timezone_utils import organization_today
from core.utils import parse_page
from nexus.services import nexus
from team.models import TeamMember
from .config import (
    DEFAULT_PERFORMANCE_CONFIG, EVENT_TYPE_LABELS, EXCUSE_REASONS, MODULE_ID, REDUCTION_TYPE_LABELS,
    deep_merge, get_performance_config,
)
from .cycles import get_current_cycle
from .delta_engine import calculate_deltas
from .digest import team_overview, weekly_digest
from .gaps import resolve_gap, scan_gaps
from .imports import stage_import
from .ledger import ledger_rows, member_performance, roster, team_ledger, team_performance
from .models import (
    CoachingRecord, ImportedShift, PerformanceCycle, PerformanceImprovementPlan, PointEvent, PointReduction,
    StagedEvent,
)
from .reports import export_ledger_excel
from .serializers import (
    AddPointEventSerializer, AddPointReductionSerializer, CoachingRecordSerializer, DecisionSerializer,
    DigestQuerySerializer, ExcuseSerializer, GapResolveSerializer, LedgerQuerySerializer, ManualStagedEventSerializer,
    MemberPerformanceSerializer, ModifyEntrySerializer, PerformanceConfigSerializer,
    PerformanceCycleSerializer, PerformanceImprovementPlanSerializer, PointEventSerializer,
    PointReductionSerializer, RecordFilterSerializer, RosterQuerySerializer, ShiftImportSerializer,
    SickDaySerializer, SingleDecisionSerializer, StagedEventSerializer, TeamPerformanceSerializer,
)
from .services import (
    add_point_event, add_point_reduction, create_pip, excuse_entry, generate_coaching_letter, log_sick_day,
    member_points, modify_entry, remove_entry, toggle_pip_goal, toggle_pip_milestone, update_coaching_record,
    update_pip,
)
from .staging import (
    DecisionQueue, approve_staged_event, excuse_staged_event, reject_staged_event,
)

logger = logging.getLogger(__name__)

ENTRY_MODELS = {
    'event': PointEvent,
    'reduction': PointReduction,
}


def _cycle_for(request):
    cycle_id = _validated_query(RecordFilterSerializer, request).get('cycle')
    if cycle_id:
        return get_object_or_404(PerformanceCycle, organization=request.user.organization, id=cycle_id)
    return get_current_cycle(request.user.organization)


def _validated_query(serializer_class, request):
    serializer = serializer_class(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


# =============================================================================
# Configuration and cycles
# =============================================================================

class PerformanceConfigView(APIView):
    def get_permissions(self):
        if self.request.method == 'GET':
            return [IsOrganizationMember()]
        return [CanConfigurePerformance()]

    def get(self, request):
        organization = request.user.organization
        return Response({
            'enabled': organization.is_module_enabled(MODULE_ID),
            'config': get_performance_config(organization),
            'defaults': DEFAULT_PERFORMANCE_CONFIG,
            'event_labels': EVENT_TYPE_LABELS,
            'reduction_labels': REDUCTION_TYPE_LABELS,
        })

    def put(self, request):
        organization = request.user.organization
        serializer = PerformanceConfigSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        modules = dict(organization.modules or {})
        module = dict(modules.get(MODULE_ID) or {})
        module['config'] = deep_merge(module.get('config') or {}, serializer.validated_data)
        modules[MODULE_ID] = module
        organization.modules = modules
        organization.save(update_fields=['modules', 'updated_at'])

        nexus(
            organization=organization,
            user=request.user,
            activity_type='performance_config_updated',
            details={'changed_sections': sorted(serializer.validated_data.keys())},
        )
        return Response({'config': get_performance_config(organization)})


class PerformanceCycleListView(generics.ListAPIView):
    serializer_class = PerformanceCycleSerializer
    permission_classes = [IsOrganizationMember]
    pagination_class = None

    def get_queryset(self):
        # Guarantees the current cycle exists before listing
        get_current_cycle(self.request.user.organization)
        return PerformanceCycle.objects.filter(organization=self.request.user.organization).order_by('-start_date')


# =============================================================================
# Roster, member detail and ledger
# =============================================================================

class TeamPerformanceView(APIView):
    """Roster cards: search, filter, sort and 12 per page."""
    permission_classes = [IsOrganizationMember]

    def get(self, request):
        params = _validated_query(RosterQuerySerializer, request)
        cycle = _cycle_for(request)
        performances = team_performance(request.user.organization, cycle)
        page = roster(
            performances,
            search=params['search'],
            roster_filter=params['filter'],
            sort=params['sort'],
            page=parse_page(request.query_params.get('page')),
        )
        page['results'] = TeamPerformanceSerializer(page['results'], many=True).data
        page['cycle'] = PerformanceCycleSerializer(cycle).data
        return Response(page)


class MemberPerformanceView(APIView):
    permission_classes = [IsOrganizationMember]

    def get(self, request, member_id):
        organization = request.user.organization
        member = get_object_or_404(TeamMember, organization=organization, id=member_id)
        cycle = _cycle_for(request)
        performance = member_performance(organization, cycle, member)
        data = MemberPerformanceSerializer(performance, context={'today': organization_today(organization)}).data
        data['pending_events'] = StagedEventSerializer(
            StagedEvent.objects.filter(organization=organization, team_member=member), many=True
        ).data
        data['cycle'] = PerformanceCycleSerializer(cycle).data
        return Response(data)


class TeamLedgerView(APIView):
    permission_classes = [IsOrganizationMember]

    def get(self, request):
        params = _validated_query(LedgerQuerySerializer, request)
        performances = team_performance(request.user.organization, _cycle_for(request))
        return Response(team_ledger(
            performances,
            date_from=params.get('date_from'),
            date_to=params.get('date_to'),
            kind=params['kind'],
            member_id=params.get('team_member'),
            search=params['search'],
            page=parse_page(request.query_params.get('page')),
        ))


class TeamOverviewView(APIView):
    """Tier distribution, members in coaching and members one point from the next tier."""
    permission_classes = [IsOrganizationMember]

    def get(self, request):
        organization = request.user.organization
        cycle = _cycle_for(request)
        overview = team_overview(team_performance(organization, cycle), get_performance_config(organization))
        overview['cycle'] = PerformanceCycleSerializer(cycle).data
        return Response(overview)


class WeeklyDigestView(APIView):
    permission_classes = [IsOrganizationMember]

    def get(self, request):
        organization = request.user.organization
        params = _validated_query(DigestQuerySerializer, request)
        member = None
        if params.get('team_member'):
            member = get_object_or_404(TeamMember, organization=organization, id=params['team_member'])
        cycle = _cycle_for(request)
        digest = weekly_digest(organization, request.user, cycle, member=member, week_of=params.get('week_of'))
        digest['cycle'] = PerformanceCycleSerializer(cycle).data
        return Response(digest)


class LedgerExportView(APIView):
    permission_classes = [CanManagePoints]

    def get(self, request):
        params = _validated_query(LedgerQuerySerializer, request)
        cycle = _cycle_for(request)
        performances = team_performance(request.user.organization, cycle)
        rows = ledger_rows(
            performances,
            date_from=params.get('date_from'),
            date_to=params.get('date_to'),
            kind=params['kind'],
            member_id=params.get('team_member'),
            search=params['search'],
        )
        content = export_ledger_excel(rows)
        resp = HttpResponse(
            content,
            content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
        resp["Content-Disposition"] = f'attachment; filename="points_ledger_{cycle.start_date}_{cycle.end_date}.xlsx"'
        return resp


# =============================================================================
# Point events, reductions and ledger entries
# =============================================================================

class PointEventCreateView(APIView):
    permission_classes = [CanManagePoints]

    def post(self, request):
        serializer = AddPointEventSerializer(data=request.data, context={'request': request})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        result = add_point_event(
            request.user.organization, request.user, data['team_member'], data['event_type'],
            notes=data.get('notes'), event_date=data.get('event_date'),
        )
        return Response({
            'entry': PointEventSerializer(result['entry']).data,
            'current_points': result['current_points'],
            'tier': result['tier'],
            'coaching_stage': result['coaching_stage'],
            'coaching_record': (
                CoachingRecordSerializer(result['coaching_record']).data if result['coaching_record'] else None
            ),
        }, status=status.HTTP_201_CREATED)


class PointReductionCreateView(APIView):
    permission_classes = [CanManagePoints]

    def post(self, request):
        serializer = AddPointReductionSerializer(data=request.data, context={'request': request})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        result = add_point_reduction(
            request.user.organization, request.user, data['team_member'], data['reduction_type'],
            notes=data.get('notes'), event_date=data.get('event_date'),
        )
        return Response({
            'entry': PointReductionSerializer(result['entry']).data,
            'capped': result['capped'],
            'current_points': result['current_points'],
            'tier': result['tier'],
        }, status=status.HTTP_201_CREATED)


class LedgerEntryMixin:
    permission_classes = [CanManagePoints]

    def get_entry(self, request, entry_type, pk):
        model = ENTRY_MODELS.get(entry_type)
        if model is None:
            return None
        return get_object_or_404(
            model.objects.select_related('team_member'), organization=request.user.organization, id=pk
        )


class LedgerEntryDetailView(LedgerEntryMixin, APIView):
    def delete(self, request, entry_type, pk):
        entry = self.get_entry(request, entry_type, pk)
        if entry is None:
            return Response({"detail": "entry_type must be 'event' or 'reduction'."}, status=status.HTTP_400_BAD_REQUEST)
        remove_entry(request.user.organization, request.user, entry)
        return Response(status=status.HTTP_204_NO_CONTENT)


class LedgerEntryModifyView(LedgerEntryMixin, APIView):
    def post(self, request, entry_type, pk):
        entry = self.get_entry(request, entry_type, pk)
        if entry is None:
            return Response({"detail": "entry_type must be 'event' or 'reduction'."}, status=status.HTTP_400_BAD_REQUEST)
        serializer = ModifyEntrySerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        entry = modify_entry(
            request.user.organization, request.user, entry,
            serializer.validated_data['new_type'], serializer.validated_data.get('new_points'),
        )
        output = PointReductionSerializer if entry_type == 'reduction' else PointEventSerializer
        return Response(output(entry).data)


class LedgerEntryExcuseView(LedgerEntryMixin, APIView):
    def post(self, request, entry_type, pk):
        entry = self.get_entry(request, entry_type, pk)
        if entry is None:
            return Response({"detail": "entry_type must be 'event' or 'reduction'."}, status=status.HTTP_400_BAD_REQUEST)
        serializer = ExcuseSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        excuse_entry(request.user.organization, request.user, entry, serializer.validated_data['reason'])
        return Response(status=status.HTTP_204_NO_CONTENT)


class SickDayView(APIView):
    permission_classes = [CanManagePoints]

    def post(self, request):
        serializer = SickDaySerializer(data=request.data, context={'request': request})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        log = log_sick_day(
            request.user.organization, request.user, data['team_member'], data['sick_date'],
            notes=data.get('notes'), force=data['force'],
        )
        return Response(
            {'activity_log_id': str(log.id) if log else None, 'sick_date': data['sick_date']},
            status=status.HTTP_201_CREATED,
        )


class ExcuseReasonListView(APIView):
    permission_classes = [IsOrganizationMember]

    def get(self, request):
        return Response([{'code': code, 'label': label} for code, label in EXCUSE_REASONS])


# =============================================================================
# Staged events and the decision queue
# =============================================================================

class StagedEventListCreateView(generics.ListCreateAPIView):
    serializer_class = StagedEventSerializer
    permission_classes = [ReadOnlyOrManager]
    pagination_class = None

    def get_queryset(self):
        qs = StagedEvent.objects.filter(organization=self.request.user.organization).select_related('team_member')
        params = _validated_query(RecordFilterSerializer, self.request)
        if params.get('team_member'):
            qs = qs.filter(team_member_id=params['team_member'])
        if params.get('import_batch_id'):
            qs = qs.filter(import_batch_id=params['import_batch_id'])
        return qs

    def create(self, request, *args, **kwargs):
        serializer = ManualStagedEventSerializer(data=request.data, context={'request': request})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        config = get_performance_config(request.user.organization)
        points = data.get('suggested_points')
        if points is None:
            points = config['point_values'].get(data['event_type'], config['reduction_values'].get(data['event_type'], 0))
        event = StagedEvent.objects.create(
            organization=request.user.organization,
            team_member=data['team_member'],
            event_type=data['event_type'],
            suggested_points=points,
            description=data['description'],
            event_date=data['event_date'],
            role=data.get('role') or None,
            source='manual',
            created_by=request.user,
        )
        logger.info(
            "Manual event staged",
            extra={"staged_event_id": str(event.id), "team_member_id": str(event.team_member_id)},
        )
        return Response(StagedEventSerializer(event).data, status=status.HTTP_201_CREATED)


class StagedEventDecideView(APIView):
    """Apply a single decision immediately."""
    permission_classes = [CanManagePoints]

    def post(self, request, pk):
        organization = request.user.organization
        event = get_object_or_404(StagedEvent.objects.select_related('team_member'), organization=organization, id=pk)
        serializer = SingleDecisionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        if data['action'] == 'approve':
            approve_staged_event(organization, request.user, event, modification=data.get('modification'))
        elif data['action'] == 'reject':
            reject_staged_event(organization, request.user, event)
        else:
            excuse_staged_event(organization, request.user, event, data['reason'])
        member = event.team_member
        return Response({
            'action': data['action'],
            'team_member_id': str(member.id),
            'current_points': member_points(member, get_current_cycle(organization)),
        })


def _queue_payload(queue):
    return {
        'decisions': queue.pending_decisions,
        'count': len(queue.decisions),
        'has_undo': queue.has_undo(),
    }


class DecisionQueueView(APIView):
    """Queue decisions now, save them together later."""
    permission_classes = [CanManagePoints]

    def get(self, request):
        organization = request.user.organization
        queue = DecisionQueue.load(organization, request.user)
        payload = _queue_payload(queue)
        member_id = _validated_query(RecordFilterSerializer, request).get('team_member')
        if member_id:
            member = get_object_or_404(TeamMember, organization=organization, id=member_id)
            payload['pending_events'] = StagedEventSerializer(queue.pending_for(member), many=True).data
            payload['projected_points'] = queue.projected_points(member)
        return Response(payload)

    def post(self, request):
        serializer = DecisionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        queue = DecisionQueue.load(request.user.organization, request.user)
        queue.queue(data['event_id'], data['action'], reason=data.get('reason'), modification=data.get('modification'))
        queue.save()
        return Response(_queue_payload(queue), status=status.HTTP_201_CREATED)

    def delete(self, request):
        DecisionQueue.load(request.user.organization, request.user).clear()
        return Response(status=status.HTTP_204_NO_CONTENT)


class DecisionQueueUndoView(APIView):
    permission_classes = [CanManagePoints]

    def post(self, request):
        queue = DecisionQueue.load(request.user.organization, request.user)
        withdrawn = queue.undo(request.data.get('event_id'))
        queue.save()
        payload = _queue_payload(queue)
        payload['withdrawn'] = withdrawn
        return Response(payload)


class DecisionQueueCommitView(APIView):
    permission_classes = [CanManagePoints]

    def post(self, request):
        queue = DecisionQueue.load(request.user.organization, request.user)
        if not queue.decisions:
            return Response({"detail": "No decisions queued."}, status=status.HTTP_400_BAD_REQUEST)
        return Response(queue.commit())


# =============================================================================
# Shift import and gap scanner
# =============================================================================

class ShiftImportView(APIView):
    """Compare scheduled and worked exports; stage the detected events unless previewing."""
    permission_classes = [CanManagePoints]

    def post(self, request):
        serializer = ShiftImportSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        organization = request.user.organization

        result = calculate_deltas(
            data['scheduled_content'], data['worked_content'], get_performance_config(organization)
        )
        if result['errors']:
            raise ImportParseError('; '.join(result['errors']))

        summary = {
            key: result[key]
            for key in ('scheduled_count', 'worked_count', 'matched_count', 'no_show_count', 'unscheduled_count',
                        'date_range', 'deltas')
        }
        if data['preview']:
            return Response(summary)
        summary['staged'] = stage_import(organization, request.user, result)
        return Response(summary, status=status.HTTP_201_CREATED)


class GapScanView(APIView):
    permission_classes = [CanManagePoints]

    def get(self, request):
        organization = request.user.organization
        params = _validated_query(LedgerQuerySerializer, request)
        member = None
        if params.get('team_member'):
            member = get_object_or_404(TeamMember, organization=organization, id=params['team_member'])
        return Response(scan_gaps(organization, params.get('date_from'), params.get('date_to'), member))


class GapResolveView(APIView):
    permission_classes = [CanManagePoints]

    def post(self, request, shift_id):
        organization = request.user.organization
        shift = get_object_or_404(
            ImportedShift.objects.select_related('team_member'), organization=organization, id=shift_id, kind='scheduled'
        )
        serializer = GapResolveSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        log = resolve_gap(
            organization, request.user, shift, data['decision'],
            reason=data.get('reason'), event_type=data.get('event_type'), notes=data.get('notes'),
        )
        return Response({'resolved': log is not None, 'activity_log_id': str(log.id) if log else None})


# =============================================================================
# Coaching and PIPs
# =============================================================================

class CoachingRecordListView(generics.ListAPIView):
    serializer_class = CoachingRecordSerializer
    permission_classes = [IsOrganizationMember]
    pagination_class = None

    def get_queryset(self):
        qs = CoachingRecord.objects.filter(organization=self.request.user.organization).select_related('team_member')
        params = _validated_query(RecordFilterSerializer, self.request)
        if params.get('team_member'):
            qs = qs.filter(team_member_id=params['team_member'])
        if params['status']:
            qs = qs.filter(status=params['status'])
        return qs


class CoachingRecordDetailView(APIView):
    def get_permissions(self):
        if self.request.method == 'GET':
            return [IsOrganizationMember()]
        return [CanManagePoints()]

    def get_object(self, request, pk):
        return get_object_or_404(
            CoachingRecord.objects.select_related('team_member'), organization=request.user.organization, id=pk
        )

    def get(self, request, pk):
        return Response(CoachingRecordSerializer(self.get_object(request, pk)).data)

    def patch(self, request, pk):
        record = self.get_object(request, pk)
        serializer = CoachingRecordSerializer(record, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        record = update_coaching_record(request.user.organization, request.user, record, serializer.validated_data)
        return Response(CoachingRecordSerializer(record).data)


class CoachingLetterView(APIView):
    permission_classes = [CanManagePoints]

    def get(self, request, pk):
        organization = request.user.organization
        record = get_object_or_404(
            CoachingRecord.objects.select_related('team_member'), organization=organization, id=pk
        )
        content = generate_coaching_letter(organization, record)
        resp = HttpResponse(content, content_type="application/pdf")
        member_slug = record.team_member.full_name.lower().replace(' ', '_')
        resp["Content-Disposition"] = f'attachment; filename="coaching_stage{record.stage}_{member_slug}.pdf"'
        return resp


class PipListCreateView(APIView):
    def get_permissions(self):
        if self.request.method == 'GET':
            return [IsOrganizationMember()]
        return [CanManagePoints()]

    def get(self, request):
        organization = request.user.organization
        qs = PerformanceImprovementPlan.objects.filter(organization=organization).select_related('team_member')
        params = _validated_query(RecordFilterSerializer, request)
        if params.get('team_member'):
            qs = qs.filter(team_member_id=params['team_member'])
        if params['status']:
            qs = qs.filter(status=params['status'])
        context = {'request': request, 'today': organization_today(organization)}
        return Response(PerformanceImprovementPlanSerializer(qs, many=True, context=context).data)

    def post(self, request):
        organization = request.user.organization
        context = {'request': request, 'today': organization_today(organization)}
        serializer = PerformanceImprovementPlanSerializer(data=request.data, context=context)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = dict(serializer.validated_data)
        pip = create_pip(organization, request.user, data.pop('team_member'), data)
        return Response(PerformanceImprovementPlanSerializer(pip, context=context).data, status=status.HTTP_201_CREATED)


class PipDetailView(APIView):
    def get_permissions(self):
        if self.request.method == 'GET':
            return [IsOrganizationMember()]
        return [CanManagePoints()]

    def get_object(self, request, pk):
        return get_object_or_404(
            PerformanceImprovementPlan.objects.select_related('team_member'),
            organization=request.user.organization,
            id=pk,
        )

    def _context(self, request):
        return {'request': request, 'today': organization_today(request.user.organization)}

    def get(self, request, pk):
        pip = self.get_object(request, pk)
        return Response(PerformanceImprovementPlanSerializer(pip, context=self._context(request)).data)

    def patch(self, request, pk):
        pip = self.get_object(request, pk)
        context = self._context(request)
        serializer = PerformanceImprovementPlanSerializer(pip, data=request.data, partial=True, context=context)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        updates = dict(serializer.validated_data)
        updates.pop('team_member', None)
        pip = update_pip(request.user.organization, request.user, pip, updates)
        return Response(PerformanceImprovementPlanSerializer(pip, context=context).data)


class PipToggleView(APIView):
    """POST /pips/<id>/goals/<goal_id>/toggle/ or /pips/<id>/milestones/<milestone_id>/toggle/"""
    permission_classes = [CanManagePoints]
    item = 'goal'

    def post(self, request, pk, item_id):
        organization = request.user.organization
        pip = get_object_or_404(
            PerformanceImprovementPlan.objects.select_related('team_member'), organization=organization, id=pk
        )
        toggle = toggle_pip_goal if self.item == 'goal' else toggle_pip_milestone
        updated = toggle(organization, request.user, pip, item_id)
        if updated is None:
            return Response({"detail": f"{self.item.capitalize()} not found."}, status=status.HTTP_404_NOT_FOUND)
        context = {'request': request, 'today': organization_today(organization)}
        return Response(PerformanceImprovementPlanSerializer(updated, context=context).data)
