from django.contrib import admin
from .models import TeamMember


@admin.register(TeamMember)
class TeamMemberAdmin(admin.ModelAdmin):
    list_display = ['first_name', 'last_name', 'organization', 'security_level', 'is_active', 'hire_date']
    list_filter = ['is_active', 'security_level']
    search_fields = ['first_name', 'last_name', 'email', 'punch_id', 'external_employee_id']
