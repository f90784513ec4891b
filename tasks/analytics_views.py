"""
Views для аналитики: доступ только участникам соответствующей команды.
"""
from django.views.decorators.http import require_GET

from accounts.decorators import token_required
from app.utils.responses import api_success, api_view
from . import analytics
from .permissions import authorize, authorize_project


@require_GET
@api_view
@token_required
def dashboard(request):
    return api_success(analytics.user_dashboard(request.user.id))


@require_GET
@api_view
@token_required
def team_workload(request, team_id):
    authorize(request.user, team_id)
    return api_success({'team_id': team_id, 'workload': analytics.team_workload(team_id)})


@require_GET
@api_view
@token_required
def project_stats(request, project_id):
    project, _ = authorize_project(request.user, project_id)
    return api_success({
        'project': {'id': project.id, 'name': project.name},
        'stats': analytics.project_stats(project.id),
    })


@require_GET
@api_view
@token_required
def project_trends(request, project_id):
    project, _ = authorize_project(request.user, project_id)
    return api_success({'project_id': project.id, 'trends': analytics.task_completion_trends(project.id)})


@require_GET
@api_view
@token_required
def member_performance(request, team_id, user_id):
    authorize(request.user, team_id)
    return api_success({
        'team_id': team_id,
        'user_id': user_id,
        'performance': analytics.member_performance_history(user_id, team_id),
    })
