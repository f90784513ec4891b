"""
Views для управления проектами
"""
import logging

from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods

from accounts.decorators import token_required
from app.utils.responses import api_created, api_success, api_view, parse_json_body
from .serializers import project_to_dict
from .services import ProjectService

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(['GET', 'POST'])
@api_view
@token_required
def projects(request):
    if request.method == 'POST':
        project = ProjectService.create(request.user, parse_json_body(request))
        return api_created({'project': project_to_dict(project)}, message='Project created successfully')

    filters = {key: request.GET.get(key) for key in ('team', 'status', 'priority', 'search')}
    items, pagination = ProjectService.list_for_user(
        request.user,
        filters,
        page=request.GET.get('page', 1),
        limit=request.GET.get('limit'),
    )
    return api_success({'projects': [project_to_dict(p) for p in items], 'pagination': pagination})


@csrf_exempt
@require_http_methods(['GET', 'PUT', 'PATCH', 'DELETE'])
@api_view
@token_required
def project_detail(request, pk):
    if request.method == 'DELETE':
        deleted_tasks = ProjectService.delete(request.user, pk)
        return api_success({'deleted_tasks': deleted_tasks}, message='Project deleted successfully')

    if request.method in ('PUT', 'PATCH'):
        project = ProjectService.update(request.user, pk, parse_json_body(request))
        return api_success({'project': project_to_dict(project)}, message='Project updated successfully')

    project = ProjectService.get(request.user, pk)
    return api_success({'project': project_to_dict(project)})


@csrf_exempt
@require_http_methods(['PATCH', 'PUT'])
@api_view
@token_required
def project_status(request, pk):
    data = parse_json_body(request)
    project = ProjectService.update_status(request.user, pk, data.get('status'))
    logger.info("Project %s status -> %s", pk, project.status)
    return api_success({'project': project_to_dict(project)}, message='Project status updated')


@require_GET
@api_view
@token_required
def team_projects(request, team_id):
    items = ProjectService.list_for_team(request.user, team_id)
    return api_success({'projects': [project_to_dict(p) for p in items]})
