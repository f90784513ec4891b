"""
Views для управления командами и их участниками.
"""
import logging

from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods, require_POST

from accounts.decorators import token_required
from app.utils.responses import api_created, api_success, api_view, parse_json_body
from .serializers import team_to_dict
from .services import TeamService

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(['GET', 'POST'])
@api_view
@token_required
def teams(request):
    if request.method == 'POST':
        team = TeamService.create(request.user, parse_json_body(request))
        return api_created({'team': team_to_dict(team)}, message='Team created successfully')

    items, pagination = TeamService.list_for_user(
        request.user,
        search=request.GET.get('search'),
        page=request.GET.get('page', 1),
        limit=request.GET.get('limit'),
    )
    return api_success({'teams': [team_to_dict(t) for t in items], 'pagination': pagination})


@csrf_exempt
@require_http_methods(['GET', 'PUT', 'PATCH', 'DELETE'])
@api_view
@token_required
def team_detail(request, pk):
    if request.method == 'DELETE':
        TeamService.delete(request.user, pk)
        logger.info("Team %s deleted by %s", pk, request.user.id)
        return api_success(message='Team deleted successfully')

    if request.method in ('PUT', 'PATCH'):
        team = TeamService.update(request.user, pk, parse_json_body(request))
        return api_success({'team': team_to_dict(team)}, message='Team updated successfully')

    team = TeamService.get(request.user, pk)
    return api_success({'team': team_to_dict(team)})


@csrf_exempt
@require_POST
@api_view
@token_required
def team_member_add(request, pk):
    data = parse_json_body(request)
    TeamService.add_member(request.user, pk, data.get('userId'), data.get('role'))
    team = TeamService.get(request.user, pk)
    return api_success({'team': team_to_dict(team)}, message='Member added successfully')


@csrf_exempt
@require_http_methods(['PUT', 'PATCH', 'DELETE'])
@api_view
@token_required
def team_member(request, pk, user_id):
    if request.method == 'DELETE':
        TeamService.remove_member(request.user, pk, user_id)
        message = 'Member removed successfully'
    else:
        data = parse_json_body(request)
        TeamService.change_member_role(request.user, pk, user_id, data.get('role'))
        message = 'Member role updated successfully'
    team = TeamService.get(request.user, pk)
    return api_success({'team': team_to_dict(team)}, message=message)
